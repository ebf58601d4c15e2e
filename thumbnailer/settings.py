"""Thumbnailer settings using Pydantic for configuration management."""

import os
from pathlib import Path
from typing import Optional, Tuple, Union

from pydantic import BaseModel, Field, field_validator
import yaml


Size = Union[int, Tuple[int, int]]


def check_size(v):
    """Validate a single dimension or a (width, height) pair; lists become tuples."""
    if isinstance(v, int) and not isinstance(v, bool):
        dims = (v,)
    elif (isinstance(v, (list, tuple)) and len(v) == 2
          and all(isinstance(d, int) and not isinstance(d, bool) for d in v)):
        v = dims = tuple(v)
    else:
        raise ValueError(f"Thumbnail size must be a number or a [width, height] pair, got {v!r}")
    for dim in dims:
        if dim <= 0:
            raise ValueError(f"Thumbnail size must be positive, got {v}")
    return v


def check_quality(v):
    """Validate JPEG quality range."""
    if not 1 <= v <= 100:
        raise ValueError(f"Quality must be between 1 and 100, got {v}")
    return v


class Settings(BaseModel):
    """Thumbnailer settings with validation."""

    # Generator defaults
    verbose: bool = Field(default=False, description="Log every strategy that could not produce a thumbnail")
    size: Size = Field(default=220, description="Default size, a single number or [width, height]")
    quality: int = Field(default=60, description="Default JPEG quality, between 1 and 100")

    # Video backend settings
    ffmpeg_path: str = Field(default="ffmpeg", description="ffmpeg executable name or path")
    ffprobe_path: str = Field(default="ffprobe", description="ffprobe executable name or path")
    video_timestamp: str = Field(default="5%", description="Timestamp for the primary video strategy")
    ffmpeg_timeout: Optional[float] = Field(default=None, description="Seconds before an ffmpeg run is killed")

    # Logging settings
    log_file: Optional[Path] = Field(default=None, description="Write logs to this file instead of stderr")

    @field_validator('size')
    @classmethod
    def validate_size(cls, v):
        """Validate thumbnail size."""
        return check_size(v)

    @field_validator('quality')
    @classmethod
    def validate_quality(cls, v):
        """Validate JPEG quality."""
        return check_quality(v)

    @field_validator('ffmpeg_timeout')
    @classmethod
    def validate_timeout(cls, v):
        """Validate ffmpeg timeout."""
        if v is not None and v <= 0:
            raise ValueError(f"ffmpeg timeout must be positive, got {v}")
        return v

    @field_validator('log_file', mode='before')
    @classmethod
    def expand_log_file(cls, v):
        """Expand user home in the log file path."""
        if isinstance(v, str):
            return Path(v).expanduser()
        return v

    @classmethod
    def load_from_yaml(cls, config_file: Optional[Path] = None) -> 'Settings':
        """Load settings from YAML file with env var override capability."""
        config_file = config_file or Path("config/config.yml")

        config_data = {}
        if config_file.exists():
            with open(config_file, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f) or {}

        # Override with environment variables
        env_verbose = os.getenv('THUMBNAILER_VERBOSE')
        if env_verbose is not None:
            config_data['verbose'] = env_verbose.strip().lower() in ('1', 'true', 'yes', 'on')

        env_size = os.getenv('THUMBNAILER_SIZE')
        if env_size:
            # "300" or "500x300"
            parts = env_size.lower().split('x')
            if len(parts) not in (1, 2):
                raise ValueError(f"THUMBNAILER_SIZE must be N or WxH, got {env_size!r}")
            config_data['size'] = int(parts[0]) if len(parts) == 1 else (int(parts[0]), int(parts[1]))

        env_quality = os.getenv('THUMBNAILER_QUALITY')
        if env_quality:
            config_data['quality'] = int(env_quality)

        return cls(**config_data)
