"""Thumbnail request model."""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from ..settings import Size, check_quality, check_size


class ThumbnailRequest(BaseModel):
    """A single, fully resolved thumbnail request.

    Paths are absolute; ``size`` and ``quality`` are always set. Instances
    are immutable and live for one call to the generator.
    """

    model_config = ConfigDict(frozen=True)

    source_path: Path
    output_path: Path
    size: Size
    quality: int

    @field_validator('source_path', 'output_path', mode='before')
    @classmethod
    def resolve_path(cls, v):
        """Make paths absolute."""
        return Path(v).expanduser().absolute()

    @field_validator('size')
    @classmethod
    def validate_size(cls, v):
        return check_size(v)

    @field_validator('quality')
    @classmethod
    def validate_quality(cls, v):
        return check_quality(v)

    @classmethod
    def build(cls, source_path, output_path, size: Optional[Size] = None,
              quality: Optional[int] = None, *, default_size: Size = 220,
              default_quality: int = 60) -> 'ThumbnailRequest':
        """Create a request, falling back to defaults for unset size and quality."""
        return cls(
            source_path=source_path,
            output_path=output_path,
            size=size or default_size,
            quality=quality or default_quality,
        )
