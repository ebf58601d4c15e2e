"""Media Thumbnailer

Generates a JPEG thumbnail for an image or video by trying Pillow and
ffmpeg in a fixed order and keeping the first result.
"""

from .errors import BackendUnavailableError, InvalidSourceError, StrategyFailure, ThumbnailerError
from .logging import setup_logging
from .models import ThumbnailRequest
from .services.generator import Strategy, ThumbnailGenerator, default_strategies
from .services.registry import CapabilityRegistry, default_registry
from .settings import Settings

__all__ = [
    "BackendUnavailableError",
    "CapabilityRegistry",
    "InvalidSourceError",
    "Settings",
    "Strategy",
    "StrategyFailure",
    "ThumbnailGenerator",
    "ThumbnailRequest",
    "ThumbnailerError",
    "default_registry",
    "default_strategies",
    "setup_logging",
]
