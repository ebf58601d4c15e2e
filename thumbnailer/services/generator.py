"""Thumbnail generation with an ordered fallback chain of backends."""

import asyncio
import logging
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from ..errors import InvalidSourceError
from ..models import ThumbnailRequest
from ..settings import Settings, Size, check_quality, check_size
from ..utils.paths import get_thumbnail_path_for
from .backends import Backend, FfmpegBackend, PillowBackend
from .registry import CapabilityRegistry, default_registry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Strategy:
    """A named entry in the fallback chain."""

    name: str
    backend: Backend


def default_strategies(settings: Optional[Settings] = None) -> tuple:
    """Pillow first, then an ffmpeg frame at the configured timestamp, then the first frame."""
    settings = settings or Settings()
    video_opts = dict(
        ffmpeg_path=settings.ffmpeg_path,
        ffprobe_path=settings.ffprobe_path,
        timeout=settings.ffmpeg_timeout,
    )
    return (
        Strategy("pillow", PillowBackend()),
        Strategy(f"ffmpeg {settings.video_timestamp}",
                 FfmpegBackend(timestamp=settings.video_timestamp, **video_opts)),
        Strategy("ffmpeg raw", FfmpegBackend(**video_opts)),
    )


class ThumbnailGenerator:
    """Produce a thumbnail by trying each strategy in order until one succeeds.

    Strategies run one at a time; the first one that returns a path wins and
    the rest are never started. A strategy that returns nothing or raises
    is skipped. Only an unreadable source path is reported to the caller,
    as :class:`InvalidSourceError`. Directories and inputs no backend can
    handle give ``None``.
    """

    def __init__(self, verbose: bool = False, size: Size = 220, quality: int = 60,
                 strategies: Optional[Iterable[Strategy]] = None,
                 registry: Optional[CapabilityRegistry] = None):
        self.verbose = verbose
        self.size = check_size(size)
        self.quality = check_quality(quality)
        self.strategies = tuple(strategies) if strategies is not None else default_strategies()
        self.registry = registry if registry is not None else default_registry()

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> 'ThumbnailGenerator':
        """Create a generator from loaded settings."""
        if 'strategies' not in kwargs:
            kwargs['strategies'] = default_strategies(settings)
        return cls(verbose=settings.verbose, size=settings.size, quality=settings.quality, **kwargs)

    async def get_thumbnail(self, source_path, output_path=None, size: Optional[Size] = None,
                            quality: Optional[int] = None) -> Optional[Path]:
        """Generate a thumbnail for ``source_path``.

        Args:
            source_path: Relative or absolute path to the input file.
            output_path: Where to write the JPEG. Defaults to
                ``.thumbnails/<stem>_thumbnail.jpg`` next to the source.
            size: Single number (bounding box) or ``(width, height)``.
            quality: JPEG quality between 1 and 100.

        Returns:
            The absolute output path, or None if no strategy succeeded.

        Raises:
            InvalidSourceError: If ``source_path`` cannot be stat'd.
        """
        if output_path is None:
            output_path = get_thumbnail_path_for(source_path)
        request = ThumbnailRequest.build(
            source_path, output_path, size, quality,
            default_size=self.size, default_quality=self.quality,
        )
        return await self.resolve(request)

    def get_thumbnail_sync(self, source_path, output_path=None, size: Optional[Size] = None,
                           quality: Optional[int] = None) -> Optional[Path]:
        """Blocking wrapper around :meth:`get_thumbnail`."""
        return asyncio.run(self.get_thumbnail(source_path, output_path, size, quality))

    async def resolve(self, request: ThumbnailRequest) -> Optional[Path]:
        """Run the fallback chain for an already built request."""
        # Can't generate thumbnails for directories
        if self._is_directory(request.source_path):
            logger.debug(f"Skipping directory {request.source_path}")
            return None

        for strategy in self.strategies:
            result = await self._try_strategy(strategy, request)
            if result:
                logger.debug(f'"{strategy.name}" generated {result}')
                return result

        return None

    @staticmethod
    def _is_directory(path: Path) -> bool:
        try:
            st = path.lstat()
        except (OSError, ValueError) as e:
            # ValueError: embedded NUL byte in the path
            raise InvalidSourceError(path, getattr(e, "strerror", None) or str(e)) from e
        return stat.S_ISDIR(st.st_mode)

    async def _try_strategy(self, strategy: Strategy, request: ThumbnailRequest) -> Optional[Path]:
        backend = strategy.backend
        result = None
        # Unavailable backends were reported once when they loaded
        if backend.available and self._accepts(backend, request):
            try:
                result = await backend.invoke(request)
            except Exception as e:
                self._report(logging.ERROR, f'"{strategy.name}" failed. Reason: {e}')
                return None

        if not result:
            self._report(logging.WARNING, f'"{strategy.name}" could not generate a thumbnail.')
            return None
        return Path(result)

    def _accepts(self, backend: Backend, request: ThumbnailRequest) -> bool:
        if not backend.gated:
            return True
        return self.registry.supports(backend.name, request.source_path)

    def _report(self, level: int, message: str) -> None:
        if self.verbose:
            logger.log(level, message)
        else:
            logger.debug(message)
