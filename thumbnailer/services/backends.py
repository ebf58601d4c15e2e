"""Thumbnail backends for images (Pillow) and videos (ffmpeg)."""

import asyncio
import functools
import io
import logging
import os
import shutil
import uuid
from pathlib import Path
from typing import Optional, Tuple, Union

from ..errors import BackendUnavailableError, StrategyFailure
from ..models import ThumbnailRequest
from ..settings import Size

logger = logging.getLogger(__name__)

try:
    from PIL import Image
except ImportError as e:
    Image = None
    logger.warning(f'Could not import "PIL" package. Image thumbnails are disabled. (Reason: {e})')


PILLOW = "pillow"
FFMPEG = "ffmpeg"

# Backends whose library imported successfully
LIB_LOADED = {
    PILLOW: Image is not None,
}

# Extensions the capability-gated backends accept
SUPPORTED_EXTENSIONS = {
    PILLOW: ("jpg", "jpeg", "png", "webp", "tiff", "tif", "gif", "bmp"),
}


@functools.lru_cache(maxsize=None)
def find_executable(name: str) -> Optional[str]:
    """Locate an executable on PATH, warning once if it is missing."""
    path = shutil.which(name)
    if path is None:
        logger.warning(f'Could not find "{name}" executable. Relevant features are disabled.')
    return path


def _work_path_for(output_path: Path) -> Path:
    """Hidden sibling of the output that a backend writes before it is moved into place."""
    return output_path.with_name(f".{output_path.stem}.{uuid.uuid4().hex[:8]}.part{output_path.suffix}")


def _discard_output(output_path: Path) -> None:
    """Remove a partially written thumbnail."""
    try:
        output_path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.debug(f"Could not remove partial thumbnail {output_path}: {e}")


class Backend:
    """One way of turning a source file into a JPEG thumbnail.

    Subclasses set ``name`` and ``gated`` and implement ``_run``. A gated
    backend is only tried for extensions it declares in the capability
    registry.
    """

    name: str = ""
    gated: bool = False

    @property
    def available(self) -> bool:
        return True

    async def invoke(self, request: ThumbnailRequest) -> Optional[Path]:
        """Write a thumbnail to ``request.output_path`` and return that path.

        The backend writes to a temporary sibling file which replaces the
        output only on success, so a failed or cancelled run never touches
        an existing thumbnail.
        """
        if not self.available:
            raise BackendUnavailableError(self.name)
        request.output_path.parent.mkdir(parents=True, exist_ok=True)
        work = request.model_copy(update={"output_path": _work_path_for(request.output_path)})
        try:
            result = await self._run(work)
            if not result:
                return None
            if not work.output_path.exists():
                raise StrategyFailure(f"{self.name} reported success but wrote no file")
            os.replace(work.output_path, request.output_path)
        finally:
            _discard_output(work.output_path)
        return request.output_path

    async def _run(self, request: ThumbnailRequest) -> Optional[Path]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, available={self.available})"


class PillowBackend(Backend):
    """Resize raster images with Pillow."""

    name = PILLOW
    gated = True

    @property
    def available(self) -> bool:
        return LIB_LOADED[PILLOW]

    async def _run(self, request: ThumbnailRequest) -> Optional[Path]:
        # Decoding and encoding block, keep them off the event loop.
        # The file is written here so a cancelled render writes nothing.
        data = await asyncio.to_thread(self._render, request)
        request.output_path.write_bytes(data)
        return request.output_path

    @staticmethod
    def _render(request: ThumbnailRequest) -> bytes:
        size = request.size
        with Image.open(request.source_path) as img:
            if isinstance(size, int):
                # Fit into a size x size box, keeping aspect ratio
                img.thumbnail((size, size), Image.Resampling.LANCZOS)
                thumb = img
            else:
                thumb = img.resize((size[0], size[1]), Image.Resampling.LANCZOS)

            # Flatten transparency onto white, JPEG has no alpha
            if thumb.mode in ('RGBA', 'LA', 'P'):
                rgba = thumb.convert('RGBA')
                rgb_img = Image.new('RGB', rgba.size, (255, 255, 255))
                rgb_img.paste(rgba, mask=rgba.split()[-1])
                thumb = rgb_img
            elif thumb.mode != 'RGB':
                thumb = thumb.convert('RGB')

            buffer = io.BytesIO()
            thumb.save(buffer, 'JPEG', quality=request.quality, optimize=True)
            return buffer.getvalue()


def scale_filter(size: Size) -> str:
    """ffmpeg scale filter for a bounding box or an exact (width, height)."""
    if isinstance(size, int):
        return f"scale=w={size}:h={size}:force_original_aspect_ratio=decrease"
    return f"scale={size[0]}:{size[1]}"


def ffmpeg_qscale(quality: int) -> int:
    """Map JPEG quality 1-100 onto ffmpeg's mjpeg -q:v scale (31 worst, 2 best)."""
    return round(31 - (quality - 1) * 29 / 99)


def format_seconds(seconds: float) -> str:
    return f"{max(seconds, 0.0):.3f}"


class FfmpegBackend(Backend):
    """Grab a single video frame with ffmpeg.

    ``timestamp`` picks the frame: ``None`` takes the first frame, a
    percentage such as ``"5%"`` is resolved against the duration reported
    by ffprobe, and anything else (seconds or ``HH:MM:SS``) goes straight
    to ``-ss``.
    """

    name = FFMPEG
    gated = False

    def __init__(self, timestamp: Union[str, float, None] = None, ffmpeg_path: str = "ffmpeg",
                 ffprobe_path: str = "ffprobe", timeout: Optional[float] = None):
        self.timestamp = timestamp
        self.ffmpeg_path = find_executable(ffmpeg_path)
        self.ffprobe_path = find_executable(ffprobe_path)
        self.timeout = timeout

    @property
    def available(self) -> bool:
        return self.ffmpeg_path is not None

    async def _run(self, request: ThumbnailRequest) -> Optional[Path]:
        seek = await self.resolve_timestamp(request.source_path)

        cmd = [self.ffmpeg_path, "-hide_banner", "-loglevel", "error", "-y"]
        if seek is not None:
            cmd += ["-ss", seek]
        cmd += [
            "-i", str(request.source_path),
            "-frames:v", "1",
            "-vf", scale_filter(request.size),
            "-q:v", str(ffmpeg_qscale(request.quality)),
            "-f", "image2", "-c:v", "mjpeg", "-update", "1",
            str(request.output_path),
        ]
        returncode, _, stderr = await self._exec(cmd)
        if returncode != 0:
            raise StrategyFailure(f"ffmpeg exited with {returncode}: {_last_line(stderr)}")

        output = request.output_path
        if not output.exists() or output.stat().st_size == 0:
            # Seeking past the end exits 0 without writing a frame
            raise StrategyFailure(f"ffmpeg produced no frame for {request.source_path.name}")
        return output

    async def resolve_timestamp(self, source_path: Path) -> Optional[str]:
        """Turn the configured timestamp into an ``-ss`` argument."""
        ts = self.timestamp
        if ts is None:
            return None
        if isinstance(ts, (int, float)):
            return format_seconds(ts)

        ts = str(ts).strip()
        if not ts.endswith('%'):
            return ts

        percent = float(ts[:-1])
        duration = await self.probe_duration(source_path)
        if duration is None:
            raise StrategyFailure(f"Cannot seek to {ts}: duration of {source_path.name} is unknown")
        return format_seconds(duration * percent / 100)

    async def probe_duration(self, source_path: Path) -> Optional[float]:
        """Duration in seconds according to ffprobe, or None if unknown."""
        if self.ffprobe_path is None:
            return None
        cmd = [
            self.ffprobe_path, "-v", "error",
            "-show_entries", "format=duration",
            "-of", "default=noprint_wrappers=1:nokey=1",
            str(source_path),
        ]
        returncode, stdout, stderr = await self._exec(cmd)
        if returncode != 0:
            logger.debug(f"ffprobe failed for {source_path}: {_last_line(stderr)}")
            return None
        try:
            duration = float(stdout.strip())
        except ValueError:
            # ffprobe prints "N/A" for streams without a duration
            return None
        return duration if duration > 0 else None

    async def _exec(self, cmd) -> Tuple[int, str, str]:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            await _kill(process)
            raise StrategyFailure(f"{Path(cmd[0]).name} timed out after {self.timeout}s")
        except BaseException:
            # Cancelled by the caller, don't leave the child running
            await _kill(process)
            raise
        return (
            process.returncode,
            stdout.decode('utf-8', errors='replace'),
            stderr.decode('utf-8', errors='replace'),
        )


async def _kill(process) -> None:
    if process.returncode is None:
        process.kill()
        await process.wait()


def _last_line(text: str) -> str:
    lines = text.strip().splitlines()
    return lines[-1] if lines else "no output"
