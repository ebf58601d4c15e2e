"""Path helpers for thumbnail output locations."""

from pathlib import Path


def get_thumbnails_dir_for(directory: Path) -> Path:
    """Get thumbnails directory for a media directory."""
    return Path(directory) / ".thumbnails"


def get_thumbnail_path_for(media_path) -> Path:
    """Get the default thumbnail path for a media file.

    The directory is not created here; backends create it when they write.
    """
    media_path = Path(media_path).expanduser().absolute()
    thumb_dir = get_thumbnails_dir_for(media_path.parent)
    return thumb_dir / f"{media_path.stem}_thumbnail.jpg"


def extension_of(file_path) -> str:
    """Lowercase extension of a file without the leading dot, or '' if none."""
    return normalize_extension(Path(file_path).suffix)


def normalize_extension(ext: str) -> str:
    """Normalize '.PNG', 'png.' and 'png' to 'png'."""
    return ext.strip().strip('.').lower()
