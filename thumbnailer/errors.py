"""Exceptions raised by the thumbnailer."""

from pathlib import Path


class ThumbnailerError(Exception):
    """Base class for thumbnailer errors."""


class InvalidSourceError(ThumbnailerError):
    """The source path could not be stat'd (missing, permission denied)."""

    def __init__(self, source_path: Path, reason: str = ""):
        self.source_path = source_path
        message = f"Cannot access source file {source_path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class BackendUnavailableError(ThumbnailerError):
    """A backend was invoked although its library or tool did not load."""

    def __init__(self, backend_name: str):
        self.backend_name = backend_name
        super().__init__(f'Backend "{backend_name}" is not available')


class StrategyFailure(ThumbnailerError):
    """A backend could not produce a thumbnail."""
