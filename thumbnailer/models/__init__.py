"""Data models for thumbnail requests."""

from .request import ThumbnailRequest

__all__ = ["ThumbnailRequest"]
