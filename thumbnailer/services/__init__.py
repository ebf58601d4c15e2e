"""Thumbnail backends, capability registry and the fallback generator."""
