"""Capability registry: which file extensions each backend can handle."""

from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Mapping, Optional, Tuple

from ..utils.paths import extension_of, normalize_extension
from .backends import LIB_LOADED, SUPPORTED_EXTENSIONS


class CapabilityRegistry:
    """Read-only mapping of backend name to supported file extensions.

    Extensions are stored lowercase without a leading dot, so lookups are
    case-insensitive and ignore dots on either side. A backend that was
    never registered (for example because its library failed to import)
    supports nothing.
    """

    def __init__(self, capabilities: Optional[Mapping[str, Iterable[str]]] = None):
        table: Dict[str, FrozenSet[str]] = {}
        for backend_name, extensions in (capabilities or {}).items():
            table[backend_name] = frozenset(
                normalize_extension(ext) for ext in extensions if normalize_extension(ext)
            )
        self._capabilities = MappingProxyType(table)

    def supports(self, backend_name: str, file_path) -> bool:
        """Whether the named backend declares support for the file's extension."""
        extensions = self._capabilities.get(backend_name)
        if not extensions:
            return False
        ext = extension_of(file_path)
        return bool(ext) and ext in extensions

    def extensions_for(self, backend_name: str) -> FrozenSet[str]:
        return self._capabilities.get(backend_name, frozenset())

    def backends(self) -> Tuple[str, ...]:
        return tuple(self._capabilities)

    def __contains__(self, backend_name: str) -> bool:
        return backend_name in self._capabilities

    def __repr__(self) -> str:
        return f"CapabilityRegistry({dict(self._capabilities)!r})"


def _build_default_registry() -> CapabilityRegistry:
    # Only backends whose library loaded get an entry
    return CapabilityRegistry({
        name: extensions
        for name, extensions in SUPPORTED_EXTENSIONS.items()
        if LIB_LOADED.get(name)
    })


_DEFAULT_REGISTRY = _build_default_registry()


def default_registry() -> CapabilityRegistry:
    """The process-wide registry, built once at import."""
    return _DEFAULT_REGISTRY
