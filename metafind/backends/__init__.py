"""
Backends and URI resolution.

URIs look like ``posix:/some/dir`` or ``snapshot:/path/to/entries.jsonl``,
optionally prefixed with ``rbh:``. A bare path is a posix backend.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from ..exceptions import BackendError
from .base import Backend, MemoryBackend, Projection
from .posix import PosixBackend
from .snapshot import SnapshotBackend

logger = logging.getLogger(__name__)

BACKENDS: dict[str, Callable[[str], Backend]] = {
    "posix": PosixBackend,
    "snapshot": SnapshotBackend,
}

_URI_PREFIX = "rbh:"


def split_uri(uri: str) -> tuple[str, str]:
    """Split a URI into ``(backend name, location)``."""
    explicit = uri.startswith(_URI_PREFIX)
    rest = uri[len(_URI_PREFIX) :] if explicit else uri
    scheme, sep, location = rest.partition(":")
    if sep and scheme in BACKENDS:
        return scheme, location
    if explicit:
        raise BackendError(f"unknown backend `{scheme}' in `{uri}'", details={"uri": uri})
    return "posix", uri


def resolve(uri: str) -> Backend:
    """
    Open the backend a URI designates.

    Raises:
        BackendError: If the backend is unknown or cannot be opened
    """
    scheme, location = split_uri(uri)
    if not location:
        raise BackendError(f"missing location in `{uri}'", details={"uri": uri})
    logger.debug("resolving %s as a %s backend on %s", uri, scheme, location)
    return BACKENDS[scheme](location)


__all__ = [
    "BACKENDS",
    "Backend",
    "MemoryBackend",
    "PosixBackend",
    "Projection",
    "SnapshotBackend",
    "resolve",
    "split_uri",
]
