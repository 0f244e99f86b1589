"""
Delegate source interfaces.

These protocols define the boundary between the lazy image source and the
registry-protocol client that actually transfers manifests and blobs. Only
the operations the image source uses are part of the boundary, which keeps
it small enough to fake in tests.
"""
from __future__ import annotations

import threading
from typing import Any, BinaryIO, Optional, Protocol, Tuple, runtime_checkable

from .models import BlobInfo
from .reference import DockerReference

__all__ = ["BlobInfoCache", "DelegateSource", "DelegateOpener"]


@runtime_checkable
class BlobInfoCache(Protocol):
    """Caller-owned cache of known blob locations. Delegates may write hints into it."""

    def record_known_location(self, transport: str, scope: str, digest: str, location: str) -> None:
        ...


@runtime_checkable
class DelegateSource(Protocol):
    """Registry-protocol source opened for one canonical reference."""

    def get_manifest(self, instance_digest: Optional[str] = None, *,
                     cancel: Optional[threading.Event] = None) -> Tuple[bytes, str]:
        """
        Fetch the manifest, or the manifest-list child named by ``instance_digest``.

        Returns:
            (manifest bytes, MIME type or "" if it can't be determined)
        """
        ...

    def get_blob(self, info: BlobInfo, cache: Optional[BlobInfoCache] = None, *,
                 cancel: Optional[threading.Event] = None) -> Tuple[BinaryIO, int]:
        """
        Open a stream for a blob.

        Returns:
            (readable stream, size in bytes or -1 if unknown)
        """
        ...

    def has_thread_safe_get_blob(self) -> bool:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class DelegateOpener(Protocol):
    """Capability to open a delegate source for a canonical reference."""

    def open_for_reference(self, ref: DockerReference, system_context: Any = None, *,
                           cancel: Optional[threading.Event] = None) -> DelegateSource:
        """
        Open a delegate source. The caller must close() the returned source.

        ``system_context`` is passed through unchanged from the image source's
        caller (credentials, TLS configuration and similar).
        """
        ...
