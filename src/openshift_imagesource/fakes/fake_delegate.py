"""
Fake delegate source implementations for testing.

These explicitly subclass the delegate protocols so interface changes break
CI immediately, preventing silent drift.
"""
from __future__ import annotations

import hashlib
import io
import threading
from typing import Any, BinaryIO, Dict, List, Optional, Tuple

from ..cancellation import check_cancelled
from ..delegate import BlobInfoCache, DelegateOpener, DelegateSource
from ..models import BlobInfo
from ..reference import DockerReference

__all__ = ["FakeBlobInfoCache", "FakeDelegateSource", "FakeDelegateOpener"]

OCI_MANIFEST = "application/vnd.oci.image.manifest.v1+json"


class FakeBlobInfoCache(BlobInfoCache):
    """In-memory blob location cache that records every hint written to it."""

    def __init__(self) -> None:
        self.locations: List[Tuple[str, str, str, str]] = []

    def record_known_location(self, transport: str, scope: str, digest: str, location: str) -> None:
        self.locations.append((transport, scope, digest, location))


class FakeDelegateSource(DelegateSource):
    """
    In-memory delegate source for testing.

    This is a test double; not for production use.
    Manifests are keyed by instance digest (None for the primary manifest);
    blobs are keyed by digest.
    """

    def __init__(self, ref: DockerReference, manifest: bytes = b"{}",
                 media_type: str = OCI_MANIFEST) -> None:
        self.ref = ref
        self._manifests: Dict[Optional[str], Tuple[bytes, str]] = {None: (manifest, media_type)}
        self._blobs: Dict[str, bytes] = {}
        self.close_count = 0
        self.manifest_requests: List[Optional[str]] = []

    @property
    def closed(self) -> bool:
        return self.close_count > 0

    def put_blob(self, data: bytes) -> str:
        """Store blob content and return its digest (test utility)."""
        digest = f"sha256:{hashlib.sha256(data).hexdigest()}"
        self._blobs[digest] = data
        return digest

    def put_instance(self, instance_digest: str, manifest: bytes, media_type: str = OCI_MANIFEST) -> None:
        """Store a manifest-list child (test utility)."""
        self._manifests[instance_digest] = (manifest, media_type)

    def get_manifest(self, instance_digest: Optional[str] = None, *,
                     cancel: Optional[threading.Event] = None) -> Tuple[bytes, str]:
        check_cancelled(cancel, "manifest fetch")
        self.manifest_requests.append(instance_digest)
        if instance_digest not in self._manifests:
            raise KeyError(instance_digest)
        return self._manifests[instance_digest]

    def get_blob(self, info: BlobInfo, cache: Optional[BlobInfoCache] = None, *,
                 cancel: Optional[threading.Event] = None) -> Tuple[BinaryIO, int]:
        check_cancelled(cancel, "blob fetch")
        if info.digest not in self._blobs:
            raise KeyError(info.digest)
        data = self._blobs[info.digest]
        if cache is not None:
            cache.record_known_location("docker", self.ref.registry, info.digest, self.ref.repository)
        return io.BytesIO(data), len(data)

    def has_thread_safe_get_blob(self) -> bool:
        return True

    def close(self) -> None:
        self.close_count += 1


class FakeDelegateOpener(DelegateOpener):
    """
    Opener that hands out FakeDelegateSource instances and records each call.

    Set ``error`` to make the next open fail with that exception.
    """

    def __init__(self, manifest: bytes = b"{}", media_type: str = OCI_MANIFEST) -> None:
        self._manifest = manifest
        self._media_type = media_type
        self.error: Optional[Exception] = None
        self.opened: List[FakeDelegateSource] = []
        self.system_contexts: List[Any] = []

    def open_for_reference(self, ref: DockerReference, system_context: Any = None, *,
                           cancel: Optional[threading.Event] = None) -> FakeDelegateSource:
        check_cancelled(cancel, "delegate open")
        if self.error is not None:
            error, self.error = self.error, None
            raise error
        source = FakeDelegateSource(ref, self._manifest, self._media_type)
        self.opened.append(source)
        self.system_contexts.append(system_context)
        return source
