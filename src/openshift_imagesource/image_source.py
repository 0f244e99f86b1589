"""
Lazy image source for image stream tags.

An image source is created unresolved. The first call that needs image data
looks up the requested tag in the image stream, converts the tag's most
recent event into a canonical pull reference, and opens a delegate registry
source for it. Every later call reuses that delegate. Signature lookups by
explicit digest go straight to the metadata API and never resolve.
"""
from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Any, BinaryIO, List, Optional, Tuple, Union

import httpx

from .cancellation import check_cancelled
from .client import MetadataClient
from .delegate import BlobInfoCache, DelegateOpener, DelegateSource
from .errors import CancelledError, DelegateOpenError, ImageSourceError, TagNotFoundError
from .models import BlobInfo, ImageObject, ImageStream
from .reference import ImageStreamReference, parse_docker_reference, parse_image_stream_reference
from .settings import Settings
from .signatures import atomic_signatures

__all__ = ["ResolutionState", "LazyImageSource", "open_image_source"]

logger = logging.getLogger(__name__)


class ResolutionState(str, Enum):
    """Where an image source is in its resolution lifecycle."""
    UNRESOLVED = "unresolved"
    RESOLVED = "resolved"
    # Only reachable with cache_resolution_failures enabled
    FAILED = "failed"


class LazyImageSource:
    """
    Image source that resolves an image stream tag on first use.

    Resolution runs at most once successfully per instance; the delegate and
    the resolved image identity are written together, under a lock, and never
    replaced afterwards. A failed resolution leaves the source unresolved so
    a later call can retry, unless ``cache_resolution_failures`` is set, in
    which case a missing tag is remembered and re-raised.

    get_blob() is not safe to call concurrently on one instance.
    """

    def __init__(self, client: MetadataClient, opener: DelegateOpener,
                 system_context: Any = None, *,
                 cache_resolution_failures: bool = False,
                 owns_client: bool = False) -> None:
        """
        Initialize an unresolved image source.

        Args:
            client: Metadata client bound to the user's image stream reference
            opener: Opens delegate registry sources for canonical references
            system_context: Passed through unchanged to the opener
            cache_resolution_failures: Remember TagNotFoundError permanently
            owns_client: Close ``client`` when this source is closed
        """
        self._client = client
        self._opener = opener
        self._system_context = system_context
        self._cache_resolution_failures = cache_resolution_failures
        self._owns_client = owns_client

        self._lock = threading.Lock()
        # (delegate, image identity), written once and read without the lock
        self._resolution: Optional[Tuple[DelegateSource, str]] = None
        self._failure: Optional[TagNotFoundError] = None
        self._closed = False

    @property
    def reference(self) -> ImageStreamReference:
        """The reference used to set up this source, as specified by the user."""
        return self._client.ref

    @property
    def state(self) -> ResolutionState:
        if self._resolution is not None:
            return ResolutionState.RESOLVED
        if self._failure is not None:
            return ResolutionState.FAILED
        return ResolutionState.UNRESOLVED

    @property
    def resolved_image(self) -> Optional[str]:
        """Image identity of the resolved tag event, or None until resolved."""
        resolution = self._resolution
        return resolution[1] if resolution is not None else None

    def get_manifest(self, instance_digest: Optional[str] = None, *,
                     cancel: Optional[threading.Event] = None) -> Tuple[bytes, str]:
        """
        Return the image's manifest and its MIME type (possibly "").

        ``instance_digest`` is forwarded to the delegate unchanged; the
        delegate resolves manifest-list children, not this source.
        """
        delegate, _ = self._ensure_resolved(cancel)
        return delegate.get_manifest(instance_digest, cancel=cancel)

    def has_thread_safe_get_blob(self) -> bool:
        """Whether get_blob() can be called concurrently. It can't."""
        return False

    def get_blob(self, info: BlobInfo, cache: Optional[BlobInfoCache] = None, *,
                 cancel: Optional[threading.Event] = None) -> Tuple[BinaryIO, int]:
        """
        Return a stream for the blob and its size (-1 if unknown).

        The delegate may record known blob locations in ``cache``.
        """
        delegate, _ = self._ensure_resolved(cancel)
        return delegate.get_blob(info, cache, cancel=cancel)

    def layer_infos_for_copy(self, instance_digest: Optional[str] = None) -> Optional[List[BlobInfo]]:
        """Always None: the layers listed in the manifest are used as-is."""
        return None

    def get_signatures(self, instance_digest: Optional[str] = None, *,
                       cancel: Optional[threading.Event] = None) -> List[bytes]:
        """
        Return the image's atomic signatures, in the order the API lists them.

        With ``instance_digest`` the image is looked up by that digest and no
        tag resolution happens. Otherwise the resolved image identity is used.
        """
        if instance_digest is None:
            _, image = self._ensure_resolved(cancel)
        else:
            self._check_open()
            image = str(instance_digest)

        body = self._client.fetch_image_object(self.reference.namespace, image, cancel=cancel)
        return atomic_signatures(ImageObject.from_json(body).signatures)

    def close(self) -> None:
        """Release the delegate, if one was opened. Safe to call more than once."""
        with self._lock:
            resolution, self._resolution = self._resolution, None
            already_closed, self._closed = self._closed, True

        try:
            if resolution is not None:
                logger.debug(f"Closing delegate source for {self.reference}")
                resolution[0].close()
        finally:
            if self._owns_client and not already_closed:
                self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _check_open(self) -> None:
        if self._closed:
            raise ImageSourceError(f"Image source for {self.reference} is closed")

    def _ensure_resolved(self, cancel: Optional[threading.Event]) -> Tuple[DelegateSource, str]:
        """Resolve the tag and open the delegate unless that already happened."""
        self._check_open()
        resolution = self._resolution
        if resolution is not None:
            return resolution

        with self._lock:
            self._check_open()
            if self._resolution is not None:
                return self._resolution
            if self._failure is not None:
                raise TagNotFoundError(str(self._failure), self._failure.tag) from self._failure

            try:
                self._resolution = self._resolve(cancel)
            except TagNotFoundError as e:
                if self._cache_resolution_failures:
                    self._failure = e
                raise
            return self._resolution

    def _resolve(self, cancel: Optional[threading.Event]) -> Tuple[DelegateSource, str]:
        ref = self.reference
        body = self._client.fetch_image_stream(ref.namespace, ref.stream, cancel=cancel)
        stream = ImageStream.from_json(body)

        event = stream.latest_event(ref.tag)
        if event is None:
            raise TagNotFoundError(
                f"No matching tag found: {ref.tag!r} in image stream {ref.namespace}/{ref.stream}",
                ref.tag,
            )
        logger.debug(f"Tag event for {ref}: {event!r}")
        if not event.image:
            raise TagNotFoundError(
                f"Latest event for tag {ref.tag!r} in image stream {ref.namespace}/{ref.stream} names no image",
                ref.tag,
            )

        canonical = self._client.canonicalize_pull_spec(event.docker_image_reference)
        logger.debug(f"Resolved reference {canonical!r}")

        try:
            docker_ref = parse_docker_reference(canonical)
            check_cancelled(cancel, f"opening registry source for {canonical}")
            delegate = self._opener.open_for_reference(docker_ref, self._system_context, cancel=cancel)
        except CancelledError:
            raise
        except Exception as e:
            raise DelegateOpenError(f"Cannot open registry source for {canonical}: {e}") from e

        logger.info(f"Resolved {ref} to {canonical} (image {event.image})")
        return delegate, event.image


def open_image_source(reference: Union[str, ImageStreamReference], settings: Settings,
                      opener: DelegateOpener, system_context: Any = None, *,
                      transport: Optional[httpx.BaseTransport] = None) -> LazyImageSource:
    """
    Create an unresolved image source for an image stream tag.

    The returned source owns its metadata client; the caller must close() it.

    Args:
        reference: "registry/namespace/stream[:tag]" or a parsed reference
        settings: Metadata API configuration
        opener: Opens delegate registry sources
        system_context: Passed through to the opener
        transport: Optional httpx transport for the metadata client

    Raises:
        MalformedReferenceError: If ``reference`` cannot be parsed
    """
    if isinstance(reference, str):
        reference = parse_image_stream_reference(reference)

    client = MetadataClient(reference, settings, transport=transport)
    return LazyImageSource(
        client,
        opener,
        system_context,
        cache_resolution_failures=settings.cache_resolution_failures,
        owns_client=True,
    )
