"""
Metadata API client for OpenShift-style image registries.

Issues authenticated requests against the image stream metadata API and
converts the API's native pull specs into canonical registry references.
Nothing is cached here; resolution state lives in the image source.
"""
from __future__ import annotations

import json
import logging
import threading
from dataclasses import replace
from typing import Optional

import httpx
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from .cancellation import check_cancelled
from .errors import (
    AuthError,
    NotFoundError,
    TransportError,
    UnexpectedStatusError,
)
from .reference import ImageStreamReference, parse_docker_reference
from .settings import Settings

__all__ = ["MetadataClient", "canonicalize_pull_spec", "USER_AGENT"]

logger = logging.getLogger(__name__)

USER_AGENT = "openshift-imagesource/0.1.0"



def canonicalize_pull_spec(native_pull_spec: str, registry_host: Optional[str] = None) -> str:
    """
    Convert a metadata API pull spec into a canonical registry reference.

    The metadata API records pull specs against the registry address it
    knows, typically the cluster-internal service. When ``registry_host`` is
    given it replaces that host; otherwise the host is kept.

    Args:
        native_pull_spec: e.g. "172.30.1.1:5000/ns/app@sha256:..."
        registry_host: Host to substitute, e.g. "registry.example.com"

    Returns:
        "registry/namespace/repo@digest" or "...:tag"

    Raises:
        MalformedReferenceError: If the pull spec lacks a host, a repository
            path, or a tag/digest

    Examples:
        >>> canonicalize_pull_spec("172.30.1.1:5000/ns/app:v1", "registry.example.com")
        'registry.example.com/ns/app:v1'
    """
    ref = parse_docker_reference(native_pull_spec)
    if registry_host:
        ref = parse_docker_reference(str(replace(ref, registry=registry_host)))
    return str(ref)


class MetadataClient:
    """
    HTTP client for the image stream metadata API.

    Uses bearer-token auth from settings, bounded retry on timeouts, and
    maps HTTP failures onto the package's error taxonomy.
    """

    def __init__(self, reference: ImageStreamReference, settings: Settings,
                 transport: Optional[httpx.BaseTransport] = None):
        """
        Initialize metadata client.

        Args:
            reference: Image stream reference this client serves
            settings: API URL, token, TLS and timeout configuration
            transport: Optional httpx transport (tests pass httpx.MockTransport)
        """
        self.ref = reference
        self.settings = settings

        headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        if settings.token:
            headers["Authorization"] = f"Bearer {settings.token}"

        self.client = httpx.Client(
            base_url=settings.base_url,
            timeout=httpx.Timeout(settings.http_timeout_s, connect=min(5.0, settings.http_timeout_s)),
            follow_redirects=True,
            verify=not settings.insecure,
            headers=headers,
            transport=transport,
        )

    def fetch_image_stream(self, namespace: str, stream: str, *,
                           cancel: Optional[threading.Event] = None) -> bytes:
        """
        Fetch the named image stream, including its tag status.

        Returns:
            Raw response body

        Raises:
            NotFoundError: If the image stream does not exist
            TransportError: If network/auth errors
            UnexpectedStatusError: For other non-2xx responses
            CancelledError: If ``cancel`` is set
        """
        path = f"/oapi/v1/namespaces/{namespace}/imagestreams/{stream}"
        return self._do_request("GET", path, f"image stream {namespace}/{stream}", cancel)

    def fetch_image_object(self, namespace: str, image: str, *,
                           cancel: Optional[threading.Event] = None) -> bytes:
        """
        Fetch a single image's metadata by image identity or digest.

        The image is read through this client's image stream, so the
        response is an image stream image wrapping the image object.

        Raises:
            NotFoundError: If the image is not part of the stream
            TransportError: If network/auth errors
            UnexpectedStatusError: For other non-2xx responses
            CancelledError: If ``cancel`` is set
        """
        path = f"/oapi/v1/namespaces/{namespace}/imagestreamimages/{self.ref.stream}@{image}"
        return self._do_request("GET", path, f"image {namespace}/{self.ref.stream}@{image}", cancel)

    def canonicalize_pull_spec(self, native_pull_spec: str) -> str:
        """Canonicalize a pull spec against this client's registry host."""
        return canonicalize_pull_spec(native_pull_spec, self.ref.registry)

    def _do_request(self, method: str, path: str, what: str,
                    cancel: Optional[threading.Event]) -> bytes:
        check_cancelled(cancel, f"request for {what}")
        logger.debug(f"{method} {self.settings.base_url}{path}")

        try:
            response = self._request_with_retry(method, path, cancel)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            detail = _status_message(e.response) or str(e)
            if status_code == 404:
                raise NotFoundError(f"Not found: {what}: {detail}") from e
            elif status_code in (401, 403):
                raise AuthError(f"Authentication failed for {what}: {detail}") from e
            else:
                raise UnexpectedStatusError(
                    f"Metadata API error {status_code} for {what}: {detail}", status_code
                ) from e
        except httpx.RequestError as e:
            raise TransportError(f"Network error fetching {what}: {e}") from e

        check_cancelled(cancel, f"request for {what}")
        return response.content

    def _request_with_retry(self, method: str, path: str,
                            cancel: Optional[threading.Event]) -> httpx.Response:
        retrying = Retrying(
            stop=stop_after_attempt(self.settings.http_retry + 1),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type(httpx.TimeoutException),
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                check_cancelled(cancel, f"{method} {path}")
                return self.client.request(method, path)

    def close(self):
        """Close HTTP client."""
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def _status_message(response: httpx.Response) -> Optional[str]:
    """Extract the message of a Kubernetes Status error body, if it is one."""
    try:
        body = response.json()
    except (json.JSONDecodeError, ValueError):
        return None
    if isinstance(body, dict) and body.get("kind") == "Status" and body.get("status") != "Success":
        return body.get("message") or None
    return None
