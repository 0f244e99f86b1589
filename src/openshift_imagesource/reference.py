"""
Image reference parsing.

Two reference shapes meet here: the user-supplied image stream reference
(``registry/namespace/stream[:tag]``) that names what to resolve, and the
canonical pull reference (``registry/repo[:tag][@digest]``) that a delegate
registry source is opened for.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from .errors import MalformedReferenceError

__all__ = [
    "DEFAULT_TAG",
    "ImageStreamReference",
    "DockerReference",
    "parse_image_stream_reference",
    "parse_docker_reference",
]

DEFAULT_TAG = "latest"

_HOST = r"[A-Za-z0-9](?:[A-Za-z0-9.-]*[A-Za-z0-9])?(?::[0-9]+)?"
_COMPONENT = r"[a-z0-9]+(?:(?:[._]|__|-+)[a-z0-9]+)*"
_TAG = r"[\w][\w.-]{0,127}"
_DIGEST = r"[A-Za-z][A-Za-z0-9]*(?:[-_+.][A-Za-z][A-Za-z0-9]*)*:[0-9a-fA-F]{32,}"

_PULL_SPEC_RE = re.compile(
    rf"^(?P<host>{_HOST})/(?P<repo>{_COMPONENT}(?:/{_COMPONENT})*)"
    rf"(?::(?P<tag>{_TAG}))?(?:@(?P<digest>{_DIGEST}))?$"
)
_NAMESPACE_RE = re.compile(r"^[a-z0-9](?:[-a-z0-9]*[a-z0-9])?$")
_STREAM_RE = re.compile(rf"^{_COMPONENT}$")
_TAG_RE = re.compile(rf"^{_TAG}$")
_SHA256_RE = re.compile(r"^sha256:[a-f0-9]{64}$")


@dataclass(frozen=True)
class ImageStreamReference:
    """
    A tag of an image stream, as specified by the user.

    Attributes:
        registry: Registry host the stream's images are pulled from
        namespace: Project/namespace owning the stream
        stream: Image stream name
        tag: Requested tag; the only key used for tag lookup
    """
    registry: str
    namespace: str
    stream: str
    tag: str = DEFAULT_TAG

    def __str__(self) -> str:
        return f"{self.registry}/{self.namespace}/{self.stream}:{self.tag}"


@dataclass(frozen=True)
class DockerReference:
    """A canonical registry reference a delegate source can be opened for."""
    registry: str
    repository: str
    tag: Optional[str] = None
    digest: Optional[str] = None

    @property
    def name(self) -> str:
        return f"{self.registry}/{self.repository}"

    def __str__(self) -> str:
        ref = self.name
        if self.tag:
            ref += f":{self.tag}"
        if self.digest:
            ref += f"@{self.digest}"
        return ref


def parse_image_stream_reference(ref: str) -> ImageStreamReference:
    """
    Parse a user-supplied ``registry/namespace/stream[:tag]`` reference.

    Digest-qualified references are rejected: they name an image directly
    and have nothing to resolve through the tag history.

    Raises:
        MalformedReferenceError: If the reference does not have that shape

    Examples:
        >>> parse_image_stream_reference("registry.example.com/ns/app:v1")
        ImageStreamReference(registry='registry.example.com', namespace='ns', stream='app', tag='v1')
    """
    if not ref:
        raise MalformedReferenceError("Reference cannot be empty")

    if "@" in ref:
        raise MalformedReferenceError(f"Digest references are not supported for image streams: {ref}")

    parts = ref.split("/")
    if len(parts) != 3:
        raise MalformedReferenceError(
            f"Invalid image stream reference {ref!r}, expected registry/namespace/stream[:tag]"
        )

    registry, namespace, stream_and_tag = parts
    stream, sep, tag = stream_and_tag.partition(":")
    if not sep:
        tag = DEFAULT_TAG

    if not re.match(rf"^{_HOST}$", registry):
        raise MalformedReferenceError(f"Invalid registry host in {ref!r}")
    if not _NAMESPACE_RE.match(namespace):
        raise MalformedReferenceError(f"Invalid namespace {namespace!r} in {ref!r}")
    if not _STREAM_RE.match(stream):
        raise MalformedReferenceError(f"Invalid image stream name {stream!r} in {ref!r}")
    if not _TAG_RE.match(tag):
        raise MalformedReferenceError(f"Invalid tag {tag!r} in {ref!r}")

    return ImageStreamReference(registry=registry, namespace=namespace, stream=stream, tag=tag)


def parse_docker_reference(ref: str) -> DockerReference:
    """
    Parse a ``registry/repo[:tag][@digest]`` reference.

    At least one of tag or digest must be present; sha256 digests must be
    64 lowercase hex characters.

    Raises:
        MalformedReferenceError: If the reference does not have that shape
    """
    if not ref:
        raise MalformedReferenceError("Reference cannot be empty")

    match = _PULL_SPEC_RE.match(ref)
    if not match:
        raise MalformedReferenceError(f"Invalid image reference format: {ref!r}")

    tag = match.group("tag")
    digest = match.group("digest")
    if not tag and not digest:
        raise MalformedReferenceError(f"Image reference has neither tag nor digest: {ref!r}")
    if digest and digest.startswith("sha256:") and not _SHA256_RE.match(digest):
        raise MalformedReferenceError(f"Invalid sha256 digest in {ref!r}")

    return DockerReference(
        registry=match.group("host"),
        repository=match.group("repo"),
        tag=tag,
        digest=digest,
    )
