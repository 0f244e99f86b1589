"""
Resolve image stream tags from an OpenShift-style metadata API into pullable
image references, and delegate manifest, blob and signature retrieval to a
registry source opened for the resolved reference.
"""
from __future__ import annotations

from .client import MetadataClient, canonicalize_pull_spec
from .errors import (
    AuthError,
    CancelledError,
    DecodeError,
    DelegateOpenError,
    ImageSourceError,
    MalformedReferenceError,
    NotFoundError,
    TagNotFoundError,
    TransportError,
    UnexpectedStatusError,
)
from .image_source import LazyImageSource, ResolutionState, open_image_source
from .models import BlobInfo
from .reference import DockerReference, ImageStreamReference, parse_docker_reference, parse_image_stream_reference
from .settings import Settings, create_settings_from_env

__version__ = "0.1.0"

__all__ = [
    "MetadataClient",
    "canonicalize_pull_spec",
    "LazyImageSource",
    "ResolutionState",
    "open_image_source",
    "BlobInfo",
    "DockerReference",
    "ImageStreamReference",
    "parse_docker_reference",
    "parse_image_stream_reference",
    "Settings",
    "create_settings_from_env",
    "ImageSourceError",
    "TransportError",
    "AuthError",
    "NotFoundError",
    "UnexpectedStatusError",
    "DecodeError",
    "TagNotFoundError",
    "MalformedReferenceError",
    "DelegateOpenError",
    "CancelledError",
]
