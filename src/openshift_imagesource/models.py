"""
Data models for the image-registry metadata API.

These Pydantic models mirror the subset of the image stream and image
resources this package reads. They do no kind/version checking: unknown
fields are ignored and only the fields below are validated.
"""
from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import DecodeError

__all__ = [
    "TagEvent",
    "TagStatus",
    "ImageStreamStatus",
    "ImageStream",
    "SignatureKind",
    "Signature",
    "ImageObject",
    "BlobInfo",
]


class TagEvent(BaseModel):
    """One historical binding of a tag to a concrete image."""
    model_config = ConfigDict(populate_by_name=True)

    docker_image_reference: str = Field("", alias="dockerImageReference",
                                        description="Pull spec in the metadata API's native format")
    image: str = Field("", description="Image identity (name of the image object)")


class TagStatus(BaseModel):
    """Event history for one tag, most recent first."""
    tag: str
    items: List[TagEvent] = Field(default_factory=list)

    @field_validator("items", mode="before")
    @classmethod
    def null_items_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class ImageStreamStatus(BaseModel):
    tags: List[TagStatus] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def null_tags_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class ImageStream(BaseModel):
    """A named, tagged image history as reported by the metadata API."""
    status: ImageStreamStatus = Field(default_factory=ImageStreamStatus)

    @classmethod
    def from_json(cls, body: bytes) -> "ImageStream":
        """
        Parse an image stream response body.

        Raises:
            DecodeError: If the body is not JSON of the expected shape
        """
        try:
            return cls.model_validate_json(body)
        except ValidationError as e:
            raise DecodeError(f"Invalid image stream response: {e}") from e

    def latest_event(self, tag: str) -> Optional[TagEvent]:
        """
        Return the most recent event recorded for ``tag``.

        Only the first item of a matching tag is ever considered. A matching
        tag with no items counts as no match.
        """
        for status in self.status.tags:
            if status.tag != tag:
                continue
            if status.items:
                return status.items[0]
        return None


class SignatureKind(str, Enum):
    """Recognized signature kinds. Anything else maps to UNKNOWN."""
    ATOMIC = "AtomicImage"
    UNKNOWN = "Unknown"

    @classmethod
    def from_type(cls, value: str) -> "SignatureKind":
        if value == cls.ATOMIC.value:
            return cls.ATOMIC
        return cls.UNKNOWN


class Signature(BaseModel):
    """
    A signature attached to an image object.

    ``content`` arrives base64 encoded in JSON; content that does not decode
    as base64 is kept as its raw UTF-8 bytes.
    """
    type: str
    content: bytes = b""

    @field_validator("content", mode="before")
    @classmethod
    def decode_content(cls, value: Any) -> Any:
        if value is None:
            return b""
        if isinstance(value, str):
            try:
                return base64.b64decode(value, validate=True)
            except (binascii.Error, ValueError):
                return value.encode("utf-8")
        return value

    @property
    def kind(self) -> SignatureKind:
        return SignatureKind.from_type(self.type)


class ImageObject(BaseModel):
    """A specific image and its signatures."""
    signatures: List[Signature] = Field(default_factory=list)

    @field_validator("signatures", mode="before")
    @classmethod
    def null_signatures_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @model_validator(mode="before")
    @classmethod
    def unwrap_image_stream_image(cls, data: Any) -> Any:
        # imagestreamimages responses nest the image under "image"
        if isinstance(data, dict) and "signatures" not in data and isinstance(data.get("image"), dict):
            return data["image"]
        return data

    @classmethod
    def from_json(cls, body: bytes) -> "ImageObject":
        """
        Parse an image object response body.

        Raises:
            DecodeError: If the body is not JSON of the expected shape
        """
        try:
            return cls.model_validate_json(body)
        except ValidationError as e:
            raise DecodeError(f"Invalid image response: {e}") from e


@dataclass(frozen=True)
class BlobInfo:
    """
    Identifies a blob to fetch.

    Invariants:
    - digest: always provided ("sha256:...")
    - size: byte length, or -1 if unknown
    """
    digest: str
    size: int = -1
    media_type: Optional[str] = None
