"""
Image source error classes.

Provides a clear taxonomy of errors that can occur while resolving an image
stream tag and delegating to a registry source. Callers can tell a permanent
"tag does not exist" apart from a possibly transient transport failure.
"""
from __future__ import annotations

from typing import Optional


class ImageSourceError(Exception):
    """Base class for all image source errors."""
    pass


class TransportError(ImageSourceError):
    """
    The metadata API could not be reached.

    Raised when:
    - Connection, DNS, TLS or timeout failures occur
    - Authentication fails (see AuthError)
    """
    pass


class AuthError(TransportError):
    """
    Authentication or authorization error.

    Raised when:
    - HTTP 401 Unauthorized (missing or expired token)
    - HTTP 403 Forbidden (insufficient permissions on the namespace)
    """
    pass


class NotFoundError(ImageSourceError):
    """The image stream or image object does not exist (HTTP 404)."""
    pass


class UnexpectedStatusError(ImageSourceError):
    """The metadata API answered with a non-2xx, non-404 status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DecodeError(ImageSourceError):
    """A metadata API response body is not valid JSON of the expected shape."""
    pass


class TagNotFoundError(ImageSourceError):
    """
    No tag status matches the requested tag, or its event list is empty.

    This is permanent for the requested tag and is the actionable error.
    """

    def __init__(self, message: str, tag: Optional[str] = None):
        super().__init__(message)
        self.tag = tag


class MalformedReferenceError(ImageSourceError, ValueError):
    """A pull spec or image reference does not have the expected structure."""
    pass


class DelegateOpenError(ImageSourceError):
    """The delegate registry source could not be opened for a resolved reference."""
    pass


class CancelledError(ImageSourceError):
    """The caller's cancellation signal was observed mid-operation."""
    pass


__all__ = [
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
