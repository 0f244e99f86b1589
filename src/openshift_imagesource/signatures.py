"""Signature extraction from image objects."""
from __future__ import annotations

from typing import Iterable, List

from .models import Signature, SignatureKind

__all__ = ["atomic_signatures"]


def atomic_signatures(signatures: Iterable[Signature]) -> List[bytes]:
    """
    Return the content of every atomic signature, in original order.

    Signatures of any other kind are dropped silently.
    """
    return [sig.content for sig in signatures if sig.kind is SignatureKind.ATOMIC]
