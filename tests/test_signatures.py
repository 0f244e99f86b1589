"""Tests for atomic signature filtering."""
from __future__ import annotations

from openshift_imagesource.models import Signature
from openshift_imagesource.signatures import atomic_signatures


def test_keeps_atomic_in_order():
    sigs = [
        Signature(type="AtomicImage", content=b"first"),
        Signature(type="other", content=b"dropped"),
        Signature(type="AtomicImage", content=b"second"),
    ]

    assert atomic_signatures(sigs) == [b"first", b"second"]


def test_type_match_is_exact():
    sigs = [Signature(type="atomicimage", content=b"x"), Signature(type="AtomicImage ", content=b"y")]

    assert atomic_signatures(sigs) == []


def test_empty():
    assert atomic_signatures([]) == []
