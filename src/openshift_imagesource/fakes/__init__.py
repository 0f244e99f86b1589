# Fake implementations for testing

from .fake_delegate import FakeBlobInfoCache, FakeDelegateOpener, FakeDelegateSource

__all__ = ["FakeBlobInfoCache", "FakeDelegateOpener", "FakeDelegateSource"]
