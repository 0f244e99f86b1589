"""Cooperative cancellation for blocking metadata and delegate calls."""
from __future__ import annotations

import threading
from typing import Optional

from .errors import CancelledError

__all__ = ["check_cancelled"]


def check_cancelled(cancel: Optional[threading.Event], what: str = "operation") -> None:
    """Raise CancelledError if the caller has set its cancellation event."""
    if cancel is not None and cancel.is_set():
        raise CancelledError(f"{what} cancelled")
