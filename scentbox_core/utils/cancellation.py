# =============================================================================
# scentbox_core/utils/cancellation.py
# Cooperative cancellation for background operations
# =============================================================================

from __future__ import annotations
import threading
from typing import Optional

from scentbox_core.errors import OperationCancelled


class CancellationToken:
    """
    Cooperative cancellation flag.

    Long-running operations call ``raise_if_cancelled()`` before each
    network call and before each storage write. ``wait()`` doubles as an
    interruptible sleep.
    """

    def __init__(self, name: Optional[str] = None):
        self.name = name
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled(self.name)

    def wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; returns True if cancelled meanwhile."""
        return self._event.wait(timeout=max(0.0, seconds))

    def __repr__(self) -> str:
        state = "cancelled" if self.is_cancelled else "active"
        return f"CancellationToken({self.name!r}, {state})"


def check(token: Optional[CancellationToken]) -> None:
    """Suspension-point check that tolerates a missing token."""
    if token is not None:
        token.raise_if_cancelled()
