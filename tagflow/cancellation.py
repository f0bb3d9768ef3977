"""
Cancellation tokens for tagflow operations.

A token combines an optional deadline with an explicit cancel() call.
Store adapters bound their subprocess timeouts by remaining(), and the
SIMULATE_TIMEOUT execution mode blocks in wait() until the token fires.
"""

import threading
import time
from typing import Optional

from .domain.errors import Cancelled


class CancellationToken:
    """
    Deadline-aware cancellation signal.

    Example:
        token = CancellationToken(timeout=30)
        ...
        token.raise_if_cancelled("push")
    """

    def __init__(self, timeout: Optional[float] = None):
        """
        Initialize CancellationToken.

        Args:
            timeout: Seconds until the token cancels itself (None = never)
        """
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None without a deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def wait(self) -> None:
        """Block until cancelled or the deadline passes."""
        self._event.wait(self.remaining())

    def raise_if_cancelled(self, operation: str = "operation") -> None:
        if self.cancelled:
            raise Cancelled(operation)

    def bound(self, timeout: float) -> float:
        """Clamp a per-call timeout to the time remaining."""
        remaining = self.remaining()
        if remaining is None:
            return timeout
        return min(timeout, remaining)
