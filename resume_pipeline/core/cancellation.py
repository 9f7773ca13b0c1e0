import threading
from typing import Optional

from .exceptions import OperationCancelledError


class CancellationToken:
    """Cancellation signal threaded from the caller through every external call."""

    def __init__(self):
        self._event = threading.Event()
        self.reason: Optional[str] = None

    def cancel(self, reason: str = "Operation was cancelled"):
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self):
        if self._event.is_set():
            raise OperationCancelledError(self.reason or "Operation was cancelled")

    def wait(self, seconds: float) -> bool:
        """Block for up to ``seconds``; returns True if cancelled meanwhile."""
        return self._event.wait(max(0.0, seconds))


def ensure_token(token: Optional[CancellationToken]) -> CancellationToken:
    return token if token is not None else CancellationToken()
