"""Run context carrying the cooperative cancellation signal."""

import threading
from typing import Optional

from .errors import OperationCancelled


class RunContext:
    """Cancellation signal threaded through every storage call of a run.

    Operations call check() before touching storage; once cancel() has been
    called the next check raises OperationCancelled.
    """

    def __init__(self, cancel_event: Optional[threading.Event] = None):
        self._cancel_event = cancel_event or threading.Event()
        self.reason = None

    def cancel(self, reason: str = "operation cancelled"):
        self.reason = reason
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def check(self):
        """Raise OperationCancelled if the run has been cancelled."""
        if self._cancel_event.is_set():
            raise OperationCancelled(self.reason or "operation cancelled")
