# cancel.py
from __future__ import annotations

import threading
from typing import List, Optional


class CancelToken:
    """
    A cancellation scope shared by the workers of a Group.

    Cancelling a token cancels every token derived from it with child().
    Cancelling a child never touches its parent. Once cancelled, a token
    stays cancelled.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        # reentrant, cancel() can run from a signal handler while child() holds it
        self._lock = threading.RLock()
        self._children: List[CancelToken] = []

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            children = list(self._children)
            self._children.clear()

        for child in children:
            child.cancel()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancelled or `timeout` elapses. Returns True if cancelled."""
        return self._event.wait(timeout)

    def child(self) -> CancelToken:
        child = CancelToken()
        with self._lock:
            if self._event.is_set():
                child._event.set()
            else:
                self._children.append(child)
        return child
