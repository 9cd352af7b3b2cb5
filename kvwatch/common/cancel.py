"""Cooperative cancellation."""

import threading
from collections.abc import Callable


class CancelToken:
    """One-shot cancellation signal shared by a watch session and its collaborators.

    Blocking operations either wait on the token directly (``wait``) or register a
    callback that wakes them up when ``cancel`` is called.
    """

    def __init__(self) -> None:
        """Initialize an uncancelled token."""
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        """Whether cancellation was requested."""
        return self._event.is_set()

    def cancel(self) -> None:
        """Request cancellation and run registered callbacks once."""
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def wait(self, timeout: float | None = None) -> bool:
        """Block up to ``timeout`` seconds, returning True if cancelled meanwhile."""
        return self._event.wait(timeout)

    def add_callback(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` on cancellation, immediately if already cancelled."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def remove_callback(self, callback: Callable[[], None]) -> None:
        """Unregister ``callback`` if it has not run yet."""
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)
