"""Single-producer, single-consumer rendezvous channel."""

import threading
from collections.abc import Iterator
from typing import Generic, TypeVar

from .cancel import CancelToken

T = TypeVar("T")


class ChannelClosed(Exception):
    """Raised by ``get`` once the channel is closed and drained."""


class Channel(Generic[T]):
    """Rendezvous channel holding at most one pending item.

    ``put`` hands an item over and blocks until the consumer takes it. If the
    channel's cancel token fires first, the item is withdrawn and ``put``
    returns False, so nothing is delivered after cancellation.
    """

    def __init__(self, cancel: CancelToken | None = None) -> None:
        """Initialize the channel, optionally bound to a cancel token."""
        self._cond = threading.Condition()
        self._pending: list[T] = []
        self._closed = False
        self._offered = 0
        self._taken = 0
        self._cancel = cancel or CancelToken()
        self._cancel.add_callback(self._wake)

    @property
    def closed(self) -> bool:
        """Whether the producer closed the channel."""
        return self._closed

    def _wake(self) -> None:
        with self._cond:
            self._cond.notify_all()

    def _stopped(self) -> bool:
        return self._closed or self._cancel.cancelled

    def put(self, item: T) -> bool:
        """Deliver ``item``, returning False if cancelled or closed before it was taken."""
        with self._cond:
            self._cond.wait_for(lambda: not self._pending or self._stopped())
            if self._stopped():
                return False
            self._pending.append(item)
            self._offered += 1
            ticket = self._offered
            self._cond.notify_all()
            while self._taken < ticket:
                if self._stopped():
                    self._pending.clear()
                    self._cond.notify_all()
                    return False
                self._cond.wait()
            return True

    def get(self, timeout: float | None = None) -> T:
        """Take the next item.

        Raises:
            ChannelClosed: The channel was closed and nothing is pending.
            TimeoutError: No item arrived within ``timeout`` seconds.
        """
        with self._cond:
            # After cancellation pending items are withdrawn, never taken.
            ready = self._cond.wait_for(
                lambda: self._closed or (self._pending and not self._cancel.cancelled), timeout
            )
            if not ready:
                raise TimeoutError("no item received")
            if self._closed:
                raise ChannelClosed
            item = self._pending.pop(0)
            self._taken += 1
            self._cond.notify_all()
            return item

    def close(self) -> None:
        """Close the channel. Idempotent."""
        with self._cond:
            self._closed = True
            self._pending.clear()
            self._cond.notify_all()

    def __iter__(self) -> Iterator[T]:
        """Iterate over items until the channel is closed."""
        while True:
            try:
                yield self.get()
            except ChannelClosed:
                return
