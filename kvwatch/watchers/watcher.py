"""Watch handle returned to callers."""

import threading
from collections.abc import Iterator
from enum import StrEnum
from typing import Any, Generic, Self, TypeVar

from ..common.cancel import CancelToken
from ..common.channel import Channel

S = TypeVar("S")


class WatchOutcome(StrEnum):
    """Lifecycle state of a watch."""

    RUNNING = "running"
    CANCELLED = "cancelled"
    FAILED = "failed"


class WatchHandle(Generic[S]):
    """A running watch: an iterable stream of snapshots plus its controls.

    Iterating yields snapshots until the watch ends. The stream carries no
    errors; once it ends, ``outcome`` and ``error`` tell why.
    """

    def __init__(self, target: str, stream: Channel[S], cancel: CancelToken):
        """Wrap the session's stream and cancel token."""
        self.target = target
        self.stream = stream
        self._cancel = cancel
        self._done = threading.Event()
        self.outcome = WatchOutcome.RUNNING
        self.error: BaseException | None = None

    def finish(self, outcome: WatchOutcome, error: BaseException | None = None) -> None:
        """Record how the watch ended and close the stream. Called by the session."""
        # Outcome is visible before the stream ends.
        self.outcome = outcome
        self.error = error
        self.stream.close()
        self._done.set()

    @property
    def done(self) -> bool:
        """Whether the watch has ended."""
        return self._done.is_set()

    def cancel(self) -> None:
        """Stop the watch."""
        self._cancel.cancel()

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the watch to end; return whether it did."""
        return self._done.wait(timeout)

    def __iter__(self) -> Iterator[S]:
        """Iterate over snapshots."""
        return iter(self.stream)

    def __enter__(self) -> Self:
        """Use the handle as a context manager."""
        return self

    def __exit__(self, exc_type: Any, exc_value: Any, traceback: Any) -> None:
        """Cancel the watch and wait for it to stop."""
        self.cancel()
        self.join()
