"""Debounce gate for change notifications."""

import threading
from collections.abc import Callable
from typing import Generic, TypeVar

from loguru import logger

from .clock import Clock, ThreadingClock, Timer

S = TypeVar("S")


class DebounceGate(Generic[S]):
    """Coalesce bursts of changes into a single emission of the latest snapshot.

    A change that follows a zero index (nothing seen yet) is emitted right away.
    Any other change opens a debounce window, or extends the open one, and
    schedules the snapshot for emission after ``delay`` seconds, replacing
    whatever was scheduled before. Once a window has been open for more than
    ``2 * delay`` the next change is emitted immediately so that a steady
    stream of writes cannot starve the consumer.

    Emissions from the caller's thread and from timer callbacks are serialized
    by one lock and never go backwards in index.
    """

    def __init__(self, delay: float, emit: Callable[[S], bool], clock: Clock | None = None):
        """Initialize the gate.

        Args:
            delay: Debounce duration in seconds. ``0`` disables coalescing.
            emit: Delivers a snapshot, returning False if it was not delivered.
            clock: Time source and timer factory.
        """
        self._delay = delay
        self._emit = emit
        self._clock = clock or ThreadingClock()
        self._lock = threading.Lock()
        self._window_start: float | None = None
        self._timer: Timer | None = None
        self._generation = 0
        self._last_emitted: int | None = None
        self._closed = False

    @property
    def window_open(self) -> bool:
        """Whether changes are currently being coalesced."""
        return self._window_start is not None

    @property
    def last_emitted_index(self) -> int | None:
        """Highest index emitted so far."""
        return self._last_emitted

    def offer(self, snapshot: S, index: int, immediate: bool = False) -> None:
        """Offer a changed snapshot observed at ``index``."""
        with self._lock:
            if self._closed:
                return
            self._generation += 1
            self._cancel_timer()

            now = self._clock.now()
            overdue = self._window_start is not None and now - self._window_start > 2 * self._delay
            if immediate or overdue or self._delay <= 0:
                logger.trace("Emitting index {} immediately (immediate={}, overdue={})", index, immediate, overdue)
                self._emit_locked(snapshot, index)
                return

            if self._window_start is None:
                self._window_start = now
            generation = self._generation
            self._timer = self._clock.timer(self._delay, lambda: self._fire(generation, snapshot, index))
            self._timer.start()

    def _fire(self, generation: int, snapshot: S, index: int) -> None:
        with self._lock:
            if self._closed or generation != self._generation:
                return
            self._timer = None
            logger.trace("Debounce window elapsed, emitting index {}", index)
            self._emit_locked(snapshot, index)

    def _emit_locked(self, snapshot: S, index: int) -> None:
        self._window_start = None
        if self._last_emitted is not None and index <= self._last_emitted:
            logger.debug("Dropping snapshot at index {}, already emitted {}", index, self._last_emitted)
            return
        if self._emit(snapshot):
            self._last_emitted = index

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def reset(self) -> None:
        """Drop the pending emission and forget the emitted index baseline."""
        with self._lock:
            self._generation += 1
            self._cancel_timer()
            self._window_start = None
            self._last_emitted = None

    def close(self) -> None:
        """Abandon any pending emission. Further offers are ignored."""
        # Lock-free: a timer callback may hold the lock while blocked in emit.
        self._closed = True
        self._generation += 1
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
