"""Long-poll watch loop."""

from collections.abc import Callable
from typing import Generic, TypeVar

from loguru import logger

from ..common.backoff import ExponentialBackoff
from ..common.cancel import CancelToken
from ..common.clock import Clock
from ..common.debounce import DebounceGate
from ..store.client import QueryMeta, QueryOptions
from ..store.errors import ErrorKind, classify_error
from .watcher import WatchHandle, WatchOutcome

# Upper bound of a single blocking query; proxies tend to drop longer requests.
DEFAULT_WAIT_TIME = 600.0

S = TypeVar("S")

Fetch = Callable[[str, QueryOptions], tuple[S, QueryMeta]]


class WatchSession(Generic[S]):
    """State machine of one watch.

    Repeatedly reads ``target`` with a blocking query on the last seen index,
    hands changed snapshots to a debounce gate feeding the handle's stream,
    and backs off on transient read failures.
    """

    def __init__(
        self,
        target: str,
        fetch: Fetch[S],
        handle: WatchHandle[S],
        cancel: CancelToken,
        backoff: ExponentialBackoff,
        debounce_time: float,
        clock: Clock | None = None,
        classify: Callable[[BaseException], ErrorKind] = classify_error,
        wait_time: float = DEFAULT_WAIT_TIME,
    ):
        """Initialize the session; nothing runs until ``run`` is called."""
        self.target = target
        self.index = 0
        self._fetch = fetch
        self._handle = handle
        self._cancel = cancel
        self._backoff = backoff
        self._classify = classify
        self._wait_time = wait_time
        self._gate: DebounceGate[S] = DebounceGate(debounce_time, handle.stream.put, clock)

    def _options(self) -> QueryOptions:
        return QueryOptions(
            allow_stale=True,
            require_consistent=False,
            wait_index=self.index,
            wait_time=self._wait_time,
            cancel=self._cancel,
        )

    def run(self) -> None:
        """Run the loop until cancelled or a fatal error occurs, then close the stream."""
        outcome: WatchOutcome = WatchOutcome.FAILED
        error: BaseException | None = None
        logger.debug("Starting watch on {!r}", self.target)
        try:
            outcome, error = self._loop()
        except Exception as e:
            logger.exception("Watch on {!r} crashed", self.target)
            error = e
        finally:
            self._gate.close()
            logger.debug("Watch on {!r} ended: {}", self.target, outcome)
            self._handle.finish(outcome, error)

    def _loop(self) -> tuple[WatchOutcome, BaseException | None]:
        while not self._cancel.cancelled:
            try:
                snapshot, meta = self._fetch(self.target, self._options())
            except Exception as e:
                if self._cancel.cancelled:
                    break
                if self._classify(e) is ErrorKind.FATAL:
                    logger.error("Watch on {!r} failed: {}", self.target, e)
                    return WatchOutcome.FAILED, e
                # The store may not know our index anymore; resync with a non-blocking read.
                self.index = 0
                delay = self._backoff.next_backoff()
                logger.warning(
                    "Reading {!r} failed ({}), retry {} in {:.2f}s", self.target, e, self._backoff.failures, delay
                )
                if self._cancel.wait(delay):
                    break
                continue

            self._backoff.reset()
            if not meta.known_leader:
                logger.warning(
                    "{!r} read from a server without a known leader (last contact {:.3f}s ago)",
                    self.target,
                    meta.last_contact,
                )
            # A zero index would turn every following read into a non-blocking one.
            last_index = max(meta.last_index, 1)
            if last_index == self.index:
                continue

            if last_index < self.index:
                # The store's index went backwards (e.g. snapshot restore): start over from this state.
                logger.info("{!r} index went back from {} to {}, resyncing", self.target, self.index, last_index)
                self.index = 0
                self._gate.reset()
                self._gate.offer(snapshot, last_index, immediate=True)
                continue

            first = self.index <= 0
            self.index = last_index
            logger.debug("{!r} changed at index {}", self.target, last_index)
            self._gate.offer(snapshot, last_index, immediate=first)

        return WatchOutcome.CANCELLED, None
