"""Watcher for keys and key prefixes of a store."""

import threading
from collections.abc import Callable
from typing import TypeVar

from ..common.backoff import ExponentialBackoff
from ..common.cancel import CancelToken
from ..common.channel import Channel
from ..common.clock import Clock
from ..config import WatcherConfig
from ..store.client import KVPair, StoreClient
from .session import Fetch, WatchSession
from .watcher import WatchHandle

S = TypeVar("S")


class Watcher:
    """Watches a store for changes to single keys and whole subtrees.

    Every watch runs in its own daemon thread with its own backoff and
    debounce state, so one watcher can serve any number of watches.
    """

    def __init__(
        self,
        client: StoreClient,
        retry_time: float = 0.5,
        debounce_time: float = 0.0,
        *,
        max_retry_time: float = 60.0,
        clock: Clock | None = None,
        backoff_factory: Callable[[], ExponentialBackoff] | None = None,
    ):
        """Initialize the watcher.

        Args:
            client: Store client used for every read.
            retry_time: Initial delay before retrying a failed read.
            debounce_time: Quiet period used to coalesce bursts of changes.
            max_retry_time: Upper bound of the retry delay.
            clock: Clock driving debounce timers.
            backoff_factory: Builds the backoff controller of each watch.
        """
        self.client = client
        self.config = WatcherConfig(retry_time=retry_time, debounce_time=debounce_time, max_retry_time=max_retry_time)
        self._clock = clock
        self._backoff_factory = backoff_factory or (
            lambda: ExponentialBackoff(initial_interval=self.config.retry_time, max_interval=self.config.max_retry_time)
        )

    @classmethod
    def from_config(cls, client: StoreClient, config: WatcherConfig) -> "Watcher":
        """Build a watcher from a ``WatcherConfig``."""
        return cls(
            client,
            retry_time=config.retry_time,
            debounce_time=config.debounce_time,
            max_retry_time=config.max_retry_time,
        )

    def watch_key(self, key: str, cancel: CancelToken | None = None) -> WatchHandle[KVPair | None]:
        """Watch a single key; snapshots are ``None`` while the key does not exist."""
        if not key:
            raise ValueError("key must not be empty")
        return self._start(key, self.client.get, cancel)

    def watch_tree(self, prefix: str, cancel: CancelToken | None = None) -> WatchHandle[list[KVPair]]:
        """Watch every key under ``prefix``; snapshots are the full list of pairs."""
        return self._start(prefix, self.client.list, cancel)

    def _start(self, target: str, fetch: Fetch[S], cancel: CancelToken | None) -> WatchHandle[S]:
        cancel = cancel or CancelToken()
        handle: WatchHandle[S] = WatchHandle(target, Channel(cancel), cancel)
        session = WatchSession(
            target,
            fetch,
            handle,
            cancel,
            backoff=self._backoff_factory(),
            debounce_time=self.config.debounce_time,
            clock=self._clock,
        )
        threading.Thread(target=session.run, name=f"kvwatch-{target}", daemon=True).start()
        return handle
