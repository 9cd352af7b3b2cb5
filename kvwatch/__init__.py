"""Watch keys and subtrees of a key-value store for changes."""

from loguru import logger

from .common.cancel import CancelToken
from .config import ConsulConfig, WatcherConfig
from .store.client import KVPair, QueryMeta, QueryOptions, StoreClient
from .store.consul import ConsulClient
from .store.errors import ErrorKind, StoreError, StoreResponseError, StoreTransportError, classify_error
from .watchers.kv_watcher import Watcher
from .watchers.session import DEFAULT_WAIT_TIME
from .watchers.watcher import WatchHandle, WatchOutcome

logger.disable("kvwatch")

__all__ = [
    "DEFAULT_WAIT_TIME",
    "CancelToken",
    "ConsulClient",
    "ConsulConfig",
    "ErrorKind",
    "KVPair",
    "QueryMeta",
    "QueryOptions",
    "StoreClient",
    "StoreError",
    "StoreResponseError",
    "StoreTransportError",
    "WatchHandle",
    "WatchOutcome",
    "Watcher",
    "WatcherConfig",
    "classify_error",
]
