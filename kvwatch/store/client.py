"""Key-value store client protocol."""

from typing import Protocol

from pydantic import ConfigDict, Field

from ..common.cancel import CancelToken
from ..common.pydantic import FrozenBaseModel


class KVPair(FrozenBaseModel):
    """A single value record of the store."""

    key: str
    value: bytes | None = None
    flags: int = 0
    create_index: int = 0
    modify_index: int = 0
    lock_index: int = 0
    session: str | None = None


class QueryOptions(FrozenBaseModel):
    """Options of one read request.

    ``wait_index`` turns the read into a blocking query: the store holds the
    request until its index moves past ``wait_index`` or ``wait_time`` elapses.
    """

    model_config = ConfigDict(frozen=True, strict=True, arbitrary_types_allowed=True)

    allow_stale: bool = False
    require_consistent: bool = False
    wait_index: int = Field(default=0, ge=0)
    wait_time: float | None = Field(default=None, ge=0)
    cancel: CancelToken | None = None


class QueryMeta(FrozenBaseModel):
    """Metadata returned with every successful read."""

    last_index: int = Field(ge=0)
    known_leader: bool = True
    last_contact: float = 0.0


class StoreClient(Protocol):
    """Protocol for the remote key-value store."""

    def get(self, key: str, options: QueryOptions) -> tuple[KVPair | None, QueryMeta]:
        """Read one key; ``None`` if the key does not exist."""
        ...

    def list(self, prefix: str, options: QueryOptions) -> tuple[list[KVPair], QueryMeta]:
        """Read every key under ``prefix``, ordered by key."""
        ...
