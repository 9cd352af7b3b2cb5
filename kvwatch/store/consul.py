"""Consul KV store client over the HTTP API."""

import base64
import threading
from typing import Any
from urllib.parse import quote

import requests
from loguru import logger

from ..config import ConsulConfig
from .client import KVPair, QueryMeta, QueryOptions
from .errors import StoreCancelledError, StoreError, StoreResponseError, StoreTransportError

CONNECT_TIMEOUT = 10.0
DEFAULT_READ_TIMEOUT = 30.0


def _format_wait(seconds: float) -> str:
    """Format a wait time the way the HTTP API parses durations."""
    return f"{seconds:g}s"


def _decode_pair(raw: dict[str, Any]) -> KVPair:
    """Convert one JSON entry of the KV endpoint."""
    value = raw.get("Value")
    return KVPair(
        key=str(raw["Key"]),
        value=base64.b64decode(value) if value is not None else None,
        flags=int(raw.get("Flags") or 0),
        create_index=int(raw.get("CreateIndex") or 0),
        modify_index=int(raw.get("ModifyIndex") or 0),
        lock_index=int(raw.get("LockIndex") or 0),
        session=raw.get("Session") or None,
    )


def _parse_meta(headers: Any) -> QueryMeta:
    """Read query metadata from response headers."""
    try:
        last_index = int(headers.get("X-Consul-Index", "0"))
        last_contact = int(headers.get("X-Consul-LastContact", "0")) / 1000
    except ValueError as e:
        raise StoreError(f"Malformed response headers: {e}") from e
    known_leader = headers.get("X-Consul-KnownLeader", "true").lower() == "true"
    return QueryMeta(last_index=last_index, known_leader=known_leader, last_contact=last_contact)


class ConsulClient:
    """Blocking-query capable client for the ``/v1/kv`` endpoint."""

    def __init__(self, config: ConsulConfig | None = None, session: requests.Session | None = None):
        """Initialize the client with its config and an optional HTTP session."""
        self.config = config or ConsulConfig()
        self.session = session or requests.Session()

    def _params(self, options: QueryOptions) -> dict[str, str]:
        params: dict[str, str] = {}
        if options.allow_stale:
            params["stale"] = ""
        if options.require_consistent:
            params["consistent"] = ""
        if options.wait_index > 0:
            params["index"] = str(options.wait_index)
        if options.wait_time is not None:
            params["wait"] = _format_wait(options.wait_time)
        if self.config.datacenter:
            params["dc"] = self.config.datacenter
        if self.config.namespace:
            params["ns"] = self.config.namespace
        return params

    def _read_timeout(self, options: QueryOptions) -> float:
        if options.wait_time is None:
            return DEFAULT_READ_TIMEOUT
        # The server adds up to wait/16 of jitter to blocking queries.
        return options.wait_time + options.wait_time / 16 + self.config.request_timeout_margin

    def _send(self, url: str, kwargs: dict[str, Any], options: QueryOptions) -> requests.Response:
        """Run the request, giving up on it as soon as the options' cancel token fires."""
        cancel = options.cancel
        if cancel is None:
            return self.session.get(url, **kwargs)
        if cancel.cancelled:
            raise StoreCancelledError("request cancelled before it was sent")

        result: dict[str, Any] = {}
        finished = threading.Event()

        def worker() -> None:
            try:
                result["response"] = self.session.get(url, **kwargs)
            except Exception as e:
                result["error"] = e
            finally:
                finished.set()

        # A blocking query may be held by the server for the whole wait time;
        # an abandoned request finishes in the background.
        threading.Thread(target=worker, name=f"kvwatch-request-{url}", daemon=True).start()
        cancel.add_callback(finished.set)
        try:
            finished.wait()
        finally:
            cancel.remove_callback(finished.set)
        if "error" in result:
            raise result["error"]
        if "response" not in result:
            raise StoreCancelledError("request cancelled")
        return result["response"]

    def _request(self, path: str, options: QueryOptions, extra: dict[str, str] | None = None) -> requests.Response:
        url = f"{self.config.address}/v1/kv/{quote(path.lstrip('/'), safe='/')}"
        params = self._params(options) | (extra or {})
        headers = {"X-Consul-Token": self.config.token} if self.config.token else {}
        logger.trace("GET {} {}", url, params)
        kwargs = {"params": params, "headers": headers, "timeout": (CONNECT_TIMEOUT, self._read_timeout(options))}
        try:
            response = self._send(url, kwargs, options)
        except requests.exceptions.RequestException as e:
            raise StoreTransportError(str(e)) from e
        if response.status_code not in (200, 404):
            raise StoreResponseError(response.status_code, response.text)
        return response

    def _entries(self, response: requests.Response) -> list[dict[str, Any]]:
        if response.status_code == 404:
            return []
        try:
            body = response.json()
        except ValueError as e:
            raise StoreError(f"Malformed response body: {e}") from e
        if not isinstance(body, list):
            raise StoreError(f"Unexpected response body type: {type(body).__name__}")
        return body

    def get(self, key: str, options: QueryOptions) -> tuple[KVPair | None, QueryMeta]:
        """Read one key; ``None`` if the key does not exist."""
        response = self._request(key, options)
        meta = _parse_meta(response.headers)
        entries = self._entries(response)
        return (_decode_pair(entries[0]) if entries else None), meta

    def list(self, prefix: str, options: QueryOptions) -> tuple[list[KVPair], QueryMeta]:
        """Read every key under ``prefix``, ordered by key."""
        response = self._request(prefix, options, {"recurse": ""})
        meta = _parse_meta(response.headers)
        pairs = sorted((_decode_pair(raw) for raw in self._entries(response)), key=lambda p: p.key)
        return pairs, meta

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()
