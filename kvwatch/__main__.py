"""Command line entry point."""

import argparse
import json
import signal
import sys
from typing import Any

from loguru import logger

from .common.log import configure_logging
from .config import ConsulConfig, WatcherConfig
from .store.client import KVPair
from .store.consul import ConsulClient
from .watchers.kv_watcher import Watcher
from .watchers.watcher import WatchHandle, WatchOutcome


def pair_to_json(pair: KVPair) -> dict[str, Any]:
    """Render a pair as JSON, decoding the value as UTF-8 when possible."""
    data = pair.model_dump(exclude={"value"})
    if pair.value is None:
        data["value"] = None
    else:
        try:
            data["value"] = pair.value.decode("utf-8")
        except UnicodeDecodeError:
            data["value"] = pair.value.hex()
            data["encoding"] = "hex"
    return data


def snapshot_to_json(snapshot: KVPair | list[KVPair] | None) -> str:
    """Serialize a snapshot to a single JSON line."""
    if snapshot is None:
        return json.dumps(None)
    if isinstance(snapshot, KVPair):
        return json.dumps(pair_to_json(snapshot))
    return json.dumps([pair_to_json(p) for p in snapshot])


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(prog="kvwatch", description="Watch Consul keys and prefixes for changes")
    parser.add_argument("mode", choices=["key", "tree"], help="Watch a single key or every key under a prefix")
    parser.add_argument("target", help="Key or prefix to watch")
    parser.add_argument("--address", help="Consul HTTP address (default: $CONSUL_HTTP_ADDR or local agent)")
    parser.add_argument("--token", help="ACL token (default: $CONSUL_HTTP_TOKEN)")
    parser.add_argument("--retry-time", type=float, default=0.5, help="Initial retry delay in seconds")
    parser.add_argument("--debounce-time", type=float, default=0.0, help="Debounce duration in seconds")
    parser.add_argument("--log-level", default="WARNING", help="Log level")
    return parser


def build_consul_config(args: argparse.Namespace) -> ConsulConfig:
    """Merge command line overrides into the environment config."""
    config = ConsulConfig.from_env()
    overrides = {k: v for k, v in {"address": args.address, "token": args.token}.items() if v}
    return ConsulConfig.model_validate(config.model_dump() | overrides) if overrides else config


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    client = ConsulClient(build_consul_config(args))
    watcher = Watcher.from_config(client, WatcherConfig(retry_time=args.retry_time, debounce_time=args.debounce_time))
    handle: WatchHandle[Any] = watcher.watch_key(args.target) if args.mode == "key" else watcher.watch_tree(args.target)

    previous = {sig: signal.signal(sig, lambda *_: handle.cancel()) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        for snapshot in handle:
            print(snapshot_to_json(snapshot), flush=True)
    finally:
        handle.cancel()
        handle.join()
        client.close()
        for sig, handler in previous.items():
            signal.signal(sig, handler)

    if handle.outcome is WatchOutcome.FAILED:
        logger.error("Watch on {!r} failed: {}", args.target, handle.error)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
