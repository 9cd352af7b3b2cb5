"""Test suite for the command line entry point."""

import json

import pytest

from kvwatch import __main__ as cli
from kvwatch.store.client import KVPair
from kvwatch.store.errors import StoreResponseError
from tests.test_utils import FakeStoreClient, meta, pair


class TestSnapshotToJson:
    """Test snapshot serialization."""

    def test_missing_key(self):
        assert cli.snapshot_to_json(None) == "null"

    def test_single_pair(self):
        data = json.loads(cli.snapshot_to_json(pair("a", "hello", 4)))

        assert data["key"] == "a"
        assert data["value"] == "hello"
        assert data["modify_index"] == 4

    def test_binary_value_is_hex_encoded(self):
        data = json.loads(cli.snapshot_to_json(KVPair(key="bin", value=b"\xff\x00")))

        assert data["value"] == "ff00"
        assert data["encoding"] == "hex"

    def test_pair_list(self):
        data = json.loads(cli.snapshot_to_json([pair("a", "1"), pair("b", "2")]))

        assert [d["key"] for d in data] == ["a", "b"]


class TestMain:
    """Test argument handling and the watch loop of the CLI."""

    def test_parser(self):
        args = cli.build_parser().parse_args(["tree", "svc/", "--debounce-time", "1.5"])

        assert args.mode == "tree"
        assert args.target == "svc/"
        assert args.debounce_time == 1.5
        assert args.retry_time == 0.5

    def test_parser_rejects_unknown_mode(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["queue", "x"])

    def test_command_line_overrides_environment(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("CONSUL_HTTP_ADDR", "env-host:8500")
        monkeypatch.setenv("CONSUL_HTTP_TOKEN", "env-token")

        args = cli.build_parser().parse_args(["key", "k", "--address", "cli-host:8500"])
        config = cli.build_consul_config(args)

        assert config.address == "http://cli-host:8500"
        assert config.token == "env-token"

    def test_prints_snapshots_and_reports_failure(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ):
        client = FakeStoreClient([(pair("k", "v1"), meta(1)), StoreResponseError(403, "denied")])
        monkeypatch.setattr(cli, "ConsulClient", lambda config: client)

        exit_code = cli.main(["key", "k", "--log-level", "CRITICAL"])

        lines = capsys.readouterr().out.splitlines()
        assert exit_code == 1
        assert [json.loads(line)["value"] for line in lines] == ["v1"]
        assert client.closed
