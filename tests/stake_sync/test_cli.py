"""Tests for the command line entry point."""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from stake_sync.__main__ import (
    ColoredFormatter,
    build_node_config,
    build_parser,
    load_settings,
    main,
)
from stake_sync.chain import Web3EventSource
from stake_sync.events import EventKind
from stake_sync.settings import ENV_VARS, SyncSettings
from stake_sync.types import SubscriptionError
from tests.stake_sync.helpers import CONTRACT

RPC = "http://localhost:8545"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the caller's environment out of settings resolution."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestParser:
    """Tests for argument parsing."""

    def test_flags_map_to_settings_fields(self) -> None:
        """Flags land on the destinations load_settings reads."""
        args = build_parser().parse_args(
            [
                "--rpc-url",
                RPC,
                "--contract",
                CONTRACT,
                "--start-block",
                "5",
                "--batch-size",
                "20",
                "--database",
                ":memory:",
                "--resume",
                "--host",
                "127.0.0.1",
                "--port",
                "8080",
            ]
        )

        assert args.contract_address == CONTRACT
        assert args.start_block == 5
        assert args.batch_size == 20
        assert args.database_path == ":memory:"
        assert args.resume is True
        assert args.api_host == "127.0.0.1"
        assert args.api_port == 8080

    def test_unset_flags_are_none(self) -> None:
        """Flags left out do not shadow the environment or the file."""
        args = build_parser().parse_args([])

        assert args.config is None
        assert args.resume is None
        assert args.start_block is None


class TestLoadSettings:
    """Tests for merging flags with the environment and a file."""

    def test_flags_over_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """A flag beats the environment variable for the same field."""
        monkeypatch.setenv("RPC_URL", RPC)
        monkeypatch.setenv("CONTRACT_ADDRESS", CONTRACT)
        monkeypatch.setenv("PORT", "4000")

        settings = load_settings(build_parser().parse_args(["--port", "5000"]))

        assert settings.api_port == 5000
        assert settings.rpc_url == RPC

    def test_config_file(self, tmp_path: Path) -> None:
        """The config flag reads a YAML file."""
        path = tmp_path / "stake-sync.yaml"
        path.write_text(f"rpcUrl: {RPC}\ncontractAddress: '{CONTRACT}'\nstartBlock: 77\n")

        settings = load_settings(build_parser().parse_args(["--config", str(path)]))

        assert settings.start_block == 77


class TestBuildNodeConfig:
    """Tests for translating settings into node wiring."""

    def test_wires_web3_source_and_api(self) -> None:
        """Settings reach the source, the sync engine and the API server."""
        settings = SyncSettings(
            rpc_url=RPC,
            contract_address=CONTRACT,
            start_block=9,
            batch_size=250,
            poll_interval=1.5,
            database_path=":memory:",
            resume=True,
            api_host="127.0.0.1",
            api_port=4001,
        )

        config = build_node_config(settings)

        assert isinstance(config.source, Web3EventSource)
        assert config.source.poll_interval == 1.5
        assert config.source.max_range == 250
        assert (config.start_block, config.batch_size, config.resume) == (9, 250, True)
        assert config.database_path == ":memory:"
        assert config.api_config is not None
        assert (config.api_config.host, config.api_config.port) == ("127.0.0.1", 4001)


class TestMain:
    """Tests for the main entry point."""

    def test_runs_node_with_settings(self) -> None:
        """Valid settings start the node."""
        with (
            patch("stake_sync.__main__.setup_logging"),
            patch("stake_sync.__main__.run_node", new_callable=AsyncMock) as run_node,
        ):
            main(["--rpc-url", RPC, "--contract", CONTRACT, "--start-block", "3"])

        run_node.assert_awaited_once()
        settings = run_node.await_args.args[0]
        assert settings.start_block == 3

    def test_sync_failure_exits_non_zero(self, caplog: pytest.LogCaptureFixture) -> None:
        """A sync failure becomes exit status 1 without being logged again."""
        failure = SubscriptionError(EventKind.STAKED, "stream ended")
        with (
            patch("stake_sync.__main__.setup_logging"),
            patch("stake_sync.__main__.run_node", new=AsyncMock(side_effect=failure)),
            pytest.raises(SystemExit) as exc_info,
        ):
            main(["--rpc-url", RPC, "--contract", CONTRACT])

        assert exc_info.value.code == 1
        assert not [r for r in caplog.records if r.name == "stake_sync.__main__"]

    def test_invalid_settings_are_usage_errors(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Missing required settings exit with argparse's usage status."""
        with (
            patch("stake_sync.__main__.setup_logging"),
            patch("stake_sync.__main__.run_node", new_callable=AsyncMock) as run_node,
            pytest.raises(SystemExit) as exc_info,
        ):
            main(["--rpc-url", RPC])

        assert exc_info.value.code == 2
        assert "invalid settings" in capsys.readouterr().err
        run_node.assert_not_awaited()

    def test_keyboard_interrupt_exits_cleanly(self) -> None:
        """Ctrl+C during the run is not an error."""
        with (
            patch("stake_sync.__main__.setup_logging"),
            patch("stake_sync.__main__.run_node", new=AsyncMock(side_effect=KeyboardInterrupt)),
        ):
            main(["--rpc-url", RPC, "--contract", CONTRACT])


class TestColoredFormatter:
    """Tests for the log formatter."""

    def test_includes_level_name_and_message(self) -> None:
        """Colors wrap the usual fields without dropping any."""
        record = logging.LogRecord(
            "stake_sync.sync", logging.WARNING, __file__, 1, "retrying %s", ("query",), None
        )

        line = ColoredFormatter().format(record)

        assert "WARNING" in line
        assert "stake_sync.sync" in line
        assert "retrying query" in line
        assert ColoredFormatter.YELLOW in line
