"""
Stake sync node CLI entry point.

Mirror a staking contract's events into a local store and serve the
active stakes over HTTP.

Usage::

    python -m stake_sync --rpc-url http://localhost:8545 --contract 0xAbC...
    python -m stake_sync --config stake-sync.yaml --resume
    RPC_URL=... CONTRACT_ADDRESS=... START_BLOCK=123 stake-sync

Options:
    --config       Path to a YAML settings file
    --rpc-url      JSON-RPC endpoint (env: RPC_URL)
    --contract     Staking contract address (env: CONTRACT_ADDRESS)
    --start-block  First block to backfill (env: START_BLOCK, default: 0)
    --batch-size   Blocks per backfill query (env: BATCH_SIZE, default: 1000)
    --database     SQLite file (env: DATABASE_PATH, default: stake-sync.db)
    --resume       Resume backfill from the persisted cursor
    --host         API bind address (env: API_HOST, default: 0.0.0.0)
    --port         API port (env: PORT, default: 3001)

Exit status is non-zero when sync fails, so a supervisor can restart the
node. Restarting is always safe: applying events is idempotent.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

import yaml

from stake_sync.api import ApiServerConfig
from stake_sync.chain import Web3EventSource
from stake_sync.node import Node, NodeConfig
from stake_sync.settings import SyncSettings
from stake_sync.types import StakeSyncError

logger = logging.getLogger(__name__)


class ColoredFormatter(logging.Formatter):
    """Single-line log records with the level, time and logger name colored."""

    GREY = "\x1b[38;5;244m"
    BLUE = "\x1b[38;5;39m"
    GREEN = "\x1b[38;5;40m"
    YELLOW = "\x1b[38;5;220m"
    RED = "\x1b[38;5;196m"
    BOLD_RED = "\x1b[38;5;196;1m"
    CYAN = "\x1b[38;5;51m"
    RESET = "\x1b[0m"

    LEVEL_COLORS = {
        logging.DEBUG: GREY,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: BOLD_RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        """Render one record, appending the traceback if there is one."""
        color = self.LEVEL_COLORS.get(record.levelno, self.RESET)

        line = (
            f"{self.CYAN}{self.formatTime(record, self.datefmt)}{self.RESET} "
            f"{color}{record.levelname:8}{self.RESET} "
            f"{self.BLUE}{record.name}{self.RESET}: {record.getMessage()}"
        )
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(verbose: bool = False, no_color: bool = False) -> None:
    """Install one stderr handler on the root logger."""
    level = logging.DEBUG if verbose else logging.INFO

    handler = logging.StreamHandler()
    handler.setLevel(level)

    if no_color:
        formatter = logging.Formatter(
            "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        formatter = ColoredFormatter(datefmt="%Y-%m-%d %H:%M:%S")

    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)

    # web3 and aiohttp log every request at DEBUG.
    for noisy in ("web3", "aiohttp.access"):
        logging.getLogger(noisy).setLevel(max(level, logging.INFO))


def build_node_config(settings: SyncSettings) -> NodeConfig:
    """
    Translate validated settings into a node configuration.

    Args:
        settings: Merged settings.

    Returns:
        Configuration with a web3 event source for the staking contract.
    """
    source = Web3EventSource.from_rpc_url(
        settings.rpc_url,
        settings.contract_address,
        poll_interval=settings.poll_interval,
        max_range=settings.batch_size,
    )
    return NodeConfig(
        source=source,
        start_block=settings.start_block,
        batch_size=settings.batch_size,
        database_path=settings.database_path,
        resume=settings.resume,
        api_config=ApiServerConfig(host=settings.api_host, port=settings.api_port),
    )


async def run_node(settings: SyncSettings) -> None:
    """
    Run the stake sync node until shutdown or failure.

    Args:
        settings: Merged settings.

    Raises:
        StakeSyncError: If sync fails.
    """
    logger.info(
        "Syncing contract %s from block %d via %s",
        settings.contract_address,
        settings.start_block,
        settings.rpc_url,
    )
    node = Node.from_config(build_node_config(settings))
    await node.run()


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="stake-sync",
        description="Staking event mirror",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a YAML settings file",
    )
    parser.add_argument("--rpc-url", default=None, help="JSON-RPC endpoint of the chain node")
    parser.add_argument(
        "--contract",
        default=None,
        dest="contract_address",
        help="Staking contract address",
    )
    parser.add_argument("--start-block", type=int, default=None, help="First block to backfill")
    parser.add_argument("--batch-size", type=int, default=None, help="Blocks per backfill query")
    parser.add_argument(
        "--database",
        default=None,
        dest="database_path",
        help="SQLite database file (\":memory:\" for a throwaway store)",
    )
    parser.add_argument(
        "--resume",
        action="store_true",
        default=None,
        help="Resume backfill from the persisted cursor",
    )
    parser.add_argument("--host", default=None, dest="api_host", help="API bind address")
    parser.add_argument("--port", type=int, default=None, dest="api_port", help="API port")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored logging output",
    )
    return parser


def load_settings(args: argparse.Namespace) -> SyncSettings:
    """Merge the config file, the environment and the parsed flags."""
    return SyncSettings.load(
        args.config,
        rpc_url=args.rpc_url,
        contract_address=args.contract_address,
        start_block=args.start_block,
        batch_size=args.batch_size,
        database_path=args.database_path,
        resume=args.resume,
        api_host=args.api_host,
        api_port=args.api_port,
    )


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose, args.no_color)

    try:
        settings = load_settings(args)
    except (OSError, ValueError, yaml.YAMLError) as e:
        parser.error(f"invalid settings: {e}")

    try:
        asyncio.run(run_node(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted, shut down")
    except StakeSyncError:
        # Already logged with its traceback where sync failed.
        sys.exit(1)


if __name__ == "__main__":
    main()
