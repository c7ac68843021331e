"""
Stake sync node.

A node owns one store and hands it to two users: the sync engine, which
writes chain events into it, and the API server, which reads active stakes
out of it. Both run on one event loop until a signal, a stop() call, or a
sync failure ends the node.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from dataclasses import dataclass, field
from pathlib import Path

from stake_sync.api import ApiServer, ApiServerConfig
from stake_sync.events import EventSource
from stake_sync.storage import InMemoryStakeStore, SQLiteStakeStore, StakeStore
from stake_sync.sync import DEFAULT_BATCH_SIZE, SyncService

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NodeConfig:
    """Everything needed to wire a node, already validated."""

    source: EventSource
    """Chain event source, shared by backfill and live streams."""

    start_block: int = field(default=0)
    """First block to backfill from."""

    batch_size: int = field(default=DEFAULT_BATCH_SIZE)
    """Blocks per backfill range query."""

    database_path: Path | str | None = field(default=None)
    """
    SQLite file holding records and the cursor.

    None keeps records in a plain in-memory store, lost on exit.
    \":memory:\" gives a throwaway SQLite database.
    """

    resume: bool = field(default=False)
    """Persist the backfill cursor and resume from it on restart."""

    api_config: ApiServerConfig | None = field(default=None)
    """Read API bind settings. None runs sync without an HTTP server."""


@dataclass(slots=True)
class Node:
    """
    Runs the sync engine and the read API over a shared store.

    The store is closed when run() returns or raises.
    """

    store: StakeStore
    """Written by the sync engine, read by the API server."""

    sync_service: SyncService
    """Mirrors chain events into the store."""

    api_server: ApiServer | None = field(default=None)
    """Serves active stakes, if configured."""

    _shutdown: asyncio.Event = field(default_factory=asyncio.Event)
    """Set by a signal, by stop(), or when sync ends on its own."""

    @classmethod
    def from_config(cls, config: NodeConfig) -> Node:
        """
        Open the store and wire the engine and API server to it.

        Args:
            config: Node configuration.

        Returns:
            A node ready to run.
        """
        store: StakeStore
        if config.database_path is None:
            store = InMemoryStakeStore()
        else:
            store = SQLiteStakeStore(config.database_path)

        sync_service = SyncService(
            source=config.source,
            store=store,
            start_height=config.start_block,
            batch_size=config.batch_size,
            resume=config.resume,
        )

        api_server = None
        if config.api_config is not None:
            api_server = ApiServer(
                config=config.api_config,
                store_getter=lambda: store,
                progress_getter=sync_service.get_progress,
            )

        return cls(store=store, sync_service=sync_service, api_server=api_server)

    async def run(self, *, install_signal_handlers: bool = True) -> None:
        """
        Sync and serve until shutdown.

        Returns once shutdown was requested and sync has drained its
        in-flight work.

        Args:
            install_signal_handlers: Route SIGINT/SIGTERM to stop().
                Tests and non-main threads pass False.

        Raises:
            StakeSyncError: If sync fails. The store is still closed.
        """
        if install_signal_handlers:
            self._install_signal_handlers()

        # Sync and the shutdown watcher release each other: a shutdown
        # request stops sync, and sync ending for any reason sets shutdown.
        try:
            if self.api_server is not None:
                await self.api_server.start()

            async with asyncio.TaskGroup() as tg:
                tg.create_task(self._run_sync())
                tg.create_task(self._wait_shutdown())
        except ExceptionGroup as group:
            raise group.exceptions[0]
        finally:
            if self.api_server is not None:
                await self.api_server.close()
            self.store.close()
            logger.info("Node stopped")

    def stop(self) -> None:
        """Request shutdown. run() returns after in-flight work drains."""
        self._shutdown.set()

    @property
    def is_running(self) -> bool:
        """False once shutdown was requested or sync ended."""
        return not self._shutdown.is_set()

    async def _run_sync(self) -> None:
        try:
            await self.sync_service.run()
        finally:
            self._shutdown.set()

    async def _wait_shutdown(self) -> None:
        await self._shutdown.wait()
        self.sync_service.stop()

    def _install_signal_handlers(self) -> None:
        """Map SIGINT and SIGTERM to stop(), where the loop allows it."""
        try:
            loop = asyncio.get_running_loop()
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.add_signal_handler(sig, self.stop)
        except (ValueError, RuntimeError, NotImplementedError):
            # Only the main thread may install handlers; Windows loops never can.
            logger.debug("Signal handlers not installed")
