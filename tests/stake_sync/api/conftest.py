"""Fixtures running the API server on a local port."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest

from stake_sync.api import ApiServer, ApiServerConfig
from stake_sync.storage import InMemoryStakeStore, StakeStore
from stake_sync.sync import SyncProgress
from tests.stake_sync.helpers import free_port


class ServerHarness:
    """Running server plus the state its getters read."""

    def __init__(self) -> None:
        self.port = free_port()
        self.store: StakeStore | None = InMemoryStakeStore()
        self.progress: SyncProgress | None = None
        self.server = ApiServer(
            config=ApiServerConfig(host="127.0.0.1", port=self.port),
            store_getter=lambda: self.store,
            progress_getter=lambda: self.progress,
        )

    @property
    def url(self) -> str:
        """Base URL of the running server."""
        return f"http://127.0.0.1:{self.port}"


@pytest.fixture
async def harness() -> AsyncIterator[ServerHarness]:
    """Start a server backed by an empty in-memory store."""
    harness = ServerHarness()
    await harness.server.start()
    try:
        yield harness
    finally:
        await harness.server.close()


@pytest.fixture
def memory_store(harness: ServerHarness) -> InMemoryStakeStore:
    """The in-memory store behind the running server."""
    store = harness.store
    assert isinstance(store, InMemoryStakeStore)
    return store
