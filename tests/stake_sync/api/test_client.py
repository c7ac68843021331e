"""Tests for the active stakes API client."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
from aiohttp import web

from stake_sync.api import ApiClientError, fetch_active_stakes
from stake_sync.storage import InMemoryStakeStore, StakeStatus
from stake_sync.sync import StakeApplier
from tests.stake_sync.api.conftest import ServerHarness
from tests.stake_sync.helpers import USER_A, free_port, make_record, make_staked


@pytest.fixture
async def bogus_server() -> AsyncIterator[str]:
    """Serve a payload that is JSON but not a list of stake records."""

    async def handler(_request: web.Request) -> web.Response:
        return web.json_response([{"user": USER_A, "amount": 5}])

    app = web.Application()
    app.router.add_get("/api/active-stakes", handler)
    runner = web.AppRunner(app)
    await runner.setup()
    port = free_port()
    await web.TCPSite(runner, "127.0.0.1", port).start()
    try:
        yield f"http://127.0.0.1:{port}"
    finally:
        await runner.cleanup()


class TestFetchActiveStakes:
    """Tests for fetch_active_stakes."""

    async def test_round_trips_records(
        self, harness: ServerHarness, memory_store: InMemoryStakeStore
    ) -> None:
        """Served records parse back into equal models."""
        await StakeApplier(store=memory_store).apply_raw(make_staked(amount=1000, block=10))

        records = await fetch_active_stakes(harness.url)

        assert records == [make_record(amount="1000", start_block=10)]
        assert records[0].status is StakeStatus.ACTIVE

    async def test_trailing_slash_in_url(self, harness: ServerHarness) -> None:
        """The base URL may end with a slash."""
        assert await fetch_active_stakes(harness.url + "/") == []

    async def test_http_error(self, harness: ServerHarness) -> None:
        """A 503 from the node is reported with its status code."""
        harness.store = None

        with pytest.raises(ApiClientError, match="HTTP error 503"):
            await fetch_active_stakes(harness.url)

    async def test_connection_refused(self) -> None:
        """Nothing listening is a network error."""
        with pytest.raises(ApiClientError, match="Network error"):
            await fetch_active_stakes(f"http://127.0.0.1:{free_port()}", timeout=1.0)

    async def test_invalid_payload(self, bogus_server: str) -> None:
        """A payload that is not a list of records is rejected."""
        with pytest.raises(ApiClientError, match="Invalid active stakes payload"):
            await fetch_active_stakes(bogus_server)
