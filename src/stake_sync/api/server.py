"""
HTTP read side of the stake mirror.

Routes:
- /api/active-stakes - Every stake record whose status is active
- /health - Liveness plus a snapshot of sync progress
- /metrics - Prometheus text exposition

The server only reads the store. It keeps answering with the best known
state while the sync engine retries or fails, since the two share nothing
but the store.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from aiohttp import web

from stake_sync.metrics import generate_metrics
from stake_sync.storage import StakeStatus

if TYPE_CHECKING:
    from stake_sync.storage import StakeStore
    from stake_sync.sync import SyncProgress

logger = logging.getLogger(__name__)

ACTIVE_STAKES_ENDPOINT: Final = "/api/active-stakes"
"""Path serving the active stake records."""

SERVICE_NAME: Final = "stake-sync"
"""Service identifier reported by /health."""


def _no_store() -> StakeStore | None:
    return None


def _no_progress() -> SyncProgress | None:
    return None


async def _handle_metrics(_request: web.Request) -> web.Response:
    """Serve the sync metrics registry."""
    return web.Response(
        body=generate_metrics(),
        content_type="text/plain; version=0.0.4",
        charset="utf-8",
    )


@dataclass(frozen=True, slots=True)
class ApiServerConfig:
    """Where the read API listens."""

    host: str = "0.0.0.0"
    """Bind address."""

    port: int = 3001
    """Bind port."""

    enabled: bool = True
    """When False, start() is a no-op and nothing listens."""


@dataclass(slots=True)
class ApiServer:
    """
    aiohttp application over a stake store.

    The store and the progress snapshot are read through getters on every
    request, so the server can start before either exists.
    """

    config: ApiServerConfig
    """Bind settings."""

    store_getter: Callable[[], StakeStore | None] = _no_store
    """Returns the store to read, or None while it is not open yet."""

    progress_getter: Callable[[], SyncProgress | None] = _no_progress
    """Returns the latest sync progress, or None without a sync engine."""

    _runner: web.AppRunner | None = field(default=None, init=False)
    """Runner owning the application while listening."""

    _site: web.TCPSite | None = field(default=None, init=False)
    """Listening TCP site."""

    @property
    def store(self) -> StakeStore | None:
        """Store currently served."""
        return self.store_getter()

    def build_app(self) -> web.Application:
        """Create the aiohttp application with all routes."""
        app = web.Application()
        app.add_routes(
            [
                web.get(ACTIVE_STAKES_ENDPOINT, self._handle_active_stakes),
                web.get("/health", self._handle_health),
                web.get("/metrics", _handle_metrics),
            ]
        )
        return app

    async def start(self) -> None:
        """Bind and start serving. Returns once the socket is listening."""
        if not self.config.enabled:
            logger.info("API server is disabled")
            return

        runner = web.AppRunner(self.build_app())
        await runner.setup()
        site = web.TCPSite(runner, self.config.host, self.config.port)
        try:
            await site.start()
        except BaseException:
            await runner.cleanup()
            raise

        self._runner, self._site = runner, site
        logger.info("Serving active stakes on http://%s:%d", self.config.host, self.config.port)

    async def close(self) -> None:
        """Stop listening and release the runner. Safe to call twice."""
        if self._runner is None:
            return

        runner, self._runner, self._site = self._runner, None, None
        await runner.cleanup()
        logger.info("API server stopped")

    async def _handle_active_stakes(self, _request: web.Request) -> web.Response:
        """
        List active stakes.

        Response: JSON array of records with fields user, poolId, amount,
        startBlock and status. Amounts are decimal strings.

        Status Codes:
            200 OK: Records returned (possibly an empty array).
            503 Service Unavailable: No store is open yet.
            500 Internal Server Error: Store read failed.
        """
        store = self.store
        if store is None:
            raise web.HTTPServiceUnavailable(reason="Store not open")

        try:
            records = await store.query_by_status(StakeStatus.ACTIVE)
        except Exception as e:
            logger.error("Failed to read active stakes: %s", e)
            raise web.HTTPInternalServerError(reason="Store read failed") from e

        return web.json_response([record.to_json() for record in records])

    async def _handle_health(self, _request: web.Request) -> web.Response:
        """
        Report liveness.

        The status is always "healthy" when the process answers. Sync
        failures show up in the embedded progress, not in the status code.
        """
        progress = self.progress_getter()
        return web.json_response(
            {
                "status": "healthy",
                "service": SERVICE_NAME,
                "sync": progress.to_json() if progress is not None else None,
            }
        )
