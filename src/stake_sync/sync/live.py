"""
Live synchronization over per-kind event streams.

Once backfill reaches the chain head, the engine follows new events as
they are emitted. Each event kind gets its own subscription and its own
task. Within a stream, events are applied strictly in arrival order, one
at a time. Across streams there is no ordering: apply is idempotent per
identity key, so interleaving is safe.

Stream Termination
------------------
A live stream is meant to run forever. If one ends or raises, the
connection to the node is gone. That is never retried here: the failure
is raised as SubscriptionError, which cancels the sibling streams and
reaches the process boundary for a supervised restart.

Shutdown
--------
``stop()`` lets each stream finish the event it is applying, then ends
the stream while it waits for the next one.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator, AsyncIterator
from dataclasses import dataclass, field

from stake_sync import metrics
from stake_sync.events import APPLY_ORDER, EventKind, EventSource, RawEvent
from stake_sync.types import SubscriptionError

from .apply import StakeApplier

logger = logging.getLogger(__name__)


async def _next_event(stream: AsyncIterator[RawEvent]) -> RawEvent | None:
    return await anext(stream, None)


@dataclass(slots=True)
class LiveSync:
    """Follows one subscription per event kind until stopped or failed."""

    source: EventSource
    """Chain event source to subscribe to."""

    applier: StakeApplier
    """Applies normalized operations to the store."""

    from_block: int | None = field(default=None)
    """First block to stream. Set to the block after the backfill cursor."""

    events_received: int = field(default=0)
    """Raw events pulled from all streams, including malformed ones."""

    _stop: asyncio.Event = field(default_factory=asyncio.Event)
    """Set when shutdown is requested."""

    async def run(self) -> None:
        """
        Follow every event kind until stopped.

        Raises:
            SubscriptionError: If any stream ends or errors while not stopping.
            StoreWriteError: If a store write still fails once retries are spent.
        """
        logger.info("Following live events from block %s", self.from_block)
        try:
            async with asyncio.TaskGroup() as tg:
                for kind in APPLY_ORDER:
                    tg.create_task(self._follow(kind), name=f"live-{kind.value}")
        except ExceptionGroup as group:
            # The first failure cancels the other streams. Report it alone.
            raise group.exceptions[0]

    def stop(self) -> None:
        """Request shutdown after in-flight applies complete."""
        self._stop.set()

    @property
    def is_stopping(self) -> bool:
        """Check if shutdown was requested."""
        return self._stop.is_set()

    async def _follow(self, kind: EventKind) -> None:
        """Apply events of one kind in arrival order."""
        stream = self.source.subscribe(kind, from_block=self.from_block)
        stop_wait = asyncio.create_task(self._stop.wait())
        next_event: asyncio.Task[RawEvent | None] | None = None
        try:
            while True:
                next_event = asyncio.create_task(_next_event(stream))
                await asyncio.wait({next_event, stop_wait}, return_when=asyncio.FIRST_COMPLETED)

                # A read that completed alongside stop() is still applied.
                if not next_event.done():
                    logger.info("%s stream stopped", kind.value)
                    return

                event = self._receive(kind, next_event)
                self.events_received += 1

                # Not interrupted by stop(): an event being applied is
                # always applied in full.
                await self.applier.apply_raw(event)
        finally:
            # The stream read must be settled before the generator can close.
            pending = {task for task in (next_event, stop_wait) if task is not None}
            for task in pending:
                task.cancel()
            await asyncio.wait(pending)
            if isinstance(stream, AsyncGenerator):
                await stream.aclose()

    def _receive(self, kind: EventKind, next_event: asyncio.Task[RawEvent | None]) -> RawEvent:
        """Unwrap a completed stream read, turning stream loss into SubscriptionError."""
        try:
            event = next_event.result()
        except SubscriptionError as e:
            error = e
        except Exception as e:
            error = SubscriptionError(kind, str(e) or type(e).__name__)
            error.__cause__ = e
        else:
            if event is not None:
                return event
            error = SubscriptionError(kind, "stream ended")

        metrics.subscription_failures.labels(kind=kind.value).inc()
        logger.error("%s", error.message)
        raise error
