"""
Sync service orchestrator.

This is the main entry point for synchronization.

The Core Problem
----------------
The store mirrors staking state that lives on chain. At startup it is
behind by everything emitted since the configured start height, and from
then on it falls behind with every new block. The service closes both
gaps:

1. **Assessment**: Read the chain height
2. **Backfill**: Replay ``[start, height]`` in fixed-size ranges, then
   re-read the height and replay again until less than one range remains
3. **Live**: Subscribe to each event kind from ``height + 1`` onwards

Events may be delivered more than once, and kinds may interleave in any
order. Correctness rests on idempotent apply, not on delivery order.

State Machine
-------------
::

    IDLE --> BACKFILLING --> LIVE --> STOPPED
                  |           |
                  +-----------+--> FAILED

- **IDLE**: Constructed, not started.
- **BACKFILLING**: Replaying history range by range.
- **LIVE**: Following one stream per event kind.
- **STOPPED**: Shut down cleanly.
- **FAILED**: An error was surfaced to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from stake_sync import metrics
from stake_sync.events import EventSource
from stake_sync.storage import StakeStore
from stake_sync.types import StoreWriteError

from .apply import StakeApplier
from .backfill import BackfillSync
from .config import DEFAULT_BATCH_SIZE, DEFAULT_RETRY_POLICY, RetryPolicy
from .live import LiveSync
from .retry import retry_async
from .states import SyncState

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SyncProgress:
    """
    Current synchronization progress.

    Provides a snapshot of sync state for monitoring and the health endpoint.
    """

    state: SyncState
    """Current sync state machine state."""

    cursor: int | None = None
    """Last block fully processed by backfill."""

    chain_height: int | None = None
    """Latest chain height observed by the engine."""

    operations_applied: int = 0
    """Operations applied this session, including no-op unstakes."""

    malformed_skipped: int = 0
    """Raw events skipped because they could not be normalized."""

    unmatched_unstakes: int = 0
    """Unstakes that found no active stake."""

    def to_json(self) -> dict[str, Any]:
        """Render as a JSON-compatible dict with camelCase keys."""
        return {
            "state": self.state.name.lower(),
            "cursor": self.cursor,
            "chainHeight": self.chain_height,
            "operationsApplied": self.operations_applied,
            "malformedSkipped": self.malformed_skipped,
            "unmatchedUnstakes": self.unmatched_unstakes,
        }


@dataclass(slots=True)
class SyncService:
    """
    Main synchronization orchestrator.

    SyncService is the central coordinator for all sync activities. It:

    - Manages the sync state machine
    - Runs BackfillSync, then hands over to LiveSync
    - Optionally persists and resumes from the backfill cursor
    - Exposes progress for monitoring

    The service does not own its source or store. Both are injected, so
    tests can run the full engine against fakes.
    """

    source: EventSource
    """Chain event source."""

    store: StakeStore
    """Store receiving stake transitions."""

    start_height: int = field(default=0)
    """Configured first block to sync."""

    batch_size: int = field(default=DEFAULT_BATCH_SIZE)
    """Blocks per backfill range."""

    resume: bool = field(default=False)
    """
    Whether to persist the cursor and resume from it.

    When set, each completed backfill range stores its end block, and the
    next run starts from the block after the stored cursor if that is past
    the configured start height.
    """

    retry_policy: RetryPolicy = field(default=DEFAULT_RETRY_POLICY)
    """Backoff schedule for queries and writes."""

    _state: SyncState = field(default=SyncState.IDLE)
    """Current sync state."""

    _applier: StakeApplier | None = field(default=None)
    """Shared applier for both phases (created in __post_init__)."""

    _backfill: BackfillSync | None = field(default=None)
    """Backfill syncer instance (created when backfill starts)."""

    _live: LiveSync | None = field(default=None)
    """Live syncer instance (created when live mode starts)."""

    _chain_height: int | None = field(default=None)
    """Latest chain height read from the source."""

    _stopping: bool = field(default=False)
    """Set once shutdown is requested."""

    def __post_init__(self) -> None:
        """Initialize sync components."""
        self._applier = StakeApplier(store=self.store, retry_policy=self.retry_policy)

    @property
    def state(self) -> SyncState:
        """Current sync state."""
        return self._state

    @property
    def applier(self) -> StakeApplier:
        """Applier shared by backfill and live mode."""
        assert self._applier is not None
        return self._applier

    def get_progress(self) -> SyncProgress:
        """
        Get current sync progress.

        Returns:
            Snapshot of sync state and counters.
        """
        return SyncProgress(
            state=self._state,
            cursor=self._backfill.cursor if self._backfill is not None else None,
            chain_height=self._chain_height,
            operations_applied=self.applier.operations_applied,
            malformed_skipped=self.applier.malformed_skipped,
            unmatched_unstakes=self.applier.unmatched_unstakes,
        )

    async def run(self) -> None:
        """
        Backfill to the chain head, then follow live events until stopped.

        Returns normally only after a clean shutdown.

        Raises:
            SourceQueryError: If a backfill range cannot be fetched.
            StoreWriteError: If a store write cannot be applied.
            SubscriptionError: If a live stream ends or errors.
        """
        if self._stopping:
            self._transition_to(SyncState.STOPPED)
            return

        self._transition_to(SyncState.BACKFILLING)
        try:
            await self._run_phases()
        except Exception:
            logger.exception("Sync failed in state %s", self._state.name)
            self._transition_to(SyncState.FAILED)
            raise

        self._transition_to(SyncState.STOPPED)
        logger.info("Sync stopped")

    async def _run_phases(self) -> None:
        start = await self._resolve_start()
        height = await self._read_chain_height()

        self._backfill = BackfillSync(
            source=self.source,
            applier=self.applier,
            batch_size=self.batch_size,
            retry_policy=self.retry_policy,
            on_batch_complete=self._persist_cursor if self.resume else None,
            should_stop=lambda: self._stopping,
        )

        # The chain keeps growing while a long backfill runs. Catch up
        # until the streams are left with at most one range to poll.
        while True:
            await self._backfill.run(start, height)
            if self._stopping:
                return

            latest = await self._read_chain_height()
            if latest - height <= self.batch_size:
                break
            logger.info("Chain advanced to %d during backfill, catching up", latest)
            start, height = max(start, height + 1), latest

        # Backfill covered everything up to the last height it targeted, so
        # the streams pick up right after it. A start height past the chain
        # head is honoured as is.
        self._transition_to(SyncState.LIVE)
        self._live = LiveSync(
            source=self.source,
            applier=self.applier,
            from_block=max(start, height + 1),
        )
        if self._stopping:
            self._live.stop()
        await self._live.run()

    async def _read_chain_height(self) -> int:
        """Read the chain head, retrying transient failures."""
        height = await retry_async(
            self.source.current_height,
            policy=self.retry_policy,
            retry_on=Exception,
            on_retry=metrics.source_query_retries.inc,
            what="chain height query",
        )
        self._chain_height = height
        metrics.chain_height.set(float(height))
        return height

    def stop(self) -> None:
        """
        Request graceful shutdown.

        Backfill stops before its next range. Live streams stop after the
        events they are applying.
        """
        self._stopping = True
        if self._live is not None:
            self._live.stop()

    async def _resolve_start(self) -> int:
        """Pick the first block to backfill, honouring a persisted cursor."""
        start = self.start_height
        if not self.resume:
            return start

        cursor = await self.store.get_cursor()
        if cursor is not None and cursor + 1 > start:
            logger.info("Resuming from persisted cursor %d", cursor)
            metrics.cursor_height.set(float(cursor))
            return cursor + 1
        return start

    async def _persist_cursor(self, cursor: int) -> None:
        """Store the backfill cursor after a completed range."""
        await retry_async(
            lambda: self.store.put_cursor(cursor),
            policy=self.retry_policy,
            retry_on=StoreWriteError,
            on_retry=metrics.store_write_retries.inc,
            what=f"cursor write {cursor}",
        )

    def _transition_to(self, new_state: SyncState) -> None:
        """
        Transition to a new sync state.

        Args:
            new_state: Target state.

        Raises:
            ValueError: If transition is not allowed.
        """
        if not self._state.can_transition_to(new_state):
            raise ValueError(f"Invalid state transition: {self._state.name} -> {new_state.name}")

        logger.info("Sync state %s -> %s", self._state.name, new_state.name)
        self._state = new_state
