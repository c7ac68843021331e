"""
Backfill synchronization over historical block ranges.

At startup the store is behind the chain by everything that happened since
the configured start height. Backfill replays that history.

How It Works
------------
1. Split ``[start_height, head]`` into closed ranges of ``batch_size`` blocks
2. For each range, query all three event kinds
3. Normalize and apply every event, Staked first
4. Advance the cursor to the end of the range

Ranges are processed strictly one after another. The next range is not
queried until every operation of the current one has been applied. This
bounds memory to one range of events and keeps request rate predictable.

Progress Semantics
------------------
A range is the unit of progress reporting, not of store mutation. If a
range fails half way, some of its operations are already in the store.
That is harmless: the retry re-applies them, and apply is idempotent. The
cursor only moves once the whole range is in.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterator, Sequence
from dataclasses import dataclass, field

from stake_sync import metrics
from stake_sync.events import APPLY_ORDER, EventKind, EventSource, RawEvent
from stake_sync.types import SourceQueryError

from .apply import StakeApplier
from .config import DEFAULT_BATCH_SIZE, DEFAULT_RETRY_POLICY, RetryPolicy
from .retry import retry_async

logger = logging.getLogger(__name__)


def batch_ranges(start: int, end: int, batch_size: int) -> Iterator[tuple[int, int]]:
    """
    Split a closed block interval into consecutive closed ranges.

    Ranges cover the interval with no gap and no overlap. The last range may
    be shorter than ``batch_size``.

    Args:
        start: First block (inclusive).
        end: Last block (inclusive). An ``end`` below ``start`` yields nothing.
        batch_size: Blocks per range, at least 1.

    Yields:
        ``(from_block, to_block)`` pairs.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")

    for from_block in range(start, end + 1, batch_size):
        yield from_block, min(from_block + batch_size - 1, end)


@dataclass(slots=True)
class BackfillSync:
    """
    Replays historical events from a start height up to a target height.

    BackfillSync owns the sync cursor while it runs. The SyncService reads
    the cursor afterwards to know where live streaming takes over.
    """

    source: EventSource
    """Chain event source to query."""

    applier: StakeApplier
    """Applies normalized operations to the store."""

    batch_size: int = field(default=DEFAULT_BATCH_SIZE)
    """Blocks per range query."""

    retry_policy: RetryPolicy = field(default=DEFAULT_RETRY_POLICY)
    """Backoff schedule for failed range queries."""

    on_batch_complete: Callable[[int], Awaitable[None]] | None = field(default=None)
    """Hook awaited with the new cursor after each range (cursor persistence)."""

    should_stop: Callable[[], bool] = field(default=lambda: False)
    """Polled between ranges; True ends backfill early."""

    cursor: int | None = field(default=None)
    """Last block fully processed. None until the first range completes."""

    async def run(self, start_height: int, target_height: int) -> int | None:
        """
        Process every range in ``[start_height, target_height]``.

        Args:
            start_height: First block to process.
            target_height: Last block to process, typically the chain head.

        Returns:
            The cursor after the last completed range, or None if there was
            nothing to process.

        Raises:
            SourceQueryError: If a range query still fails once retries are spent.
            StoreWriteError: If a store write still fails once retries are spent.
        """
        if start_height > target_height:
            logger.info(
                "Start height %d is past chain height %d, nothing to backfill",
                start_height,
                target_height,
            )
            return self.cursor

        logger.info("Backfilling blocks %d to %d", start_height, target_height)

        for from_block, to_block in batch_ranges(start_height, target_height, self.batch_size):
            if self.should_stop():
                logger.info("Backfill stopped before block %d", from_block)
                break

            with metrics.batch_processing_time.time():
                await self.process_batch(from_block, to_block)

            # Progress is recorded only once every operation of the range
            # has been applied.
            self.cursor = to_block
            metrics.cursor_height.set(float(to_block))
            if self.on_batch_complete is not None:
                await self.on_batch_complete(to_block)

            logger.info("Synced blocks %d to %d", from_block, to_block)

        return self.cursor

    async def process_batch(self, from_block: int, to_block: int) -> int:
        """
        Query, normalize and apply one closed range.

        Returns:
            Number of operations applied.
        """
        applied = 0
        for kind in APPLY_ORDER:
            events = await self._query(kind, from_block, to_block)
            for event in events:
                if await self.applier.apply_raw(event):
                    applied += 1
        return applied

    async def _query(self, kind: EventKind, from_block: int, to_block: int) -> Sequence[RawEvent]:
        """Fetch one kind over one range, retrying failures with backoff."""

        async def attempt() -> Sequence[RawEvent]:
            try:
                return await self.source.query_range(kind, from_block, to_block)
            except SourceQueryError:
                raise
            except Exception as e:
                # Adapters should raise SourceQueryError themselves. Anything
                # else from a read-only query is treated the same way.
                raise SourceQueryError(kind, from_block, to_block, str(e)) from e

        return await retry_async(
            attempt,
            policy=self.retry_policy,
            retry_on=SourceQueryError,
            on_retry=metrics.source_query_retries.inc,
            what=f"{kind.value} query [{from_block}, {to_block}]",
        )

