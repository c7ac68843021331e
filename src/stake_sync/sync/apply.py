"""
Idempotent state transitions.

Every event is delivered at least once, possibly more, and the three event
kinds arrive in no particular order relative to each other. The store must
still converge on one final state per true event history.

Two rules make that work:

- **Stake is an upsert on the identity key.** Re-applying it rewrites the
  same fields at the same key.
- **Unstake is a conditional update on an active record.** Once the record
  is unstaked it no longer matches, so re-applying is a no-op. If its stake
  has not landed yet it also matches nothing: a documented no-op that only
  a re-delivery after the stake can fix.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from stake_sync import metrics
from stake_sync.events import RawEvent
from stake_sync.storage import StakeKey, StakeMatch, StakeStatus, StakeStore
from stake_sync.types import MalformedEventError, StoreWriteError

from .config import DEFAULT_RETRY_POLICY, RetryPolicy
from .normalize import normalize
from .operations import Operation, Stake, Unstake, UnstakeEarly
from .retry import retry_async

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class StakeApplier:
    """
    Applies operations to a store.

    Store writes that fail are retried one operation at a time. Because
    both writes are idempotent, a retry after a partially applied failure
    cannot double-apply anything.
    """

    store: StakeStore
    """Store receiving the transitions."""

    retry_policy: RetryPolicy = field(default=DEFAULT_RETRY_POLICY)
    """Backoff schedule for failed writes."""

    operations_applied: int = field(default=0)
    """Operations applied this session, including no-op unstakes."""

    unmatched_unstakes: int = field(default=0)
    """Unstakes that found no active stake."""

    malformed_skipped: int = field(default=0)
    """Raw events skipped because they could not be normalized."""

    async def apply_raw(self, event: RawEvent) -> bool:
        """
        Normalize and apply one raw event.

        Malformed events are logged, counted and skipped.

        Returns:
            True if the event was applied, False if it was skipped.
        """
        try:
            operation = normalize(event)
        except MalformedEventError as e:
            self.malformed_skipped += 1
            metrics.malformed_events.labels(kind=event.kind.value).inc()
            logger.warning("Skipping %s", e.message)
            return False

        await self.apply(operation)
        return True

    async def apply(self, operation: Operation) -> None:
        """
        Apply one operation.

        Args:
            operation: Normalized operation.

        Raises:
            StoreWriteError: If the write still fails once retries are spent.
        """
        match operation:
            case Stake(user=user, pool_id=pool_id, amount=amount, start_block=start_block):
                await self.apply_stake(user, pool_id, amount, start_block)

            case Unstake(user=user, pool_id=pool_id, amount=amount) | UnstakeEarly(
                user=user, pool_id=pool_id, amount=amount
            ):
                await self.apply_unstake(user, pool_id, amount)

        self.operations_applied += 1
        metrics.operations_applied.labels(kind=operation.kind.value).inc()

    async def apply_stake(self, user: str, pool_id: int, amount: str, start_block: int) -> None:
        """
        Record an active stake at (user, pool_id, start_block).

        Overwrites any record already at that key.
        """
        key = StakeKey(user=user, pool_id=pool_id, start_block=start_block)
        await retry_async(
            lambda: self.store.upsert(key, amount, StakeStatus.ACTIVE),
            policy=self.retry_policy,
            retry_on=StoreWriteError,
            on_retry=metrics.store_write_retries.inc,
            what=f"upsert {key}",
        )
        logger.debug("Stake %s pool %d amount %s at block %d", user, pool_id, amount, start_block)

    async def apply_unstake(self, user: str, pool_id: int, amount: str) -> int:
        """
        Mark the active stake matching (user, pool_id, amount) as unstaked.

        Returns:
            Number of records updated. 0 is not an error.
        """
        selector = StakeMatch(
            user=user, pool_id=pool_id, amount=amount, status=StakeStatus.ACTIVE
        )
        updated = await retry_async(
            lambda: self.store.conditional_update(selector, StakeStatus.UNSTAKED),
            policy=self.retry_policy,
            retry_on=StoreWriteError,
            on_retry=metrics.store_write_retries.inc,
            what=f"unstake {selector}",
        )

        if updated == 0:
            # Either already unstaked (a re-delivery) or the stake has not
            # been applied yet. Both are safe to drop here.
            self.unmatched_unstakes += 1
            metrics.unmatched_unstakes.inc()
            logger.debug(
                "Unstake %s pool %d amount %s matched no active stake", user, pool_id, amount
            )
        else:
            logger.debug("Unstake %s pool %d amount %s", user, pool_id, amount)

        return updated
