"""
Sync engine for mirroring staking events into a store.

What Is Sync?
-------------
The staking contract emits three events: Staked, Unstaked and
UnstakedEarly. The store holds one record per stake lifecycle. Sync keeps
the two consistent: it replays history once at startup, then follows new
events for as long as the process runs.

The Challenge
-------------
1. **Rate limits**: History must be fetched in bounded block ranges
2. **Unreliable source**: Queries fail, streams drop, events repeat
3. **No cross-kind ordering**: An unstake may arrive before its stake

How It Works
------------
- Raw events are normalized into Stake, Unstake and UnstakeEarly operations
- Stake is an upsert on (user, pool_id, start_block)
- Unstake marks the matching active stake as unstaked, or does nothing
- Backfill advances a cursor only after a whole range is applied
"""

from __future__ import annotations

__all__ = [
    # Main service
    "SyncService",
    "SyncProgress",
    # States
    "SyncState",
    # Phases
    "BackfillSync",
    "LiveSync",
    "batch_ranges",
    # Apply
    "StakeApplier",
    "normalize",
    "Operation",
    "Stake",
    "Unstake",
    "UnstakeEarly",
    # Retry
    "RetryPolicy",
    "retry_async",
    # Configuration constants
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_RETRY_POLICY",
]

from .apply import StakeApplier
from .backfill import BackfillSync, batch_ranges
from .config import DEFAULT_BATCH_SIZE, DEFAULT_RETRY_POLICY, RetryPolicy
from .live import LiveSync
from .normalize import normalize
from .operations import Operation, Stake, Unstake, UnstakeEarly
from .retry import retry_async
from .service import SyncProgress, SyncService
from .states import SyncState
