"""
Factory functions for constructing test fixtures.

Raw events are built the way web3 decodes them: integer arguments, the
emitting block and a log index.
"""

from __future__ import annotations

from typing import Any

from stake_sync.events import EventKind, RawEvent
from stake_sync.storage import StakeRecord, StakeStatus

USER_A = "0x" + "a" * 40
"""First test staker."""

USER_B = "0x" + "b" * 40
"""Second test staker."""

CONTRACT = "0x" + "c" * 40
"""Test staking contract address."""


def make_raw_event(
    kind: EventKind,
    args: dict[str, Any],
    block_number: int | None,
    log_index: int = 0,
) -> RawEvent:
    """Create a raw event with a deterministic transaction hash."""
    return RawEvent(
        kind=kind,
        args=args,
        block_number=block_number,
        transaction_hash=f"0x{block_number or 0:064x}",
        log_index=log_index,
    )


def make_staked(
    user: str = USER_A,
    pool_id: int = 1,
    amount: int | str = 1000,
    block: int | None = 10,
    log_index: int = 0,
) -> RawEvent:
    """Create a Staked event."""
    args = {"user": user, "poolId": pool_id, "amount": amount}
    return make_raw_event(EventKind.STAKED, args, block, log_index)


def make_unstaked(
    user: str = USER_A,
    pool_id: int = 1,
    amount: int | str = 1000,
    reward: int | str = 50,
    block: int | None = 20,
    log_index: int = 0,
) -> RawEvent:
    """Create an Unstaked event."""
    args = {"user": user, "poolId": pool_id, "amount": amount, "reward": reward}
    return make_raw_event(EventKind.UNSTAKED, args, block, log_index)


def make_unstaked_early(
    user: str = USER_A,
    pool_id: int = 1,
    amount: int | str = 1000,
    block: int | None = 20,
    log_index: int = 0,
) -> RawEvent:
    """Create an UnstakedEarly event."""
    args = {"user": user, "poolId": pool_id, "amount": amount}
    return make_raw_event(EventKind.UNSTAKED_EARLY, args, block, log_index)


def make_record(
    user: str = USER_A,
    pool_id: int = 1,
    amount: str = "1000",
    start_block: int = 10,
    status: StakeStatus = StakeStatus.ACTIVE,
) -> StakeRecord:
    """Create a stake record."""
    return StakeRecord(
        user=user,
        pool_id=pool_id,
        amount=amount,
        start_block=start_block,
        status=status,
    )
