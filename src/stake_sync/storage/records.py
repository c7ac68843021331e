"""
Stake records and the keys used to address them.

A stake record is one stake lifecycle: created active by a ``Staked``
event, flipped to unstaked by a matching ``Unstaked`` or ``UnstakedEarly``
event, never deleted.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import Field

from stake_sync.types import Amount, StrictBaseModel


class StakeStatus(Enum):
    """Lifecycle status of a stake record."""

    ACTIVE = "active"
    """Stake is still locked in its pool."""

    UNSTAKED = "unstaked"
    """Stake was withdrawn, on schedule or early."""


@dataclass(frozen=True, slots=True)
class StakeKey:
    """
    Identity of a stake record.

    The same user may stake the same amount into the same pool many times.
    The block the stake began at tells those lifecycles apart.
    """

    user: str
    pool_id: int
    start_block: int


@dataclass(frozen=True, slots=True)
class StakeMatch:
    """
    Selector for a conditional update.

    Unstake events do not carry the start block, so they address a record
    by its owner, pool and amount, restricted to one status.
    """

    user: str
    pool_id: int
    amount: str
    status: StakeStatus


class StakeRecord(StrictBaseModel):
    """
    One stake lifecycle as mirrored from the chain.

    Serializes with camelCase keys::

        {"user": "0x...", "poolId": 1, "amount": "1000", "startBlock": 10, "status": "active"}
    """

    user: str = Field(min_length=1)
    """Staker address as reported by the chain."""

    pool_id: int = Field(ge=0)
    """Staking pool identifier."""

    amount: Amount
    """Staked amount in base units, as a canonical decimal string."""

    start_block: int = Field(ge=0)
    """Block at which the stake began."""

    status: StakeStatus
    """Current lifecycle status."""

    @property
    def key(self) -> StakeKey:
        """Identity key of this record."""
        return StakeKey(user=self.user, pool_id=self.pool_id, start_block=self.start_block)

    def matches(self, match: StakeMatch) -> bool:
        """Check whether this record is selected by a conditional update."""
        return (
            self.user == match.user
            and self.pool_id == match.pool_id
            and self.amount == match.amount
            and self.status == match.status
        )

    def to_json(self) -> dict[str, object]:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)
