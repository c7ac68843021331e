"""
Normalized operations derived from raw chain events.

Operations are what the store understands. They carry only the fields a
state transition needs, already validated and in canonical form.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from stake_sync.events import EventKind


@dataclass(frozen=True, slots=True)
class Stake:
    """Open a stake lifecycle at (user, pool_id, start_block)."""

    kind: ClassVar[EventKind] = EventKind.STAKED

    user: str
    pool_id: int
    amount: str
    start_block: int


@dataclass(frozen=True, slots=True)
class Unstake:
    """Close the active stake matching (user, pool_id, amount) on schedule."""

    kind: ClassVar[EventKind] = EventKind.UNSTAKED

    user: str
    pool_id: int
    amount: str


@dataclass(frozen=True, slots=True)
class UnstakeEarly:
    """Close the active stake matching (user, pool_id, amount) before term."""

    kind: ClassVar[EventKind] = EventKind.UNSTAKED_EARLY

    user: str
    pool_id: int
    amount: str


Operation = Stake | Unstake | UnstakeEarly
"""Union of all operations for pattern matching dispatch."""
