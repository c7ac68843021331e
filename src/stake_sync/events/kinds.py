"""Staking contract event kinds."""

from __future__ import annotations

from enum import Enum


class EventKind(Enum):
    """
    The three staking contract events the service mirrors.

    Values are the Solidity event names. They double as ABI lookup keys
    and as metric labels.
    """

    STAKED = "Staked"
    """``Staked(address indexed user, uint256 indexed poolId, uint256 amount)``"""

    UNSTAKED = "Unstaked"
    """``Unstaked(address indexed user, uint256 indexed poolId, uint256 amount, uint256 reward)``"""

    UNSTAKED_EARLY = "UnstakedEarly"
    """``UnstakedEarly(address indexed user, uint256 indexed poolId, uint256 amount)``"""

    @property
    def required_args(self) -> tuple[str, ...]:
        """Event arguments that must be present for the event to be usable."""
        return _REQUIRED_ARGS[self]


_REQUIRED_ARGS: dict[EventKind, tuple[str, ...]] = {
    EventKind.STAKED: ("user", "poolId", "amount"),
    EventKind.UNSTAKED: ("user", "poolId", "amount", "reward"),
    EventKind.UNSTAKED_EARLY: ("user", "poolId", "amount"),
}

APPLY_ORDER: tuple[EventKind, ...] = (
    EventKind.STAKED,
    EventKind.UNSTAKED,
    EventKind.UNSTAKED_EARLY,
)
"""Deterministic order in which a backfill batch applies the kinds."""
