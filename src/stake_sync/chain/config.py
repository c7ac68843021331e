"""
Staking contract constants.

The ABI covers only the three events the mirror consumes. Functions are
never called, so they are not listed.
"""

from __future__ import annotations

from typing import Any, Final

DEFAULT_POLL_INTERVAL: Final[float] = 4.0
"""Seconds between head polls in a live subscription. Roughly ethers' default."""


def _event(name: str, *inputs: tuple[str, str, bool]) -> dict[str, Any]:
    return {
        "anonymous": False,
        "name": name,
        "type": "event",
        "inputs": [
            {"name": arg, "type": abi_type, "indexed": indexed}
            for arg, abi_type, indexed in inputs
        ],
    }


STAKING_ABI: Final[list[dict[str, Any]]] = [
    _event(
        "Staked",
        ("user", "address", True),
        ("poolId", "uint256", True),
        ("amount", "uint256", False),
    ),
    _event(
        "Unstaked",
        ("user", "address", True),
        ("poolId", "uint256", True),
        ("amount", "uint256", False),
        ("reward", "uint256", False),
    ),
    _event(
        "UnstakedEarly",
        ("user", "address", True),
        ("poolId", "uint256", True),
        ("amount", "uint256", False),
    ),
]
"""JSON ABI of the staking contract's events."""
