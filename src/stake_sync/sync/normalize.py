"""
Raw event normalization.

Turns the loosely-shaped events a source delivers into typed operations.

Sources are unreliable in shape as well as in timing. A node may omit the
block number of a pending log, a decoder may hand back a hex string where
an integer was expected, a misconfigured ABI may drop an argument. None of
that may crash a stream, so every check here raises MalformedEventError,
which callers log and skip.

Amounts are canonicalized here, once. Unstake events find their stake by
comparing amount strings, so both sides must agree on the representation.
"""

from __future__ import annotations

from typing import Any

from stake_sync.events import EventKind, RawEvent
from stake_sync.types import MalformedEventError, normalize_amount

from .operations import Operation, Stake, Unstake, UnstakeEarly


def normalize(event: RawEvent) -> Operation:
    """
    Convert a raw event into an operation.

    Args:
        event: Event as delivered by the source.

    Returns:
        The operation the event stands for.

    Raises:
        MalformedEventError: If a required field is missing or invalid.
    """
    # Every required argument must be present before any is interpreted.
    #
    # Reporting the first missing name gives a precise log line.
    for name in event.kind.required_args:
        if name not in event.args or event.args[name] is None:
            raise MalformedEventError(event, name, "missing")

    user = _user(event)
    pool_id = _non_negative_int(event, "poolId", event.args["poolId"])
    amount = _amount(event, "amount")

    match event.kind:
        case EventKind.STAKED:
            # The emitting block is the stake's identity. Without it the
            # record cannot be keyed.
            if event.block_number is None:
                raise MalformedEventError(event, "blockNumber", "missing")
            start_block = _non_negative_int(event, "blockNumber", event.block_number)
            return Stake(user=user, pool_id=pool_id, amount=amount, start_block=start_block)

        case EventKind.UNSTAKED:
            # The reward is not mirrored, but a log without it was decoded
            # against the wrong ABI and cannot be trusted.
            _amount(event, "reward")
            return Unstake(user=user, pool_id=pool_id, amount=amount)

        case EventKind.UNSTAKED_EARLY:
            return UnstakeEarly(user=user, pool_id=pool_id, amount=amount)


def _user(event: RawEvent) -> str:
    """Validate the staker address."""
    user = event.args["user"]
    if not isinstance(user, str) or not user.strip():
        raise MalformedEventError(event, "user", f"expected address string, got {user!r}")
    return user.strip()


def _non_negative_int(event: RawEvent, name: str, value: Any) -> int:
    """Validate a non-negative integer field, accepting decimal strings."""
    try:
        return int(normalize_amount(value))
    except ValueError as e:
        raise MalformedEventError(event, name, str(e)) from e


def _amount(event: RawEvent, name: str) -> str:
    """Validate and canonicalize an amount argument."""
    try:
        return normalize_amount(event.args[name])
    except ValueError as e:
        raise MalformedEventError(event, name, str(e)) from e
