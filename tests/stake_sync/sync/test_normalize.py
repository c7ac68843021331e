"""Tests for raw event normalization."""

from __future__ import annotations

import pytest

from stake_sync.events import EventKind
from stake_sync.sync import Stake, Unstake, UnstakeEarly, normalize
from stake_sync.types import MalformedEventError
from tests.stake_sync.helpers import (
    USER_A,
    make_raw_event,
    make_staked,
    make_unstaked,
    make_unstaked_early,
)


class TestNormalizeWellFormed:
    """Well-formed events map to their operations."""

    def test_staked_uses_block_as_start(self) -> None:
        """The emitting block becomes the stake's start block."""
        operation = normalize(make_staked(amount=1000, block=10))

        assert operation == Stake(user=USER_A, pool_id=1, amount="1000", start_block=10)

    def test_unstaked_drops_reward(self) -> None:
        """The reward is validated but not carried."""
        operation = normalize(make_unstaked(amount=1000, reward=50))

        assert operation == Unstake(user=USER_A, pool_id=1, amount="1000")

    def test_unstaked_early(self) -> None:
        """UnstakedEarly has the same shape as Unstake."""
        operation = normalize(make_unstaked_early(amount=1000))

        assert operation == UnstakeEarly(user=USER_A, pool_id=1, amount="1000")
        assert operation.kind is EventKind.UNSTAKED_EARLY

    def test_string_and_int_amounts_agree(self) -> None:
        """Decimal strings and ints of the same value normalize identically."""
        assert normalize(make_staked(amount="0001000")) == normalize(make_staked(amount=1000))

    def test_amount_beyond_float_precision(self) -> None:
        """uint256 amounts keep every digit."""
        amount = 10**30 + 1
        operation = normalize(make_staked(amount=amount))

        assert isinstance(operation, Stake)
        assert operation.amount == str(amount)

    def test_unstake_without_block_is_fine(self) -> None:
        """Only Staked needs the block number."""
        assert normalize(make_unstaked(block=None)) == Unstake(
            user=USER_A, pool_id=1, amount="1000"
        )


class TestNormalizeMalformed:
    """Malformed events raise MalformedEventError naming the field."""

    @pytest.mark.parametrize("missing", ["user", "poolId", "amount"])
    def test_missing_required_argument(self, missing: str) -> None:
        """Each required argument is checked."""
        args = {"user": USER_A, "poolId": 1, "amount": 1000}
        del args[missing]
        event = make_raw_event(EventKind.STAKED, args, 10)

        with pytest.raises(MalformedEventError) as exc_info:
            normalize(event)
        assert exc_info.value.field == missing

    def test_none_argument_counts_as_missing(self) -> None:
        """A decoder that yields None for a field is treated as missing."""
        event = make_raw_event(EventKind.STAKED, {"user": USER_A, "poolId": 1, "amount": None}, 10)

        with pytest.raises(MalformedEventError, match="amount: missing"):
            normalize(event)

    def test_unstaked_without_reward(self) -> None:
        """Unstaked must carry a reward."""
        args = {"user": USER_A, "poolId": 1, "amount": 1000}
        event = make_raw_event(EventKind.UNSTAKED, args, 20)

        with pytest.raises(MalformedEventError) as exc_info:
            normalize(event)
        assert exc_info.value.field == "reward"

    def test_staked_without_block(self) -> None:
        """A stake cannot be keyed without its block."""
        with pytest.raises(MalformedEventError) as exc_info:
            normalize(make_staked(block=None))
        assert exc_info.value.field == "blockNumber"

    @pytest.mark.parametrize("user", ["", "   ", 42, b"\xaa" * 20])
    def test_invalid_user(self, user: object) -> None:
        """The user must be a non-empty string."""
        event = make_raw_event(EventKind.STAKED, {"user": user, "poolId": 1, "amount": 1}, 10)

        with pytest.raises(MalformedEventError) as exc_info:
            normalize(event)
        assert exc_info.value.field == "user"

    @pytest.mark.parametrize("amount", [-1, "1.5", "ten", 1.0, True])
    def test_invalid_amount(self, amount: object) -> None:
        """Amounts must be non-negative integers."""
        with pytest.raises(MalformedEventError) as exc_info:
            normalize(make_staked(amount=amount))  # type: ignore[arg-type]
        assert exc_info.value.field == "amount"

    def test_negative_pool_id(self) -> None:
        """Pool identifiers are non-negative."""
        with pytest.raises(MalformedEventError) as exc_info:
            normalize(make_staked(pool_id=-3))
        assert exc_info.value.field == "poolId"

    def test_invalid_reward(self) -> None:
        """The reward must also be a valid amount."""
        with pytest.raises(MalformedEventError) as exc_info:
            normalize(make_unstaked(reward="-1"))
        assert exc_info.value.field == "reward"
