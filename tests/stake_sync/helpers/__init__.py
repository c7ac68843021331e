"""Test helpers for stake_sync unit tests."""

from __future__ import annotations

from .builders import (
    CONTRACT,
    USER_A,
    USER_B,
    make_raw_event,
    make_record,
    make_staked,
    make_unstaked,
    make_unstaked_early,
)
from .mocks import FlakyStakeStore, MockEventSource, wait_until
from .net import free_port

__all__ = [
    # Builders
    "make_raw_event",
    "make_record",
    "make_staked",
    "make_unstaked",
    "make_unstaked_early",
    # Mocks
    "FlakyStakeStore",
    "MockEventSource",
    # Constants
    "CONTRACT",
    "USER_A",
    "USER_B",
    # Async and network utilities
    "free_port",
    "wait_until",
]
