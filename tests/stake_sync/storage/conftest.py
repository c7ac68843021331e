"""Store fixtures shared by the storage tests."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from stake_sync.storage import InMemoryStakeStore, SQLiteStakeStore, StakeStore


@pytest.fixture(params=["memory", "sqlite"])
def store(request: pytest.FixtureRequest, tmp_path: Path) -> Iterator[StakeStore]:
    """Each StakeStore implementation, fresh per test."""
    impl: StakeStore
    if request.param == "memory":
        impl = InMemoryStakeStore()
    else:
        impl = SQLiteStakeStore(tmp_path / "stakes.db")
    yield impl
    impl.close()
