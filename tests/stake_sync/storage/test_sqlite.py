"""Tests specific to the SQLite store."""

from __future__ import annotations

from pathlib import Path

import pytest

from stake_sync.storage import SQLiteStakeStore, StakeKey, StakeStatus
from stake_sync.types import StoreWriteError
from tests.stake_sync.helpers import USER_A, make_record

KEY = StakeKey(user=USER_A, pool_id=1, start_block=10)


class TestSQLitePersistence:
    """Data survives reopening the database file."""

    async def test_records_and_cursor_survive_reopen(self, tmp_path: Path) -> None:
        """A restarted process sees what the previous one wrote."""
        path = tmp_path / "stakes.db"
        with SQLiteStakeStore(path) as store:
            await store.upsert(KEY, "1000", StakeStatus.ACTIVE)
            await store.put_cursor(4242)

        with SQLiteStakeStore(path) as store:
            assert await store.query_by_status(StakeStatus.ACTIVE) == [make_record()]
            assert await store.get_cursor() == 4242

    async def test_in_memory_database(self) -> None:
        """":memory:" works for throwaway stores."""
        with SQLiteStakeStore(":memory:") as store:
            await store.upsert(KEY, "1000", StakeStatus.ACTIVE)
            assert len(await store.query_by_status(StakeStatus.ACTIVE)) == 1

    async def test_string_path_accepted(self, tmp_path: Path) -> None:
        """Paths may be given as plain strings."""
        with SQLiteStakeStore(str(tmp_path / "stakes.db")) as store:
            assert await store.get_cursor() is None


class TestSQLiteWriteFailures:
    """sqlite3 errors on writes surface as StoreWriteError."""

    async def test_read_only_database(self, tmp_path: Path) -> None:
        """Writes to a read-only database raise StoreWriteError."""
        path = tmp_path / "stakes.db"
        SQLiteStakeStore(path).close()

        store = SQLiteStakeStore(path)
        store._conn.execute("PRAGMA query_only = ON")
        try:
            with pytest.raises(StoreWriteError):
                await store.upsert(KEY, "1000", StakeStatus.ACTIVE)
            with pytest.raises(StoreWriteError):
                await store.put_cursor(1)
        finally:
            store.close()
