"""
SQLite store implementation for stake records.

This module provides persistent storage for mirrored staking state:

- Stake records keyed by (user, pool_id, start_block)
- The sync cursor, for resuming backfill after a restart

sqlite3 is blocking. Every call runs in a worker thread through
``asyncio.to_thread`` so the event loop keeps serving live streams and
HTTP requests. One shared connection is used from those threads, so all
calls are serialized through a single asyncio lock: the single-writer
path for concurrent live streams.
"""

from __future__ import annotations

import asyncio
import sqlite3
from pathlib import Path

from stake_sync.types import StoreWriteError

from .namespaces import STAKES, SYNC_STATE
from .records import StakeKey, StakeMatch, StakeRecord, StakeStatus


class SQLiteStakeStore:
    """
    SQLite implementation of the StakeStore protocol.

    Stores stake records in a single SQLite file.
    Each write is a single statement committed immediately, so it is atomic.
    """

    def __init__(self, path: Path | str) -> None:
        """
        Initialize SQLite store.

        Creates database file and tables if they don't exist.

        Args:
            path: Path to SQLite database file.
                  Use ":memory:" for in-memory database.
        """
        self._path = Path(path) if isinstance(path, str) else path

        # Calls arrive from asyncio worker threads.
        #
        # The check_same_thread=False flag allows those threads to share
        # this connection. The lock below guarantees one caller at a time.
        self._conn = sqlite3.connect(
            str(self._path),
            check_same_thread=False,
        )

        # Row factory enables dict-like access: row["column_name"].
        self._conn.row_factory = sqlite3.Row

        self._lock = asyncio.Lock()

        self._init_schema()

    def _init_schema(self) -> None:
        """Create tables if they don't exist."""
        cursor = self._conn.cursor()
        cursor.execute(STAKES.CREATE_TABLE)
        cursor.execute(STAKES.CREATE_STATUS_INDEX)
        cursor.execute(STAKES.CREATE_MATCH_INDEX)
        cursor.execute(SYNC_STATE.CREATE_TABLE)
        self._conn.commit()

    # -------------------------------------------------------------------------
    # Stake Operations
    # -------------------------------------------------------------------------

    async def upsert(self, key: StakeKey, amount: str, status: StakeStatus) -> None:
        """Insert or overwrite the record at a key."""
        async with self._lock:
            await asyncio.to_thread(self._upsert, key, amount, status)

    def _upsert(self, key: StakeKey, amount: str, status: StakeStatus) -> None:
        # INSERT OR REPLACE resolves the primary key conflict by replacing
        # the whole row. Re-delivering a Staked event therefore rewrites the
        # same fields and leaves a single row.
        try:
            self._conn.execute(
                f"""
                INSERT OR REPLACE INTO {STAKES.TABLE_NAME}
                    (user, pool_id, start_block, amount, status)
                VALUES (?, ?, ?, ?, ?)
                """,
                (key.user, str(key.pool_id), key.start_block, amount, status.value),
            )
            self._conn.commit()
        except sqlite3.Error as e:
            self._conn.rollback()
            raise StoreWriteError(f"upsert {key} failed: {e}") from e

    async def conditional_update(self, match: StakeMatch, status: StakeStatus) -> int:
        """Set the status of the lowest-start-block record selected by a match."""
        async with self._lock:
            return await asyncio.to_thread(self._conditional_update, match, status)

    def _conditional_update(self, match: StakeMatch, status: StakeStatus) -> int:
        # The match and the update happen in one statement.
        #
        # A concurrent writer can never slip in between "find the active
        # record" and "mark it unstaked".
        try:
            cursor = self._conn.execute(
                f"""
                UPDATE {STAKES.TABLE_NAME} SET status = ?
                WHERE rowid = (
                    SELECT rowid FROM {STAKES.TABLE_NAME}
                    WHERE user = ? AND pool_id = ? AND amount = ? AND status = ?
                    ORDER BY start_block
                    LIMIT 1
                )
                """,
                (
                    status.value,
                    match.user,
                    str(match.pool_id),
                    match.amount,
                    match.status.value,
                ),
            )
            self._conn.commit()
        except sqlite3.Error as e:
            self._conn.rollback()
            raise StoreWriteError(f"conditional update {match} failed: {e}") from e
        return cursor.rowcount

    async def query_by_status(self, status: StakeStatus) -> list[StakeRecord]:
        """Return every record with a status."""
        async with self._lock:
            return await asyncio.to_thread(self._query_by_status, status)

    def _query_by_status(self, status: StakeStatus) -> list[StakeRecord]:
        cursor = self._conn.execute(
            f"""
            SELECT user, pool_id, start_block, amount, status
            FROM {STAKES.TABLE_NAME}
            WHERE status = ?
            """,
            (status.value,),
        )

        # Pool ids are TEXT in the table; sort numerically after decoding.
        records = [
            StakeRecord(
                user=row["user"],
                pool_id=int(row["pool_id"]),
                amount=row["amount"],
                start_block=row["start_block"],
                status=StakeStatus(row["status"]),
            )
            for row in cursor.fetchall()
        ]
        records.sort(key=lambda record: (record.user, record.pool_id, record.start_block))
        return records

    # -------------------------------------------------------------------------
    # Cursor Operations
    # -------------------------------------------------------------------------

    async def get_cursor(self) -> int | None:
        """Retrieve the persisted sync cursor."""
        async with self._lock:
            return await asyncio.to_thread(self._get_cursor)

    def _get_cursor(self) -> int | None:
        cursor = self._conn.execute(
            f"SELECT value FROM {SYNC_STATE.TABLE_NAME} WHERE key = ?",
            (SYNC_STATE.KEY_CURSOR,),
        )
        row = cursor.fetchone()
        if row is None:
            return None
        return int(row["value"])

    async def put_cursor(self, height: int) -> None:
        """Persist the sync cursor."""
        async with self._lock:
            await asyncio.to_thread(self._put_cursor, height)

    def _put_cursor(self, height: int) -> None:
        try:
            self._conn.execute(
                f"""
                INSERT OR REPLACE INTO {SYNC_STATE.TABLE_NAME} (key, value)
                VALUES (?, ?)
                """,
                (SYNC_STATE.KEY_CURSOR, height),
            )
            self._conn.commit()
        except sqlite3.Error as e:
            self._conn.rollback()
            raise StoreWriteError(f"cursor write failed: {e}") from e

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Close database connection."""
        self._conn.close()

    def __enter__(self) -> SQLiteStakeStore:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.close()
