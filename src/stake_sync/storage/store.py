"""
Abstract store interface for stake records.

Defines the Protocol that all store implementations must follow.
Uses structural subtyping for flexibility.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from .records import StakeKey, StakeMatch, StakeRecord, StakeStatus


class StakeStore(Protocol):
    """
    Protocol for stake record storage.

    All store implementations must provide these methods.
    Uses structural subtyping - any class with matching methods satisfies the protocol.

    Atomicity
    ---------
    Each write must be atomic per record. The sync engine runs three live
    streams concurrently and relies on the store, not on its own locks, to
    keep concurrent writes from interleaving. A store without atomic
    primitives must serialize writes internally.

    Failures
    --------
    Writes raise StoreWriteError on failure. Every write is idempotent, so
    callers may retry freely.
    """

    # -------------------------------------------------------------------------
    # Stake Operations
    # -------------------------------------------------------------------------

    async def upsert(self, key: StakeKey, amount: str, status: StakeStatus) -> None:
        """
        Insert or overwrite the record at a key.

        Args:
            key: Identity of the record.
            amount: Canonical decimal string amount.
            status: Status to store.
        """
        ...

    async def conditional_update(self, match: StakeMatch, status: StakeStatus) -> int:
        """
        Set the status of one record selected by a match.

        When several records match, the one with the lowest start block is
        updated.

        Args:
            match: Selector including the status the record must currently have.
            status: New status.

        Returns:
            Number of records updated, 0 or 1.
        """
        ...

    async def query_by_status(self, status: StakeStatus) -> list[StakeRecord]:
        """
        Return every record with a status.

        Args:
            status: Status to filter on.

        Returns:
            Matching records ordered by (user, pool_id, start_block).
        """
        ...

    # -------------------------------------------------------------------------
    # Cursor Operations
    # -------------------------------------------------------------------------

    async def get_cursor(self) -> int | None:
        """
        Retrieve the persisted sync cursor.

        Returns:
            Last fully processed block height, or None if never stored.
        """
        ...

    async def put_cursor(self, height: int) -> None:
        """
        Persist the sync cursor.

        Args:
            height: Last fully processed block height.
        """
        ...

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Release any resources held by the store."""
        ...
