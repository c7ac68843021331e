"""In-memory store for tests and ephemeral runs."""

from __future__ import annotations

from .records import StakeKey, StakeMatch, StakeRecord, StakeStatus


class InMemoryStakeStore:
    """
    Dict-backed implementation of the StakeStore protocol.

    Methods never await, so each call runs to completion without
    interleaving on the event loop. That makes every write atomic.
    """

    def __init__(self) -> None:
        """Initialize an empty store."""
        self.records: dict[StakeKey, StakeRecord] = {}
        self.cursor: int | None = None
        # Writes that created or changed a record.
        self.mutation_count = 0

    async def upsert(self, key: StakeKey, amount: str, status: StakeStatus) -> None:
        """Insert or overwrite the record at a key."""
        self.records[key] = StakeRecord(
            user=key.user,
            pool_id=key.pool_id,
            amount=amount,
            start_block=key.start_block,
            status=status,
        )
        self.mutation_count += 1

    async def conditional_update(self, match: StakeMatch, status: StakeStatus) -> int:
        """Set the status of the lowest-start-block record selected by a match."""
        candidates = [record for record in self.records.values() if record.matches(match)]
        if not candidates:
            return 0

        target = min(candidates, key=lambda record: record.start_block)
        self.records[target.key] = target.copy(status=status)
        self.mutation_count += 1
        return 1

    async def query_by_status(self, status: StakeStatus) -> list[StakeRecord]:
        """Return every record with a status."""
        return sorted(
            (record for record in self.records.values() if record.status == status),
            key=lambda record: (record.user, record.pool_id, record.start_block),
        )

    async def get_cursor(self) -> int | None:
        """Retrieve the sync cursor."""
        return self.cursor

    async def put_cursor(self, height: int) -> None:
        """Store the sync cursor."""
        self.cursor = height

    def close(self) -> None:
        """Nothing to release."""
