"""Exception hierarchy for the stake sync service."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stake_sync.events import EventKind, RawEvent


class StakeSyncError(Exception):
    """
    Base exception for all stake sync errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class SourceQueryError(StakeSyncError):
    """
    Raised when a historical range query against the event source fails.

    Range queries are read-only, so callers retry them with backoff. The
    sync cursor must never advance past a range that failed.

    Attributes:
        kind: Event kind that was being queried.
        from_block: First block of the failed range.
        to_block: Last block of the failed range.
    """

    def __init__(self, kind: EventKind, from_block: int, to_block: int, reason: str) -> None:
        self.kind = kind
        self.from_block = from_block
        self.to_block = to_block
        super().__init__(f"{kind.value} query [{from_block}, {to_block}] failed: {reason}")


class SubscriptionError(StakeSyncError):
    """
    Raised when a live event stream ends or errors.

    A lost subscription is fatal to the engine. It is reported to the
    process boundary so a supervisor can restart the service; apply is
    idempotent, so the restart's backfill safely re-covers the gap.

    Attributes:
        kind: Event kind whose stream was lost.
    """

    def __init__(self, kind: EventKind, reason: str) -> None:
        self.kind = kind
        super().__init__(f"{kind.value} subscription terminated: {reason}")


class StoreWriteError(StakeSyncError):
    """
    Raised when the store rejects an upsert or conditional update.

    Every store write is idempotent, so the single failed operation is
    retried. Batch progress does not advance until it succeeds.
    """


class MalformedEventError(StakeSyncError):
    """
    Raised when a raw event lacks a required field or carries an invalid one.

    Malformed events are logged and skipped. They never stop a stream.

    Attributes:
        event: The offending raw event.
        field: Name of the missing or invalid field.
    """

    def __init__(self, event: RawEvent, field: str, detail: str) -> None:
        self.event = event
        self.field = field
        super().__init__(f"malformed {event.describe()}: {field}: {detail}")
