"""
Chain event source protocol.

The sync engine never talks to a node directly. It depends on this
structural interface instead, so production code can plug in a JSON-RPC
adapter and tests can plug in a scripted fake.

Capabilities
------------
- **Bounded history**: all events of one kind in a closed block range
- **Live stream**: an async iterator of new events of one kind
- **Head**: the current chain height

Live streams are pull-based. The engine awaits the next event, so
backpressure and cancellation are explicit. A stream that ends means the
connection is gone; it is never restarted behind the engine's back.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from typing import Protocol, runtime_checkable

from .kinds import EventKind
from .raw import RawEvent


@runtime_checkable
class EventSource(Protocol):
    """
    Structural interface for a chain event source.

    Implementers should:
    - Return events of one range in emission order
    - Raise on query failure rather than returning a partial result
    - End or raise from a live stream only when the connection is lost
    """

    async def current_height(self) -> int:
        """
        Return the current chain height.

        Returns:
            Block number of the latest block the node knows.
        """
        ...

    async def query_range(
        self,
        kind: EventKind,
        from_block: int,
        to_block: int,
    ) -> Sequence[RawEvent]:
        """
        Fetch all events of one kind in a closed block range.

        Args:
            kind: Event kind to fetch.
            from_block: First block of the range (inclusive).
            to_block: Last block of the range (inclusive).

        Returns:
            Events in emission order.
        """
        ...

    def subscribe(
        self,
        kind: EventKind,
        from_block: int | None = None,
    ) -> AsyncIterator[RawEvent]:
        """
        Open a live stream of new events of one kind.

        Args:
            kind: Event kind to stream.
            from_block: First block to stream from. None means only blocks
                mined after the subscription opens. Passing the block after
                the backfill cursor closes the gap between the two phases.

        Returns:
            Async iterator yielding events as they are emitted.
        """
        ...
