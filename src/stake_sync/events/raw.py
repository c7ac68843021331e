"""
Raw events as delivered by a chain event source.

A raw event is deliberately loose. It carries the decoded event arguments
as an untyped mapping, plus the log position fields a JSON-RPC node
reports. Nothing is validated here: sources hand over whatever the node
returned, and normalization decides whether the event is usable.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .kinds import EventKind


@dataclass(frozen=True, slots=True)
class RawEvent:
    """One decoded contract log."""

    kind: EventKind
    """Which staking event this log was decoded as."""

    args: Mapping[str, Any]
    """Decoded event arguments keyed by their Solidity names."""

    block_number: int | None
    """Block that emitted the log. None when the node omitted it."""

    transaction_hash: str | None = field(default=None)
    """Hex transaction hash, if reported."""

    log_index: int | None = field(default=None)
    """Position of the log within its block, if reported."""

    def describe(self) -> str:
        """Short identifier for log lines."""
        return f"{self.kind.value}@{self.block_number}#{self.log_index}"
