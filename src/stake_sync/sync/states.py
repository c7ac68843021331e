"""Sync service state machine."""

from __future__ import annotations

from enum import Enum, auto


class SyncState(Enum):
    """
    Sync service states representing the current synchronization phase.

    State Machine Diagram
    ---------------------
    ::

        IDLE --> BACKFILLING --> LIVE --> STOPPED
                     |   |        |
                     |   +--------+--> FAILED
                     +--> STOPPED

    The Lifecycle
    -------------
    1. **IDLE**: Service constructed, nothing queried yet
    2. **BACKFILLING**: Replaying historical ranges up to the chain head
    3. **LIVE**: One subscription per event kind, applying as events arrive
    4. **STOPPED**: Shutdown requested and in-flight work drained
    5. **FAILED**: A query, write or subscription failure was surfaced

    STOPPED and FAILED are terminal. A fresh service is built on restart;
    re-running backfill from a known-good cursor is safe because apply is
    idempotent.
    """

    IDLE = auto()
    """Not started. No source or store calls have been made."""

    BACKFILLING = auto()
    """
    Historical replay in progress.

    Ranges are processed one at a time and the cursor advances after each.
    """

    LIVE = auto()
    """
    Caught up with the chain head and following new events.

    Each event kind has its own stream. A stream ending is a failure.
    """

    STOPPED = auto()
    """Clean shutdown completed."""

    FAILED = auto()
    """Sync aborted by an unrecoverable error."""

    def can_transition_to(self, target: SyncState) -> bool:
        """
        Check if transition to target state is valid.

        Args:
            target: The proposed target state.

        Returns:
            True if the transition is allowed by the state machine rules.
        """
        return target in _VALID_TRANSITIONS.get(self, set())

    @property
    def is_running(self) -> bool:
        """True while the service is applying events."""
        return self in {SyncState.BACKFILLING, SyncState.LIVE}

    @property
    def is_terminal(self) -> bool:
        """True once no further transitions are possible."""
        return not _VALID_TRANSITIONS.get(self)


_VALID_TRANSITIONS: dict[SyncState, set[SyncState]] = {
    SyncState.IDLE: {SyncState.BACKFILLING, SyncState.STOPPED},
    SyncState.BACKFILLING: {SyncState.LIVE, SyncState.STOPPED, SyncState.FAILED},
    SyncState.LIVE: {SyncState.STOPPED, SyncState.FAILED},
    SyncState.STOPPED: set(),
    SyncState.FAILED: set(),
}
"""Valid state transitions for the sync state machine."""
