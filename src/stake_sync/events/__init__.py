"""Chain event kinds, raw event shape, and the event source protocol."""

from .kinds import APPLY_ORDER, EventKind
from .raw import RawEvent
from .source import EventSource

__all__ = [
    "APPLY_ORDER",
    "EventKind",
    "EventSource",
    "RawEvent",
]
