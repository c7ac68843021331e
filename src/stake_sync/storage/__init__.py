"""
Storage module for mirrored stake records.

Provides the store abstraction the sync engine writes through and the
read API reads from. Uses SQLite for persistence.
"""

from .memory import InMemoryStakeStore
from .namespaces import StakeNamespace, SyncStateNamespace
from .records import StakeKey, StakeMatch, StakeRecord, StakeStatus
from .sqlite import SQLiteStakeStore
from .store import StakeStore

__all__ = [
    "InMemoryStakeStore",
    "SQLiteStakeStore",
    "StakeKey",
    "StakeMatch",
    "StakeNamespace",
    "StakeRecord",
    "StakeStatus",
    "StakeStore",
    "SyncStateNamespace",
]
