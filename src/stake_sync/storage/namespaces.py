"""
Database namespace definitions for storage tables.

Defines table names and schema constants for SQLite storage.
Each namespace represents a logical grouping of related data.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class StakeNamespace:
    """
    Namespace for stake record storage.

    The primary key is the identity key, so an upsert can never create a
    second record for the same stake lifecycle.

    Pool ids and amounts are uint256 on chain. Both are stored as decimal
    TEXT because SQLite integers stop at 64 bits.
    """

    TABLE_NAME: str = "stakes"
    """Table name for stake storage."""

    CREATE_TABLE: str = """
        CREATE TABLE IF NOT EXISTS stakes (
            user TEXT NOT NULL,
            pool_id TEXT NOT NULL,
            start_block INTEGER NOT NULL,
            amount TEXT NOT NULL,
            status TEXT NOT NULL,
            PRIMARY KEY (user, pool_id, start_block)
        )
    """
    """SQL to create stakes table."""

    CREATE_STATUS_INDEX: str = """
        CREATE INDEX IF NOT EXISTS idx_stakes_status ON stakes(status)
    """
    """SQL to create the status index used by the read API."""

    CREATE_MATCH_INDEX: str = """
        CREATE INDEX IF NOT EXISTS idx_stakes_match ON stakes(user, pool_id, amount, status)
    """
    """SQL to create the index used by unstake conditional updates."""


@dataclass(frozen=True, slots=True)
class SyncStateNamespace:
    """
    Namespace for sync engine bookkeeping.

    Uses a key-value pattern with fixed keys.
    """

    TABLE_NAME: str = "sync_state"
    """Table name for sync state storage."""

    KEY_CURSOR: str = "cursor"
    """Key for the last fully processed block height."""

    CREATE_TABLE: str = """
        CREATE TABLE IF NOT EXISTS sync_state (
            key TEXT PRIMARY KEY,
            value INTEGER NOT NULL
        )
    """
    """SQL to create sync state table."""


# Singleton instances for convenient access
STAKES = StakeNamespace()
SYNC_STATE = SyncStateNamespace()
