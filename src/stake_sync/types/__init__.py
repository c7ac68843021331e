"""Shared value types and exceptions for the stake sync service."""

from .amount import Amount, normalize_amount
from .base import CamelModel, StrictBaseModel
from .exceptions import (
    MalformedEventError,
    SourceQueryError,
    StakeSyncError,
    StoreWriteError,
    SubscriptionError,
)

__all__ = [
    "Amount",
    "CamelModel",
    "MalformedEventError",
    "SourceQueryError",
    "StakeSyncError",
    "StoreWriteError",
    "StrictBaseModel",
    "SubscriptionError",
    "normalize_amount",
]
