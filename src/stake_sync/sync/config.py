"""
Sync engine configuration constants.

Operational parameters for synchronization: batch sizes and retry budgets.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from stake_sync.config import STAKE_SYNC_ENV

DEFAULT_BATCH_SIZE: Final[int] = 1000
"""Blocks per backfill range query. Keeps each eth_getLogs call under provider limits."""


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """
    Exponential backoff schedule for retryable failures.

    The delay before retry ``n`` (1-based) is
    ``min(base_delay * multiplier ** (n - 1), max_delay)``.
    """

    max_attempts: int | None
    """Total attempts including the first. None retries forever."""

    base_delay: float
    """Delay before the first retry, in seconds."""

    max_delay: float
    """Upper bound on any single delay, in seconds."""

    multiplier: float = 2.0
    """Growth factor between consecutive delays."""

    def delay(self, retry: int) -> float:
        """
        Delay before a retry.

        Args:
            retry: 1-based retry number.

        Returns:
            Seconds to wait.
        """
        return min(self.base_delay * self.multiplier ** (retry - 1), self.max_delay)

    def allows(self, attempt: int) -> bool:
        """Check whether another attempt may follow attempt number ``attempt``."""
        return self.max_attempts is None or attempt < self.max_attempts


PROD_RETRY_POLICY: Final = RetryPolicy(max_attempts=8, base_delay=0.5, max_delay=30.0)
"""Roughly a minute of retries before a failure is surfaced."""

TEST_RETRY_POLICY: Final = RetryPolicy(max_attempts=3, base_delay=0.0, max_delay=0.0)
"""Immediate retries so failure paths run instantly under test."""

DEFAULT_RETRY_POLICY: Final = TEST_RETRY_POLICY if STAKE_SYNC_ENV == "test" else PROD_RETRY_POLICY
"""Retry policy selected by the STAKE_SYNC_ENV flag."""
