"""Retry with exponential backoff for idempotent async calls."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from .config import RetryPolicy

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


async def retry_async(
    call: Callable[[], Awaitable[_T]],
    *,
    policy: RetryPolicy,
    retry_on: type[Exception] | tuple[type[Exception], ...],
    on_retry: Callable[[], None] | None = None,
    what: str = "call",
) -> _T:
    """
    Await a call, retrying on selected exceptions.

    Only idempotent calls may be wrapped: a failed attempt may have taken
    partial effect before raising.

    Args:
        call: Zero-argument factory producing a fresh awaitable per attempt.
        policy: Backoff schedule and attempt budget.
        retry_on: Exception types that trigger a retry. Others propagate at once.
        on_retry: Hook run before each retry (metrics).
        what: Description for log lines.

    Returns:
        The result of the first successful attempt.

    Raises:
        The last exception once the attempt budget is spent.
    """
    attempt = 1
    while True:
        try:
            return await call()
        except retry_on as e:
            if not policy.allows(attempt):
                logger.error("%s failed after %d attempts: %s", what, attempt, e)
                raise

            delay = policy.delay(attempt)
            logger.warning(
                "%s failed (attempt %d), retrying in %.1fs: %s", what, attempt, delay, e
            )
            if on_retry is not None:
                on_retry()
            await asyncio.sleep(delay)
            attempt += 1
