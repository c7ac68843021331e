"""
Client for reading active stakes from a running stake-sync node.

Downstream services use this instead of talking to the chain. The
response is validated into StakeRecord models, so callers get the same
types the store hands out.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import TypeAdapter, ValidationError

from stake_sync.storage import StakeRecord
from stake_sync.types import StakeSyncError

from .server import ACTIVE_STAKES_ENDPOINT

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
"""HTTP request timeout in seconds."""

_RECORDS = TypeAdapter(list[StakeRecord])


class ApiClientError(StakeSyncError):
    """
    Error while reading from a stake-sync API.

    Raised when the request fails or the response does not parse.
    """


async def fetch_active_stakes(url: str, *, timeout: float = DEFAULT_TIMEOUT) -> list[StakeRecord]:
    """
    Fetch every active stake record from a node.

    Args:
        url: Base URL of the node API (e.g., "http://localhost:3001").
        timeout: Request timeout in seconds.

    Returns:
        Records as served, ordered by (user, pool_id, start_block).

    Raises:
        ApiClientError: If the request fails or the payload is invalid.
    """
    full_url = f"{url.rstrip('/')}{ACTIVE_STAKES_ENDPOINT}"
    logger.debug("Fetching active stakes from %s", full_url)

    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.get(full_url, headers={"Accept": "application/json"})
            response.raise_for_status()
            return _RECORDS.validate_json(response.content)

    except httpx.RequestError as exc:
        raise ApiClientError(
            f"Network error while connecting to {exc.request.url}: {exc}"
        ) from exc
    except httpx.HTTPStatusError as exc:
        raise ApiClientError(
            f"HTTP error {exc.response.status_code}: {exc.response.text[:200]}"
        ) from exc
    except ValidationError as exc:
        raise ApiClientError(f"Invalid active stakes payload: {exc}") from exc
