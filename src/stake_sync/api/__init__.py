"""
API server module for reading mirrored stakes.

Provides HTTP endpoints for:
- /api/active-stakes - Active stake records as JSON
- /health - Health check with sync progress
- /metrics - Prometheus metrics

Also provides a client:
- fetch_active_stakes: Read active stakes from a running node
"""

from .client import ApiClientError, fetch_active_stakes
from .server import ACTIVE_STAKES_ENDPOINT, ApiServer, ApiServerConfig

__all__ = [
    "ACTIVE_STAKES_ENDPOINT",
    "ApiClientError",
    "ApiServer",
    "ApiServerConfig",
    "fetch_active_stakes",
]
