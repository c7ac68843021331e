"""
Global configuration for the stake sync service.

This module contains environment-specific settings that apply across all components.
"""

import os

_SUPPORTED_STAKE_SYNC_ENVS: list[str] = ["prod", "test"]

STAKE_SYNC_ENV = os.environ.get("STAKE_SYNC_ENV", "prod").lower()
"""The environment flag ('prod' or 'test'). Defaults to 'prod'."""

if STAKE_SYNC_ENV not in _SUPPORTED_STAKE_SYNC_ENVS:
    raise ValueError(
        f"Invalid STAKE_SYNC_ENV environment variable: '{STAKE_SYNC_ENV}'. "
        f"Supported values: {_SUPPORTED_STAKE_SYNC_ENVS}"
    )
