"""
Runtime settings for a stake-sync node.

Settings come from three layers, later ones winning:

1. A YAML file (``--config``), keys in snake_case or camelCase
2. Environment variables (``RPC_URL``, ``CONTRACT_ADDRESS``, ...)
3. Command line flags

Everything is validated once, after the layers are merged.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

import yaml
from pydantic import Field, field_validator

from stake_sync.chain import DEFAULT_POLL_INTERVAL
from stake_sync.sync import DEFAULT_BATCH_SIZE
from stake_sync.types import CamelModel

ENV_VARS: Final[dict[str, str]] = {
    "RPC_URL": "rpc_url",
    "CONTRACT_ADDRESS": "contract_address",
    "START_BLOCK": "start_block",
    "BATCH_SIZE": "batch_size",
    "POLL_INTERVAL": "poll_interval",
    "DATABASE_PATH": "database_path",
    "API_HOST": "api_host",
    "PORT": "api_port",
}
"""Environment variable names mapped to the settings fields they fill."""


class SyncSettings(CamelModel):
    """Validated settings for the node, the sync engine and the API server."""

    model_config = CamelModel.model_config | {"extra": "forbid", "frozen": True}

    rpc_url: str = Field(min_length=1)
    """JSON-RPC endpoint of the chain node."""

    contract_address: str = Field(pattern=r"^0x[0-9a-fA-F]{40}$")
    """Address of the staking contract."""

    start_block: int = Field(default=0, ge=0)
    """First block to backfill from."""

    batch_size: int = Field(default=DEFAULT_BATCH_SIZE, gt=0)
    """Blocks per backfill range query."""

    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL, gt=0)
    """Seconds between polls in live streams."""

    database_path: str = Field(default="stake-sync.db", min_length=1)
    """SQLite database file. ":memory:" keeps everything in memory."""

    resume: bool = False
    """Resume backfill from the persisted cursor."""

    api_host: str = "0.0.0.0"
    """Host address for the API server."""

    api_port: int = Field(default=3001, ge=0, le=65535)
    """Port for the API server."""

    @field_validator("contract_address", mode="before")
    @classmethod
    def _address_from_int(cls, v: Any) -> Any:
        """
        Convert integer to hex string if needed.

        YAML parsers may interpret 0x-prefixed values as integers.
        """
        if isinstance(v, int) and not isinstance(v, bool):
            return f"0x{v:040x}"
        return v

    @classmethod
    def load(
        cls,
        path: Path | None = None,
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> SyncSettings:
        """
        Merge a YAML file, environment variables and overrides.

        Args:
            path: Optional YAML settings file.
            environ: Environment to read. Defaults to ``os.environ``.
            **overrides: Field values that win over everything else.
                None values are ignored, so unset CLI flags can be passed as is.

        Returns:
            Validated settings.
        """
        values: dict[str, Any] = {}
        if path is not None:
            values |= cls._by_field_name(_read_yaml(path))
        values |= env_values(os.environ if environ is None else environ)
        values |= {name: value for name, value in overrides.items() if value is not None}
        return cls.model_validate(values)

    @classmethod
    def _by_field_name(cls, values: Mapping[str, Any]) -> dict[str, Any]:
        """Rename camelCase keys to field names so later layers override them."""
        names = {info.alias: name for name, info in cls.model_fields.items() if info.alias}
        return {names.get(key, key): value for key, value in values.items()}

    @classmethod
    def from_yaml_file(cls, path: Path) -> SyncSettings:
        """
        Load settings from a YAML file alone.

        Args:
            path: Path to the settings file.

        Returns:
            Validated SyncSettings instance.
        """
        return cls.model_validate(_read_yaml(path))

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> SyncSettings:
        """Load settings from environment variables alone."""
        return cls.model_validate(env_values(os.environ if environ is None else environ))


def env_values(environ: Mapping[str, str]) -> dict[str, str]:
    """Pick the settings fields present in an environment."""
    return {field: environ[name] for name, field in ENV_VARS.items() if environ.get(name)}


def _read_yaml(path: Path) -> dict[str, Any]:
    with path.open() as f:
        data = yaml.safe_load(f)
    # YAML returns None for empty file
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping of settings, got {type(data).__name__}")
    return data
