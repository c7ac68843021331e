"""Chain access: the staking contract ABI and a web3-backed event source."""

from .config import DEFAULT_POLL_INTERVAL, STAKING_ABI
from .web3_source import Web3EventSource, to_raw_event

__all__ = [
    "DEFAULT_POLL_INTERVAL",
    "STAKING_ABI",
    "Web3EventSource",
    "to_raw_event",
]
