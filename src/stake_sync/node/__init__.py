"""Node orchestrator wiring the store, sync engine and API server."""

from .node import Node, NodeConfig

__all__ = [
    "Node",
    "NodeConfig",
]
