"""
Metrics module for observability.

Provides counters, gauges, and histograms for tracking sync engine behavior.
Exposes metrics in Prometheus text format.
"""

from .registry import (
    REGISTRY,
    batch_processing_time,
    chain_height,
    cursor_height,
    generate_metrics,
    malformed_events,
    operations_applied,
    source_query_retries,
    store_write_retries,
    subscription_failures,
    unmatched_unstakes,
)

__all__ = [
    "REGISTRY",
    "batch_processing_time",
    "chain_height",
    "cursor_height",
    "generate_metrics",
    "malformed_events",
    "operations_applied",
    "source_query_retries",
    "store_write_retries",
    "subscription_failures",
    "unmatched_unstakes",
]
