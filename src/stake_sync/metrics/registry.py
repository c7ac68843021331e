"""
Metric registry using prometheus_client.

Provides pre-defined metrics for the stake sync engine.
Exposes metrics in Prometheus text format via the /metrics endpoint.
"""

from __future__ import annotations

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

# Create a dedicated registry for stake sync metrics.
#
# Using a dedicated registry avoids pollution from default Python process metrics.
REGISTRY = CollectorRegistry()

# -----------------------------------------------------------------------------
# Sync Progress
# -----------------------------------------------------------------------------

cursor_height = Gauge(
    "stake_sync_cursor_height",
    "Last block height fully processed by backfill",
    registry=REGISTRY,
)

chain_height = Gauge(
    "stake_sync_chain_height",
    "Chain height observed at the start of backfill",
    registry=REGISTRY,
)

batch_processing_time = Histogram(
    "stake_sync_batch_seconds",
    "Backfill batch duration",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
# Event Processing
# -----------------------------------------------------------------------------

operations_applied = Counter(
    "stake_sync_operations_applied_total",
    "Operations applied to the store",
    ["kind"],
    registry=REGISTRY,
)

malformed_events = Counter(
    "stake_sync_malformed_events_total",
    "Raw events skipped because they could not be normalized",
    ["kind"],
    registry=REGISTRY,
)

unmatched_unstakes = Counter(
    "stake_sync_unmatched_unstakes_total",
    "Unstake operations that matched no active stake",
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
# Failures
# -----------------------------------------------------------------------------

source_query_retries = Counter(
    "stake_sync_source_query_retries_total",
    "Range queries retried after a failure",
    registry=REGISTRY,
)

store_write_retries = Counter(
    "stake_sync_store_write_retries_total",
    "Store writes retried after a failure",
    registry=REGISTRY,
)

subscription_failures = Counter(
    "stake_sync_subscription_failures_total",
    "Live subscriptions that terminated",
    ["kind"],
    registry=REGISTRY,
)


def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics output.

    Returns:
        Prometheus text format output as bytes.
    """
    return generate_latest(REGISTRY)
