"""
Prometheus metrics collection for cargo-tracker

Counts what flows through the record pipeline (normalization shapes,
validation failures) and how the document store behaves (write outcomes
and latency).
"""
import os
from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

# Global registry for metrics
REGISTRY = CollectorRegistry()


# =======================
# RECORD PIPELINE METRICS
# =======================

records_normalized_total = Counter(
    name="cargo_records_normalized_total",
    documentation="Total number of raw records normalized",
    labelnames=["shape"],  # shape: canonical, legacy_status, legacy_keys
    registry=REGISTRY,
)

validation_failures_total = Counter(
    name="cargo_validation_failures_total",
    documentation="Total number of validation failures",
    labelnames=["rule_type", "field_name"],
    registry=REGISTRY,
)

snapshot_size = Gauge(
    name="cargo_snapshot_size_records",
    documentation="Number of records in the latest store snapshot",
    labelnames=["collection"],
    registry=REGISTRY,
)

urgent_records = Gauge(
    name="cargo_urgent_eta_records",
    documentation="Number of records whose ETA day has arrived and are not completed",
    labelnames=["collection"],
    registry=REGISTRY,
)

# =======================
# STORE METRICS
# =======================

store_operations_total = Counter(
    name="cargo_store_operations_total",
    documentation="Total number of store write operations",
    labelnames=["operation", "status"],  # status: success, failure
    registry=REGISTRY,
)

store_operation_duration_seconds = Histogram(
    name="cargo_store_operation_duration_seconds",
    documentation="Time spent in store write operations in seconds",
    labelnames=["operation"],
    buckets=[0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
    registry=REGISTRY,
)


# =======================
# HELPER FUNCTIONS
# =======================

def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics in text format

    Returns:
        Metrics in Prometheus text format
    """
    return generate_latest(REGISTRY)


def get_content_type() -> str:
    """Content type for the Prometheus text exposition format"""
    return CONTENT_TYPE_LATEST


def start_metrics_server(port: Optional[int] = None) -> None:
    """
    Start HTTP server for Prometheus metrics

    Args:
        port: Port to listen on (defaults to env var METRICS_PORT or 8000)
    """
    # Lazy import: binding a port only when the endpoint is wanted
    from prometheus_client import start_http_server

    metrics_port = port or int(os.getenv("METRICS_PORT", "8000"))
    start_http_server(metrics_port, registry=REGISTRY)


class track_duration:
    """
    Context manager for tracking operation duration

    Usage:
        with track_duration(store_operation_duration_seconds, operation="create"):
            store.create(document)
    """

    def __init__(self, histogram: Histogram, **labels):
        self.histogram = histogram
        self.labels = labels
        self.timer = None

    def __enter__(self):
        self.timer = self.histogram.labels(**self.labels).time()
        self.timer.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.timer.__exit__(exc_type, exc_val, exc_tb)
        return False


def increment_counter(counter: Counter, value: float = 1.0, **labels) -> None:
    """Increment a labelled counter"""
    counter.labels(**labels).inc(value)


def set_gauge(gauge: Gauge, value: float, **labels) -> None:
    """Set a labelled gauge"""
    gauge.labels(**labels).set(value)


def record_normalization(shape: str) -> None:
    """
    Record one normalized record.

    Args:
        shape: Input shape ("canonical", "legacy_status" or "legacy_keys")
    """
    increment_counter(records_normalized_total, 1, shape=shape)


def record_validation_failure(rule_type: str, field_name: str) -> None:
    """
    Record a validation failure.

    Args:
        rule_type: Type of validation rule that failed
        field_name: Name of field that failed validation
    """
    increment_counter(validation_failures_total, 1, rule_type=rule_type, field_name=field_name)


def record_store_operation(operation: str, success: bool) -> None:
    """
    Record the outcome of a store write.

    Args:
        operation: "create", "update" or "delete"
        success: Whether the store accepted the write
    """
    status = "success" if success else "failure"
    increment_counter(store_operations_total, 1, operation=operation, status=status)


def get_counter_value(counter: Counter, **labels) -> float:
    """Current value of a labelled counter (0.0 when never incremented)"""
    value = REGISTRY.get_sample_value(f"{counter._name}_total", labels)
    return value or 0.0
