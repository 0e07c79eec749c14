"""Prometheus metrics definitions and utilities for observability.

Metric Naming Conventions:
- All metrics are prefixed with 'extractor_'
- Counters end with '_total'
- Histograms/durations end with '_seconds'
- Gauges use descriptive names without suffix

Usage:
    from extractor.core.metrics import record_api_request, set_error_budget

    record_api_request("object detection", "success")
    set_error_budget("object detection", 2)
"""

from prometheus_client import REGISTRY, Counter, Gauge, Histogram, generate_latest

_registry = REGISTRY

# Outcomes of a single enrichment task
API_REQUEST_OUTCOMES = (
    "success",
    "transport_error",
    "http_error",
    "read_error",
    "write_error",
)

API_REQUESTS_TOTAL = Counter(
    "extractor_api_requests_total",
    "Total enrichment tasks by feature and outcome",
    labelnames=["feature", "outcome"],
    registry=_registry,
)

# Covers range from 50ms to 2min
API_REQUEST_DURATION_BUCKETS = (0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0)

API_REQUEST_DURATION = Histogram(
    "extractor_api_request_duration_seconds",
    "Duration of inference API requests",
    labelnames=["feature"],
    buckets=API_REQUEST_DURATION_BUCKETS,
    registry=_registry,
)

ERROR_BUDGET = Gauge(
    "extractor_error_budget",
    "Current error budget count per feature (tripped above threshold)",
    labelnames=["feature"],
    registry=_registry,
)

ENTRIES_DISPATCHED_TOTAL = Counter(
    "extractor_entries_dispatched_total",
    "Entries that passed the eligibility test and were dispatched",
    labelnames=["feature"],
    registry=_registry,
)


def record_api_request(feature: str, outcome: str) -> None:
    """Increment the enrichment task outcome counter.

    Args:
        feature: Feature name (e.g. "object detection")
        outcome: One of API_REQUEST_OUTCOMES
    """
    API_REQUESTS_TOTAL.labels(feature=feature, outcome=outcome).inc()


def observe_api_request_duration(feature: str, duration_seconds: float) -> None:
    API_REQUEST_DURATION.labels(feature=feature).observe(duration_seconds)


def set_error_budget(feature: str, value: int) -> None:
    ERROR_BUDGET.labels(feature=feature).set(value)


def record_entry_dispatched(feature: str) -> None:
    ENTRIES_DISPATCHED_TOTAL.labels(feature=feature).inc()


def get_metrics_response() -> bytes:
    """Generate the Prometheus metrics response.

    Returns:
        Bytes containing the metrics in Prometheus exposition format
    """
    return generate_latest(_registry)  # type: ignore[no-any-return]
