"""
Prometheus metrics for the booking ledger and its store adapter.
Exposed at the /metrics endpoint.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

booking_attempts = Counter(
    "ticketbook_booking_attempts_total",
    "Ledger operations by outcome",
    ["operation", "outcome"],  # create/cancel x success, insufficient, not_found, ...
)

booking_latency = Histogram(
    "ticketbook_booking_latency_seconds",
    "Ledger operation latency",
    ["operation"],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)

ledger_conflicts = Counter(
    "ticketbook_ledger_conflict_retries_total",
    "Optimistic version conflicts that triggered a re-read",
)

store_retries = Counter(
    "ticketbook_store_transient_retries_total",
    "Store transactions retried after a transient failure",
    ["operation"],
)

cache_operations = Counter(
    "ticketbook_cache_operations_total",
    "Cache operations",
    ["operation", "result"],  # get/set x hit/miss/error
)


def metrics_endpoint() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


def record_booking_outcome(operation: str, outcome: str) -> None:
    booking_attempts.labels(operation=operation, outcome=outcome).inc()


def record_conflict_retry() -> None:
    ledger_conflicts.inc()


def record_store_retry(operation: str) -> None:
    store_retries.labels(operation=operation).inc()


def record_cache_operation(operation: str, hit: bool) -> None:
    cache_operations.labels(operation=operation, result="hit" if hit else "miss").inc()
