"""Prometheus metrics for ledger throughput, rejections and event delivery"""

from prometheus_client import Counter, Histogram

# Ledger metrics
ledger_operation_counter = Counter(
    "ledger_operations_total",
    "Ledger operations processed",
    ["operation", "outcome"],  # outcome: committed | rejected | failed
)

ledger_amount_histogram = Histogram(
    "ledger_amount_cents",
    "Amounts moved by committed ledger operations",
    ["operation"],
    buckets=[100, 1_000, 5_000, 10_000, 50_000, 100_000, 500_000, 1_000_000],
)

domain_error_counter = Counter(
    "ledger_domain_errors_total",
    "Requests rejected by ledger rules",
    ["code"],  # insufficient_funds | credit_limit_exceeded | ...
)

storage_failure_counter = Counter(
    "ledger_storage_failures_total",
    "Requests failed by database errors",
)

# Event webhook metrics
webhook_latency_histogram = Histogram(
    "event_webhook_latency_seconds",
    "Ledger event webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

webhook_failure_counter = Counter(
    "event_webhook_failures_total",
    "Failed ledger event deliveries",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_operation(operation: str, amount_cents: int | None = None) -> None:
    """Record a committed ledger operation"""
    ledger_operation_counter.labels(operation=operation, outcome="committed").inc()
    if amount_cents is not None:
        ledger_amount_histogram.labels(operation=operation).observe(amount_cents)


def record_rejection(operation: str, code: str) -> None:
    """Record a request refused by a ledger rule"""
    ledger_operation_counter.labels(operation=operation, outcome="rejected").inc()
    domain_error_counter.labels(code=code).inc()


def record_failure(operation: str) -> None:
    ledger_operation_counter.labels(operation=operation, outcome="failed").inc()
    storage_failure_counter.inc()
