"""Prometheus metrics for monitoring ledger activity, oracle health, and transfer performance"""

from prometheus_client import Counter, Histogram, Gauge

# Ledger metrics
ledger_operation_counter = Counter(
    "vault_ledger_operations_total",
    "Committed ledger operations",
    ["kind"],  # deposit | withdrawal | emergency_withdrawal | interest_payment
)

ledger_amount_counter = Counter(
    "vault_ledger_amount_wei_total",
    "Native asset moved by committed ledger operations",
    ["kind"],
)

rejected_operation_counter = Counter(
    "vault_rejected_operations_total",
    "Operations aborted by a domain error",
    ["error"],
)

holdings_gauge = Gauge(
    "vault_holdings_wei",
    "Native asset currently in custody",
)

# Oracle metrics
oracle_update_counter = Counter(
    "vault_oracle_updates_total",
    "Validated cache refreshes",
    ["symbol"],
)

oracle_validation_failure_counter = Counter(
    "vault_oracle_validation_failures_total",
    "Feed readings rejected by validation",
    ["reason"],
)

feed_fetch_failures_counter = Counter(
    "feed_fetch_failures_total",
    "Failed price feed calls",
)

# Transfer sink metrics
transfer_latency_histogram = Histogram(
    "transfer_latency_seconds",
    "Transfer sink response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

transfer_failure_counter = Counter(
    "transfer_failures_total",
    "Failed transfer sink attempts",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_ledger_operation(kind: str, amount: int, holdings: int) -> None:
    """Record a committed ledger operation and the resulting holdings"""
    ledger_operation_counter.labels(kind=kind).inc()
    ledger_amount_counter.labels(kind=kind).inc(amount)
    holdings_gauge.set(holdings)


def record_rejection(error: str) -> None:
    """Record an operation aborted at the HTTP boundary"""
    rejected_operation_counter.labels(error=error).inc()


def record_validation_failure(reason: str) -> None:
    oracle_validation_failure_counter.labels(reason=reason).inc()
