"""Prometheus metrics for settlements, write failures and request latency"""

from decimal import Decimal
from prometheus_client import Counter, Histogram

# Settlement metrics
settlement_counter = Counter(
    "shop_settlement_total",
    "Orders settled on delivery",
    ["outcome"],  # settled | debt | credit
)

rejected_payment_counter = Counter(
    "shop_rejected_payment_total",
    "Delivery attempts rejected for zero payment",
)

# Write sequence metrics
write_step_failure_counter = Counter(
    "shop_write_step_failures_total",
    "Failed steps in multi-write sequences",
    ["sequence", "step"],
)

orders_placed_counter = Counter(
    "shop_orders_placed_total",
    "Orders placed from quotes",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_settlement(new_debt: Decimal) -> None:
    """Count settlements by resulting debt"""
    if new_debt > 0:
        outcome = "debt"
    elif new_debt < 0:
        outcome = "credit"
    else:
        outcome = "settled"

    settlement_counter.labels(outcome=outcome).inc()
