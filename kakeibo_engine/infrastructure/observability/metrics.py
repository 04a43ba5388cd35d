"""Prometheus metrics for settlement runs and request latency"""

from typing import Iterable
from prometheus_client import Counter, Histogram

from kakeibo_engine.domain.models import PaymentInstrument, SettlementResult

# Settlement metrics
settlement_run_counter = Counter(
    "kakeibo_settlement_runs_total",
    "Settlement passes executed",
    ["outcome"],  # settled | noop
)

obligations_settled_counter = Counter(
    "kakeibo_obligations_settled_total",
    "Obligations moved from pending to settled",
    ["billing_type"],  # immediate | monthly
)

account_delta_histogram = Histogram(
    "kakeibo_account_delta_amount",
    "Absolute balance change applied per account in one settlement pass",
    buckets=[1_000, 5_000, 10_000, 50_000, 100_000, 500_000, 1_000_000],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_settlement(result: SettlementResult, instruments: Iterable[PaymentInstrument]) -> None:
    """Record settlement counts by billing type and the size of each account delta"""
    settlement_run_counter.labels(outcome="noop" if result.is_empty else "settled").inc()

    billing_types = {pm.id: pm.billing_type for pm in instruments}
    for obligation in result.settled:
        billing_type = billing_types.get(obligation.payment_instrument_id)
        label = billing_type.value if billing_type is not None else "unknown"
        obligations_settled_counter.labels(billing_type=label).inc()

    for delta in result.account_deltas.values():
        account_delta_histogram.observe(abs(delta))
