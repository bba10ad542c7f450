"""Prometheus metrics for payment event generation, ledger writes and continuity"""

from prometheus_client import Counter, Histogram

from apargo_ledger.domain.models import SchedulerRun

# Scheduler metrics
payment_events_created_counter = Counter(
    "apargo_payment_events_created_total",
    "Payment events created by the scheduler",
    ["category"],
)

scheduler_category_failures_counter = Counter(
    "apargo_scheduler_category_failures_total",
    "Categories whose payment event generation failed",
)

scheduler_category_skipped_counter = Counter(
    "apargo_scheduler_category_skipped_total",
    "Categories skipped because events already existed",
)

# Ledger metrics
ledger_delta_writes_counter = Counter(
    "apargo_ledger_delta_writes_total",
    "Balance sheet cells written from deltas",
    ["source"],  # payment | expense
)

continuity_violations_counter = Counter(
    "apargo_continuity_violations_total",
    "Opening/closing continuity breaks detected",
    ["scope"],  # aggregated | stored
)

# Webhook metrics
webhook_latency_histogram = Histogram(
    "reporting_webhook_latency_seconds",
    "Reporting webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

webhook_failure_counter = Counter(
    "reporting_webhook_failures_total",
    "Failed reporting webhook deliveries",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_scheduler_run(run: SchedulerRun) -> None:
    """Record per-category scheduler outcomes"""
    for result in run.results:
        if result.skipped:
            scheduler_category_skipped_counter.inc()
        elif result.error:
            scheduler_category_failures_counter.inc()
        if result.events_created:
            payment_events_created_counter.labels(category=result.category_name).inc(result.events_created)


def record_continuity(scope: str, error_count: int) -> None:
    if error_count:
        continuity_violations_counter.labels(scope=scope).inc(error_count)
