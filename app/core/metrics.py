"""Prometheus metrics for the forensics service."""

from prometheus_client import Counter, Histogram

# ---------------------------------------------------------------------------
# Assessment pipeline: end-to-end
# ---------------------------------------------------------------------------

forensics_assessment_requests_total = Counter(
    "forensics_assessment_requests_total",
    "Total assessment requests",
    ["status"],  # success | error
)

forensics_assessment_latency_seconds = Histogram(
    "forensics_assessment_latency_seconds",
    "End-to-end assessment latency in seconds",
    buckets=[1.0, 2.5, 5.0, 10.0, 15.0, 30.0, 45.0, 60.0, 120.0],
)

# ---------------------------------------------------------------------------
# Evidence collectors
# ---------------------------------------------------------------------------

forensics_collector_runs_total = Counter(
    "forensics_collector_runs_total",
    "Evidence collector outcomes",
    ["collector", "outcome"],  # outcome: ok | degraded | skipped
)

forensics_collector_latency_seconds = Histogram(
    "forensics_collector_latency_seconds",
    "Latency per evidence collector in seconds",
    ["collector"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
)

forensics_rate_limit_retries_total = Counter(
    "forensics_rate_limit_retries_total",
    "Outbound calls retried after HTTP 429",
    ["dependency"],
)

forensics_scratch_downloads_total = Counter(
    "forensics_scratch_downloads_total",
    "Media downloads into the scratch area",
    ["status"],  # success | skipped
)

# ---------------------------------------------------------------------------
# AI model
# ---------------------------------------------------------------------------

forensics_ai_calls_total = Counter(
    "forensics_ai_calls_total",
    "Total AI model calls",
    ["operation", "status"],  # status: success | error
)

forensics_ai_latency_seconds = Histogram(
    "forensics_ai_latency_seconds",
    "AI model call latency in seconds",
    ["operation"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 20.0, 30.0, 60.0],
)

# ---------------------------------------------------------------------------
# Investigations
# ---------------------------------------------------------------------------

forensics_investigations_started_total = Counter(
    "forensics_investigations_started_total",
    "Deep investigations started",
)

forensics_investigation_polls_total = Counter(
    "forensics_investigation_polls_total",
    "Investigation status polls by resulting status",
    ["status"],
)
