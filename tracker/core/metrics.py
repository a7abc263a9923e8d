"""Prometheus metric inventory.

Every metric the service exports is declared here; the modules that own
the behaviour import the metric and increment/observe it at the point of
action.

HTTP metrics are fed by MetricsMiddleware.  The progress metrics answer
the questions that matter for this service:

  - how many learning events arrive, per content type, and how many are
    rejected at validation?
  - how often does a recompute fail, and why?
      rate(progress_recomputes_total{result="error"}[5m])
  - how long does a full rebuild take as event histories grow?
      histogram_quantile(0.95, rate(progress_recompute_duration_seconds_bucket[5m]))
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by the MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Progress metrics
# ---------------------------------------------------------------------------

EVENTS_RECORDED = Counter(
    "learning_events_recorded_total",
    "Learning events durably appended to the event store",
    ["content_type"],  # video|reading|quiz
)

EVENTS_REJECTED = Counter(
    "learning_events_rejected_total",
    "Learning events rejected before storage",
    ["reason"],  # missing_fields|invalid_content_type|invalid_pairing|out_of_range
)

PROGRESS_RECOMPUTES = Counter(
    "progress_recomputes_total",
    "Full progress snapshot rebuilds by outcome",
    ["result"],  # ok|course_not_found|error
)

RECOMPUTE_DURATION = Histogram(
    "progress_recompute_duration_seconds",
    "Time to rebuild and upsert one progress snapshot",
    # A rebuild is O(events) for the (user, course) pair: sub-10ms for a
    # fresh enrollment, tens of ms for a long history.
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
)

CACHE_OPERATIONS = Counter(
    "cache_operations_total",
    "Progress cache get operations by result",
    ["operation"],  # "hit" or "miss"
)
