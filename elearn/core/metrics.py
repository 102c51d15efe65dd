"""Prometheus metric inventory.

Everything the service measures is declared here; other modules import
the metric they own and increment it at the point of action.

HTTP metrics are labelled by ROUTE TEMPLATE ("/v1/courses/{course_id}"),
not by raw path.  Raw paths carry course/discussion ids, and one label
value per id would grow the time-series count without bound.

Domain counters track the writes that carry derived-aggregate side
effects, so a dashboard can line up e.g. `enrollments_created_total`
against `aggregate_update_failures_total`.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, route, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    # Catalog reads sit at the low end; progress summaries and checkout
    # (Stripe round-trip) at the high end.
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Domain metrics
# ---------------------------------------------------------------------------

ENROLLMENTS_CREATED = Counter(
    "enrollments_created_total",
    "Enrollments committed, by how they were created",
    ["source"],  # "direct" or "purchase"
)

REVIEWS_SUBMITTED = Counter(
    "reviews_submitted_total",
    "Course reviews committed, by star rating",
    ["rating"],
)

DISCUSSION_REPLIES = Counter(
    "discussion_replies_total",
    "Discussion replies committed",
)

LIVE_CLASS_JOINS = Counter(
    "live_class_joins_total",
    "Live class join attempts by outcome",
    ["result"],  # "joined", "rejoined", "full"
)

AGGREGATE_UPDATE_FAILURES = Counter(
    "aggregate_update_failures_total",
    "Derived counter updates that failed and rolled back their source write",
    ["aggregate"],  # total_enrollments|rating|view_count|reply_count
)

PAYMENTS = Counter(
    "payments_total",
    "Checkout operations by step and outcome",
    ["step", "result"],  # step: intent|complete; result: ok|rejected|error
)

RATE_LIMIT_HITS = Counter(
    "rate_limit_hits_total",
    "Requests rejected by rate limiting (429s)",
    ["action"],
)
