"""
Prometheus metrics for the entitlement service.

Custom metrics for business logic and performance monitoring.
"""

from prometheus_client import Counter, Histogram

# HTTP metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0],
)

# Webhook metrics
webhook_events_total = Counter(
    "webhook_events_total",
    "Payment provider events received",
    ["event_type", "outcome"],
)

webhook_processing_duration_seconds = Histogram(
    "webhook_processing_duration_seconds",
    "Time spent reconciling one provider event",
    ["event_kind"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

# License metrics
license_transitions_total = Counter(
    "license_transitions_total",
    "License record transitions",
    ["transition", "license_type"],
)

payment_failures_total = Counter(
    "payment_failures_total",
    "Invoice payment failures reported by the provider",
)

checkout_sessions_total = Counter(
    "checkout_sessions_total",
    "Hosted checkout pages opened",
    ["license_type"],
)

# Cache metrics
cache_hits_total = Counter(
    "cache_hits_total",
    "Total cache hits",
    ["cache_key"],
)

cache_misses_total = Counter(
    "cache_misses_total",
    "Total cache misses",
    ["cache_key"],
)

# Error metrics
errors_total = Counter(
    "errors_total",
    "Total errors",
    ["error_type", "endpoint"],
)
