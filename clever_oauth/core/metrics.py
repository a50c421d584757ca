"""Prometheus metrics inventory.

Every metric the service exposes is declared here; the modules that own the
behavior import the object and increment/observe it at the point of action.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by MetricsMiddleware)
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
# OAuth flow metrics
# ---------------------------------------------------------------------------

OAUTH_CALLBACKS = Counter(
    "oauth_callbacks_total",
    "OAuth callback outcomes by strategy",
    # outcome: "success" or the failure kind (access_denied, csrf_detected,
    # invalid_credentials, timeout, failed_to_connect, missing_field, ...)
    ["strategy", "outcome"],
)

OAUTH_REQUEST_PHASES = Counter(
    "oauth_request_phases_total",
    "Redirects to the provider's authorize endpoint",
    ["strategy"],
)

# Outbound calls to the provider are network-bound; buckets start at 50ms.
TOKEN_EXCHANGE_DURATION = Histogram(
    "oauth_token_exchange_duration_seconds",
    "Round-trip time of the authorization-code grant request",
    ["strategy"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)
