"""Prometheus metrics configuration."""

from prometheus_client import Counter, Histogram, Info

# Service info
SERVICE_INFO = Info("chatlogger", "Chatlogger API service information")

# Request metrics
HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Access control metrics
ACCESS_DECISIONS_TOTAL = Counter(
    "access_decisions_total",
    "Access policy decisions",
    ["operation", "outcome", "reason"],  # outcome: allowed/denied
)

ORG_CONTEXT_RESOLUTIONS_TOTAL = Counter(
    "org_context_resolutions_total",
    "Organization context resolutions",
    ["source"],  # api_key, home, query, body, path, missing, ambiguous
)

# Aggregation metrics
AGGREGATION_QUERY_DURATION_SECONDS = Histogram(
    "aggregation_query_duration_seconds",
    "Aggregation query latency in seconds",
    ["query"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

AGGREGATION_ROWS = Histogram(
    "aggregation_rows",
    "Rows returned by aggregation queries",
    ["query"],
    buckets=(0, 1, 5, 10, 25, 50, 100, 500),
)


def set_service_info(version: str, environment: str) -> None:
    """Set service information.

    Args:
        version: Service version
        environment: Deployment environment
    """
    SERVICE_INFO.info({
        "version": version,
        "environment": environment,
    })


def record_http_request(
    method: str,
    endpoint: str,
    status_code: int,
    duration_seconds: float,
) -> None:
    """Record an HTTP request.

    Args:
        method: HTTP method
        endpoint: Request endpoint
        status_code: Response status code
        duration_seconds: Request duration in seconds
    """
    HTTP_REQUESTS_TOTAL.labels(
        method=method,
        endpoint=endpoint,
        status_code=str(status_code),
    ).inc()
    HTTP_REQUEST_DURATION_SECONDS.labels(
        method=method,
        endpoint=endpoint,
    ).observe(duration_seconds)


def record_access_decision(operation: str, allowed: bool, reason: str | None) -> None:
    """Record an access policy decision.

    Args:
        operation: Operation name
        allowed: Whether the operation was allowed
        reason: Denial reason code (empty when allowed)
    """
    ACCESS_DECISIONS_TOTAL.labels(
        operation=operation,
        outcome="allowed" if allowed else "denied",
        reason=reason or "",
    ).inc()


def record_org_context(source: str) -> None:
    """Record how a request's organization context was resolved."""
    ORG_CONTEXT_RESOLUTIONS_TOTAL.labels(source=source).inc()


def record_aggregation_query(query: str, duration_seconds: float, rows: int) -> None:
    """Record an aggregation query.

    Args:
        query: Aggregation name (activity, role_stats, top_actors)
        duration_seconds: Query duration in seconds
        rows: Number of rows returned
    """
    AGGREGATION_QUERY_DURATION_SECONDS.labels(query=query).observe(duration_seconds)
    AGGREGATION_ROWS.labels(query=query).observe(rows)
