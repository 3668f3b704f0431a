import prometheus_client
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Guard against duplicated metric registration when the module is imported
# multiple times (for example, when running uvicorn with the reloader).
REQUEST_COUNT = getattr(prometheus_client, "salesdash_REQUEST_COUNT", None)
REQUEST_LATENCY = getattr(prometheus_client, "salesdash_REQUEST_LATENCY", None)
CACHE_OPERATIONS = getattr(prometheus_client, "salesdash_CACHE_OPERATIONS", None)
CACHE_HITS = getattr(prometheus_client, "salesdash_CACHE_HITS", None)
CACHE_MISSES = getattr(prometheus_client, "salesdash_CACHE_MISSES", None)
CACHE_OPERATION_DURATION = getattr(prometheus_client, "salesdash_CACHE_OPERATION_DURATION", None)
PERMISSION_CHECKS = getattr(prometheus_client, "salesdash_PERMISSION_CHECKS", None)
PERMISSION_RESOLUTIONS = getattr(prometheus_client, "salesdash_PERMISSION_RESOLUTIONS", None)
CACHE_INVALIDATIONS = getattr(prometheus_client, "salesdash_CACHE_INVALIDATIONS", None)
AUDIT_EVENTS = getattr(prometheus_client, "salesdash_AUDIT_EVENTS", None)

if REQUEST_COUNT is None:
    # HTTP Metrics
    REQUEST_COUNT = Counter(
        "http_requests_total", "Total HTTP requests", ["method", "endpoint", "http_status"]
    )
    REQUEST_LATENCY = Histogram(
        "http_request_latency_seconds", "HTTP request latency in seconds", ["method", "endpoint"]
    )

    # Cache Metrics
    CACHE_OPERATIONS = Counter(
        "cache_operations_total", "Total cache operations", ["operation", "cache_type"]
    )
    CACHE_HITS = Counter("cache_hits_total", "Total cache hits", ["cache_type", "key_pattern"])
    CACHE_MISSES = Counter(
        "cache_misses_total", "Total cache misses", ["cache_type", "key_pattern"]
    )
    CACHE_OPERATION_DURATION = Histogram(
        "cache_operation_duration_seconds",
        "Cache operation duration in seconds",
        ["operation", "cache_type"],
    )

    # Authorization Metrics
    PERMISSION_CHECKS = Counter(
        "permission_checks_total",
        "Total permission checks",
        ["permission", "result"],  # result: granted/denied/error
    )
    PERMISSION_RESOLUTIONS = Counter(
        "permission_resolutions_total",
        "Effective permission sets computed from the store",
        ["result"],  # result: success/failure
    )
    CACHE_INVALIDATIONS = Counter(
        "permission_cache_invalidations_total",
        "Permission cache invalidations",
        ["scope"],  # scope: user/all
    )
    AUDIT_EVENTS = Counter("audit_events_total", "Total audit events", ["action", "entity"])

    prometheus_client.salesdash_REQUEST_COUNT = REQUEST_COUNT  # type: ignore[attr-defined]
    prometheus_client.salesdash_REQUEST_LATENCY = REQUEST_LATENCY  # type: ignore[attr-defined]
    prometheus_client.salesdash_CACHE_OPERATIONS = CACHE_OPERATIONS  # type: ignore[attr-defined]
    prometheus_client.salesdash_CACHE_HITS = CACHE_HITS  # type: ignore[attr-defined]
    prometheus_client.salesdash_CACHE_MISSES = CACHE_MISSES  # type: ignore[attr-defined]
    prometheus_client.salesdash_CACHE_OPERATION_DURATION = CACHE_OPERATION_DURATION  # type: ignore[attr-defined]
    prometheus_client.salesdash_PERMISSION_CHECKS = PERMISSION_CHECKS  # type: ignore[attr-defined]
    prometheus_client.salesdash_PERMISSION_RESOLUTIONS = PERMISSION_RESOLUTIONS  # type: ignore[attr-defined]
    prometheus_client.salesdash_CACHE_INVALIDATIONS = CACHE_INVALIDATIONS  # type: ignore[attr-defined]
    prometheus_client.salesdash_AUDIT_EVENTS = AUDIT_EVENTS  # type: ignore[attr-defined]


def record_permission_check(permission: str, result: str) -> None:
    """Increment the permission check counter; never raises."""
    try:
        if PERMISSION_CHECKS is not None:
            PERMISSION_CHECKS.labels(permission=permission, result=result).inc()
    except Exception:
        pass  # Don't fail auth on metrics errors


def metrics_response():
    return generate_latest(), CONTENT_TYPE_LATEST
