"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Booking metrics
booking_attempts = Counter(
    'booking_attempts_total',
    'Total booking allocator calls',
    ['operation', 'outcome']  # outcome: success, not_found, invalid_request, error, or a forbidden reason
)

booking_latency = Histogram(
    'booking_latency_seconds',
    'Booking allocator latency',
    ['operation'],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

# Store metrics
store_retries = Counter(
    'booking_store_retries_total',
    'Allocator retries after a store transaction lost a race',
    ['operation']
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)

redis_connection_errors = Counter(
    'redis_connection_errors_total',
    'Redis connection errors'
)


def metrics_endpoint() -> Response:
    """Prometheus text exposition of the default registry."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_booking_attempt(operation: str, outcome: str):
    """Record an allocator call. Operation: get, create, change_room"""
    booking_attempts.labels(operation=operation, outcome=outcome).inc()


def record_store_retry(operation: str):
    store_retries.labels(operation=operation).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
