"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Seat lock metrics
seat_lock_attempts = Counter(
    'seat_lock_attempts_total',
    'Seat lock acquisition attempts',
    ['result']  # success, conflict, invalid, not_found
)

seats_locked = Counter(
    'seats_locked_total',
    'Seats locked or renewed by successful lock requests'
)

# Booking confirmation metrics
booking_confirm_attempts = Counter(
    'booking_confirm_attempts_total',
    'Booking confirmation attempts',
    ['result']  # success, missing_locks, already_booked, not_found, error
)

booking_confirm_latency = Histogram(
    'booking_confirm_latency_seconds',
    'Booking confirmation transaction latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

# Sweeper metrics
expired_locks_swept = Counter(
    'expired_locks_swept_total',
    'Expired seat locks removed by the sweeper'
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_lock_attempt(result: str, seat_count: int = 0):
    """Record lock attempt. Result: success, conflict, invalid, not_found"""
    seat_lock_attempts.labels(result=result).inc()
    if result == "success" and seat_count:
        seats_locked.inc(seat_count)


def record_confirm_attempt(result: str):
    """Record confirm attempt. Result: success, missing_locks, already_booked, not_found, error"""
    booking_confirm_attempts.labels(result=result).inc()


def record_sweep(removed: int):
    if removed:
        expired_locks_swept.inc(removed)


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
