"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Event lifecycle metrics
event_transitions = Counter(
    'event_state_transitions_total',
    'Event moderation state transitions',
    ['actor', 'action']  # owner/admin, SEND_TO_REVIEW/PUBLISH_EVENT/...
)

# Participation request metrics
participation_requests = Counter(
    'participation_requests_total',
    'Participation requests created',
    ['status']  # PENDING, CONFIRMED
)

allocation_batches = Counter(
    'allocation_batches_total',
    'Capacity allocation batches',
    ['result']  # applied, conflict
)

allocation_decisions = Counter(
    'allocation_decisions_total',
    'Per-request allocation decisions',
    ['outcome']  # confirmed, rejected
)

# Statistics metrics
hits_recorded = Counter(
    'hits_recorded_total',
    'Hits appended to the hit store'
)

stats_lookups = Counter(
    'stats_lookups_total',
    'View statistics lookups from the stats service',
    ['result']  # ok, degraded
)

hit_submissions = Counter(
    'hit_submissions_total',
    'Hit submissions to the stats service',
    ['result']  # ok, failed
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)


def metrics_endpoint() -> Response:
    """
    Prometheus metrics endpoint.

    Usage:
        @app.get("/metrics")
        def metrics():
            return metrics_endpoint()
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


# Convenience functions for instrumentation
def record_transition(actor: str, action: str):
    """Record a lifecycle transition. Actor: owner, admin"""
    event_transitions.labels(actor=actor, action=action).inc()


def record_allocation(confirmed: int, rejected: int):
    """Record the outcome of an applied allocation batch."""
    allocation_batches.labels(result="applied").inc()
    allocation_decisions.labels(outcome="confirmed").inc(confirmed)
    allocation_decisions.labels(outcome="rejected").inc(rejected)


def record_stats_lookup(degraded: bool):
    """Record a stats lookup. Degraded lookups fall back to zero views."""
    result = "degraded" if degraded else "ok"
    stats_lookups.labels(result=result).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
