"""Prometheus counters for the bed lifecycle (exported via django_prometheus)."""
from prometheus_client import Counter

REQUEST_TRANSITIONS = Counter(
    'bedmanager_request_transitions_total',
    'Bed request state transitions',
    ['status'],
)
RESERVATIONS_EXPIRED = Counter(
    'bedmanager_reservations_expired_total',
    'Approved reservations reclaimed by the expiry sweeper',
)
SWEEP_FAILURES = Counter(
    'bedmanager_expiry_sweep_failures_total',
    'Per-record failures during reservation expiry sweeps',
)
BED_TRANSITIONS = Counter(
    'bedmanager_bed_transitions_total',
    'Bed status transitions',
    ['source', 'target'],
)
