"""
Process-wide lifecycle policy values.

Loaded once from the ``SystemSettings`` row (created from the Django
``BEDS_*`` settings on first use) and kept in memory. ``update_settings``
persists and broadcasts a change; ``reload_settings`` re-reads the row
after an out-of-band edit.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import asdict, dataclass, replace

from django.conf import settings as django_settings

from beds.errors import ValidationError
from beds.models import SystemSettings
from beds.services import notify

logger = logging.getLogger(__name__)

PERIODS = ('24h', '7d', '30d')


@dataclass(frozen=True)
class PolicySettings:
    warning_threshold: int = 80
    critical_threshold: int = 90
    reservation_ttl_hours: int = 2
    auto_expire_reservations: bool = True
    default_period: str = '24h'
    auto_refresh_interval: int = 60

    def as_dict(self) -> dict:
        return {
            'warningThreshold': self.warning_threshold,
            'criticalThreshold': self.critical_threshold,
            'reservationTtlHours': self.reservation_ttl_hours,
            'autoExpireReservations': self.auto_expire_reservations,
            'defaultPeriod': self.default_period,
            'autoRefreshInterval': self.auto_refresh_interval,
        }


_lock = threading.Lock()
_current: PolicySettings | None = None


def _defaults() -> PolicySettings:
    return PolicySettings(
        warning_threshold=django_settings.BEDS_OCCUPANCY_WARNING,
        critical_threshold=django_settings.BEDS_OCCUPANCY_CRITICAL,
        reservation_ttl_hours=django_settings.BEDS_RESERVATION_TTL_HOURS,
        auto_expire_reservations=django_settings.BEDS_AUTO_EXPIRE_RESERVATIONS,
    )


def _from_row(row: SystemSettings) -> PolicySettings:
    return PolicySettings(
        warning_threshold=row.warning_threshold,
        critical_threshold=row.critical_threshold,
        reservation_ttl_hours=row.reservation_ttl_hours,
        auto_expire_reservations=row.auto_expire_reservations,
        default_period=row.default_period,
        auto_refresh_interval=row.auto_refresh_interval,
    )


def _load_row() -> SystemSettings:
    row, created = SystemSettings.objects.get_or_create(
        singleton='settings', defaults=asdict(_defaults()),
    )
    if created:
        logger.info("Initialised system settings from defaults")
    return row


def get_settings() -> PolicySettings:
    global _current
    if _current is None:
        with _lock:
            if _current is None:
                _current = _from_row(_load_row())
    return _current


def reload_settings() -> PolicySettings:
    global _current
    with _lock:
        _current = _from_row(_load_row())
    return _current


def invalidate() -> None:
    """Drop the in-memory copy; the next read goes to the database."""
    global _current
    with _lock:
        _current = None


def validate(values: PolicySettings) -> None:
    if not 1 <= values.reservation_ttl_hours <= 24:
        raise ValidationError('Reservation TTL must be between 1 and 24 hours')
    for name in ('warning_threshold', 'critical_threshold'):
        if not 0 <= getattr(values, name) <= 100:
            raise ValidationError('Thresholds must be between 0 and 100')
    if values.warning_threshold > values.critical_threshold:
        raise ValidationError('Warning threshold cannot exceed critical threshold')
    if values.default_period not in PERIODS:
        raise ValidationError(f"Default period must be one of: {', '.join(PERIODS)}")
    if values.auto_refresh_interval < 10:
        raise ValidationError('Auto refresh interval must be at least 10 seconds')


def _persist(values: PolicySettings, actor) -> PolicySettings:
    global _current
    row = _load_row()
    for field, value in asdict(values).items():
        setattr(row, field, value)
    row.updated_by = actor if getattr(actor, 'pk', None) else None
    row.save()
    with _lock:
        _current = values
    notify.publish('settings.updated', values.as_dict())
    return values


def update_settings(*, actor=None, **changes) -> PolicySettings:
    unknown = set(changes) - set(PolicySettings.__dataclass_fields__)
    if unknown:
        raise ValidationError(f"Unknown setting(s): {', '.join(sorted(unknown))}")
    changes = {k: v for k, v in changes.items() if v is not None}
    values = replace(get_settings(), **changes)
    validate(values)
    logger.info("System settings updated: %s", changes)
    return _persist(values, actor)


def reset_settings(*, actor=None) -> PolicySettings:
    logger.info("System settings reset to defaults")
    return _persist(_defaults(), actor)
