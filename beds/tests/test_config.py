import pytest

from beds.errors import ValidationError
from beds.models import SystemSettings
from beds.services import config


def test_defaults_come_from_django_settings(db, settings):
    settings.BEDS_RESERVATION_TTL_HOURS = 4
    values = config.get_settings()
    assert values.reservation_ttl_hours == 4
    assert values.warning_threshold == 80 and values.critical_threshold == 90
    assert SystemSettings.objects.count() == 1


def test_values_are_cached(db):
    first = config.get_settings()
    SystemSettings.objects.update(reservation_ttl_hours=7)
    assert config.get_settings() is first
    assert config.reload_settings().reservation_ttl_hours == 7


def test_update_persists_and_broadcasts(admin, events):
    values = config.update_settings(actor=admin, reservation_ttl_hours=6, warning_threshold=70)
    assert values.reservation_ttl_hours == 6
    row = SystemSettings.objects.get()
    assert (row.reservation_ttl_hours, row.warning_threshold, row.updated_by_id) == (6, 70, admin.pk)
    config.invalidate()
    assert config.get_settings().warning_threshold == 70
    assert events[-1] == ('settings.updated', values.as_dict(), [])


@pytest.mark.parametrize('changes', [
    {'reservation_ttl_hours': 0},
    {'reservation_ttl_hours': 25},
    {'warning_threshold': 95},
    {'critical_threshold': 101},
    {'default_period': '1y'},
    {'auto_refresh_interval': 5},
    {'colour': 'blue'},
])
def test_invalid_updates_leave_settings_alone(db, changes):
    before = config.get_settings()
    with pytest.raises(ValidationError):
        config.update_settings(**changes)
    assert config.get_settings() == before
    assert SystemSettings.objects.get().reservation_ttl_hours == before.reservation_ttl_hours


def test_reset_restores_defaults(admin):
    config.update_settings(actor=admin, reservation_ttl_hours=12, default_period='7d')
    values = config.reset_settings(actor=admin)
    assert values.reservation_ttl_hours == 2
    assert values.default_period == '24h'
    assert SystemSettings.objects.get().default_period == '24h'


def test_as_dict_uses_api_names(db):
    assert set(config.get_settings().as_dict()) == {
        'warningThreshold', 'criticalThreshold', 'reservationTtlHours',
        'autoExpireReservations', 'defaultPeriod', 'autoRefreshInterval',
    }
