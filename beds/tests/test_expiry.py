import threading
from datetime import timedelta

import pytest
from django.core.management import call_command
from django.utils import timezone

from beds.models import Bed, BedRequest
from beds.services import bed_requests, config, expiry
from beds.services.expiry import ReservationExpirySweeper, due_requests, sweep


@pytest.fixture
def reserve(er_staff, manager, make_bed):
    """Create and approve a request, returning it with the reserved bed."""
    def _reserve(number, name='J. Doe', at=None, ttl_hours=None):
        bed = make_bed(number)
        req = bed_requests.create_request(er_staff, {'name': name, 'triage_level': 'Critical'})
        req = bed_requests.approve_request(req.request_id, bed.pk, actor=manager, ttl_hours=ttl_hours,
                                           now=at or timezone.now())
        return req, bed
    return _reserve


def test_due_requests_orders_by_deadline(reserve):
    now = timezone.now()
    late, _ = reserve('BED-001', ttl_hours=3, at=now)
    early, _ = reserve('BED-002', ttl_hours=1, at=now)
    assert due_requests(now) == []
    assert due_requests(now + timedelta(hours=4)) == [early.request_id, late.request_id]


def test_sweep_is_idempotent(reserve, events):
    now = timezone.now()
    req, bed = reserve('BED-010', at=now)
    later = now + timedelta(hours=3)

    assert sweep(now=later) == 1
    assert sweep(now=later) == 0

    bed.refresh_from_db()
    req.refresh_from_db()
    assert bed.status == Bed.STATUS_AVAILABLE
    assert req.status == BedRequest.STATUS_EXPIRED
    assert [e[0] for e in events].count('request.expired') == 1


def test_sweep_skips_when_auto_expire_disabled(reserve, admin):
    now = timezone.now()
    req, bed = reserve('BED-010', at=now)
    config.update_settings(actor=admin, auto_expire_reservations=False)

    assert sweep(now=now + timedelta(hours=5)) == 0
    req.refresh_from_db()
    assert req.status == BedRequest.STATUS_APPROVED


def test_sweep_leaves_bed_alone_if_no_longer_reserved(reserve):
    now = timezone.now()
    req, bed = reserve('BED-010', at=now)
    Bed.objects.filter(pk=bed.pk).update(status=Bed.STATUS_MAINTENANCE)

    assert sweep(now=now + timedelta(hours=3)) == 1
    bed.refresh_from_db()
    req.refresh_from_db()
    assert bed.status == Bed.STATUS_MAINTENANCE
    assert req.status == BedRequest.STATUS_EXPIRED


def test_one_failure_does_not_stop_the_sweep(reserve, monkeypatch):
    now = timezone.now()
    broken, _ = reserve('BED-001', name='Broken', at=now)
    fine, fine_bed = reserve('BED-002', name='Fine', at=now)
    real = expiry.expire_request

    def flaky(request_id, *, now=None):
        if request_id == broken.request_id:
            raise RuntimeError('boom')
        return real(request_id, now=now)

    monkeypatch.setattr(expiry, 'expire_request', flaky)
    assert sweep(now=now + timedelta(hours=3)) == 1

    fine_bed.refresh_from_db()
    broken.refresh_from_db()
    assert fine_bed.status == Bed.STATUS_AVAILABLE
    assert broken.status == BedRequest.STATUS_APPROVED


def test_run_expiry_sweeper_once(reserve, capsys):
    reserve('BED-010', at=timezone.now() - timedelta(hours=3))
    call_command('run_expiry_sweeper', '--once')
    assert 'Expired 1 reservation(s)' in capsys.readouterr().out


def test_sweeper_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        ReservationExpirySweeper(interval=0)


def test_sweeper_sweeps_on_start_and_stops(monkeypatch):
    swept = threading.Event()

    def fake_sweep(now=None):
        swept.set()
        return 0

    monkeypatch.setattr(expiry, 'sweep', fake_sweep)
    monkeypatch.setattr(expiry, 'close_old_connections', lambda: None)

    sweeper = ReservationExpirySweeper(interval=3600)
    sweeper.start()
    try:
        assert swept.wait(5)
        assert sweeper.running
    finally:
        sweeper.stop(timeout=5)
    assert not sweeper.running


def test_sweeper_tick_survives_errors(monkeypatch):
    def broken(now=None):
        raise RuntimeError('database unavailable')

    monkeypatch.setattr(expiry, 'sweep', broken)
    monkeypatch.setattr(expiry, 'close_old_connections', lambda: None)
    assert ReservationExpirySweeper(interval=1).tick() == 0
