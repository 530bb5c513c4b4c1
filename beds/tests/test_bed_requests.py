from datetime import timedelta

import pytest
from django.utils import timezone

from beds.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from beds.models import Alert, AuditEvent, Bed, BedRequest, Patient
from beds.services import bed_requests as svc
from beds.services import beds as bed_service
from beds.services.expiry import sweep


def _create(actor, name='J. Doe', triage='Critical', **kw):
    return svc.create_request(actor, {'name': name, 'triage_level': triage}, **kw)


def test_create_assigns_sequential_ids_and_priority(er_staff, events):
    first = _create(er_staff)
    second = _create(er_staff, name='Sam', triage='Non-Urgent')
    assert first.request_id == 'REQ-000001'
    assert second.request_id == 'REQ-000002'
    assert first.priority == 5 and second.priority == 2
    assert first.status == BedRequest.STATUS_PENDING
    assert first.created_by_name == er_staff.display_name
    assert first.eta > timezone.now()
    assert 'request.created' in [e[0] for e in events]


@pytest.mark.parametrize('triage,priority', [('Critical', 5), ('Urgent', 3), ('Semi-Urgent', 3), ('Non-Urgent', 2), ('', 2)])
def test_priority_from_triage(er_staff, triage, priority):
    assert _create(er_staff, triage=triage).priority == priority


def test_create_requires_name(er_staff):
    with pytest.raises(ValidationError):
        svc.create_request(er_staff, {'name': '  '})


def test_create_is_limited_to_er_staff_and_admin(ward_staff, admin):
    with pytest.raises(ForbiddenError):
        _create(ward_staff)
    assert _create(admin).status == BedRequest.STATUS_PENDING


def test_reserve_then_expire_scenario(er_staff, manager, make_bed):
    bed = make_bed('BED-010')
    req = _create(er_staff)
    assert req.priority == 5

    now = timezone.now()
    req = svc.approve_request(req.request_id, bed.pk, actor=manager, now=now)
    bed.refresh_from_db()
    assert req.status == BedRequest.STATUS_APPROVED
    assert bed.status == Bed.STATUS_RESERVED
    assert bed.notes == f'Reserved for request {req.request_id}'
    assert req.assigned_bed_number == 'BED-010'
    assert req.reservation_expires_at == now + timedelta(hours=2)

    assert sweep(now=now + timedelta(hours=1)) == 0
    assert sweep(now=now + timedelta(hours=2, seconds=1)) == 1

    req.refresh_from_db()
    bed.refresh_from_db()
    assert req.status == BedRequest.STATUS_EXPIRED
    assert req.assigned_bed_id is None and req.reservation_expires_at is None
    assert req.expired_at is not None
    assert bed.status == Bed.STATUS_AVAILABLE
    assert Alert.objects.filter(severity='warning', message__contains='J. Doe').exists()


def test_approve_uses_explicit_ttl(er_staff, manager, make_bed):
    bed = make_bed('BED-010')
    req = _create(er_staff)
    now = timezone.now()
    req = svc.approve_request(req.request_id, bed.pk, actor=manager, ttl_hours=6, now=now)
    assert req.reservation_expires_at == now + timedelta(hours=6)


def test_approve_rejects_unavailable_bed(er_staff, manager, admitted):
    bed, _ = admitted('BED-014')
    req = _create(er_staff)
    with pytest.raises(ConflictError) as exc:
        svc.approve_request(req.request_id, bed.pk, actor=manager)
    assert str(exc.value) == 'Bed BED-014 is not available (current status: occupied)'
    req.refresh_from_db()
    assert req.status == BedRequest.STATUS_PENDING


def test_approve_missing_bed(er_staff, manager):
    req = _create(er_staff)
    with pytest.raises(NotFoundError):
        svc.approve_request(req.request_id, 9999, actor=manager)


def test_approve_twice_conflicts(er_staff, manager, make_bed):
    req = _create(er_staff)
    svc.approve_request(req.request_id, make_bed('BED-001').pk, actor=manager)
    with pytest.raises(ConflictError):
        svc.approve_request(req.request_id, make_bed('BED-002').pk, actor=manager)
    assert Bed.objects.get(bed_number='BED-002').status == Bed.STATUS_AVAILABLE


def test_approve_requires_manager(er_staff, ward_staff, make_bed):
    req = _create(er_staff)
    with pytest.raises(ForbiddenError):
        svc.approve_request(req.request_id, make_bed('BED-001').pk, actor=ward_staff)


def test_deny_uses_default_reason(er_staff, manager):
    req = svc.deny_request(_create(er_staff).request_id, actor=manager)
    assert req.status == BedRequest.STATUS_DENIED
    assert req.denial_reason == 'No available beds matching criteria'
    assert req.reviewed_by_id == manager.pk


def test_fulfill_admits_patient(er_staff, manager, ward_staff, make_bed, events):
    bed = make_bed('BED-010', ward='ICU')
    req = _create(er_staff)
    svc.approve_request(req.request_id, bed.pk, actor=manager)
    events.clear()

    req = svc.fulfill_request(req.request_id, actor=ward_staff)
    bed.refresh_from_db()
    patient = Patient.objects.get()
    assert req.status == BedRequest.STATUS_FULFILLED
    assert req.fulfilled_at is not None and req.reservation_expires_at is None
    assert req.patient_id == patient.pk
    assert patient.patient_id == 'PAT-000001'
    assert patient.status == Patient.STATUS_CRITICAL
    assert patient.bed_id == bed.pk and patient.department == 'ICU'
    assert bed.status == Bed.STATUS_OCCUPIED and bed.patient_id == patient.pk
    assert [e[0] for e in events][:3] == ['patient.admitted', 'bed.updated', 'request.fulfilled']

    with pytest.raises(ConflictError):
        svc.fulfill_request(req.request_id, actor=ward_staff)
    assert Patient.objects.count() == 1


def test_fulfill_requires_approval(er_staff, manager):
    req = _create(er_staff)
    with pytest.raises(ConflictError):
        svc.fulfill_request(req.request_id, actor=manager)


def test_fulfilled_request_is_not_expired(er_staff, manager, make_bed):
    bed = make_bed('BED-010')
    req = _create(er_staff)
    now = timezone.now()
    svc.approve_request(req.request_id, bed.pk, actor=manager, now=now)
    svc.fulfill_request(req.request_id, actor=manager)
    assert svc.expire_request(req.request_id, now=now + timedelta(days=1)) is None
    bed.refresh_from_db()
    assert bed.status == Bed.STATUS_OCCUPIED


def test_cancel_by_requester(er_staff, events):
    req = _create(er_staff)
    req = svc.cancel_request(req.request_id, actor=er_staff, reason='Transferred elsewhere')
    assert req.status == BedRequest.STATUS_DENIED
    assert req.denial_reason == 'Transferred elsewhere'
    assert req.cancel_reason == 'Transferred elsewhere'
    assert req.cancelled_by_id == er_staff.pk and req.cancelled_at is not None
    assert 'request.cancelled' in [e[0] for e in events]


def test_cancel_by_other_er_staff_is_forbidden(er_staff, make_user):
    req = _create(er_staff)
    other = make_user('er2', 'er_staff')
    with pytest.raises(ForbiddenError):
        svc.cancel_request(req.request_id, actor=other)


def test_cancel_by_manager_and_only_when_pending(er_staff, manager, make_bed):
    req = _create(er_staff)
    assert svc.cancel_request(req.request_id, actor=manager).status == BedRequest.STATUS_DENIED
    approved = _create(er_staff)
    svc.approve_request(approved.request_id, make_bed('BED-001').pk, actor=manager)
    with pytest.raises(ConflictError):
        svc.cancel_request(approved.request_id, actor=er_staff)


def test_expire_is_noop_before_deadline(er_staff, manager, make_bed):
    req = _create(er_staff)
    now = timezone.now()
    svc.approve_request(req.request_id, make_bed('BED-001').pk, actor=manager, now=now)
    assert svc.expire_request(req.request_id, now=now + timedelta(minutes=5)) is None
    req.refresh_from_db()
    assert req.status == BedRequest.STATUS_APPROVED


def test_reserved_bed_cannot_be_freed_while_request_holds_it(er_staff, manager, make_bed):
    bed = make_bed('BED-010')
    req = _create(er_staff)
    svc.approve_request(req.request_id, bed.pk, actor=manager)
    with pytest.raises(ConflictError) as exc:
        bed_service.update_bed(bed.pk, actor=manager, status=Bed.STATUS_AVAILABLE)
    assert req.request_id in str(exc.value)
    bed.refresh_from_db()
    assert bed.status == Bed.STATUS_RESERVED


def test_expiring_stale_reservation_keeps_newer_holder(er_staff, manager, make_bed):
    bed = make_bed('BED-010')
    first = _create(er_staff, name='A. First')
    now = timezone.now()
    svc.approve_request(first.request_id, bed.pk, actor=manager, now=now)

    # freed behind the first request's back, then reserved again
    Bed.objects.filter(pk=bed.pk).update(status=Bed.STATUS_AVAILABLE)
    second = _create(er_staff, name='B. Second')
    svc.approve_request(second.request_id, bed.pk, actor=manager, ttl_hours=6, now=now)

    first = svc.expire_request(first.request_id, now=now + timedelta(hours=3))
    assert first.status == BedRequest.STATUS_EXPIRED
    second.refresh_from_db()
    bed.refresh_from_db()
    assert second.status == BedRequest.STATUS_APPROVED
    assert bed.status == Bed.STATUS_RESERVED
    assert bed.notes == f'Reserved for request {second.request_id}'
    assert AuditEvent.objects.get(action='request.expire', object_id=first.request_id).detail == {'bed': ''}


def test_fulfill_rejects_bed_reserved_for_another_request(er_staff, manager, ward_staff, make_bed):
    bed = make_bed('BED-010')
    first = _create(er_staff, name='A. First')
    svc.approve_request(first.request_id, bed.pk, actor=manager)
    Bed.objects.filter(pk=bed.pk).update(status=Bed.STATUS_AVAILABLE)
    second = _create(er_staff, name='B. Second')
    svc.approve_request(second.request_id, bed.pk, actor=manager)

    with pytest.raises(ConflictError) as exc:
        svc.fulfill_request(first.request_id, actor=ward_staff)
    assert str(exc.value) == f'Bed BED-010 is no longer reserved for request {first.request_id}'
    assert Patient.objects.count() == 0

    svc.fulfill_request(second.request_id, actor=ward_staff)
    bed.refresh_from_db()
    assert bed.status == Bed.STATUS_OCCUPIED
    assert bed.patient.name == 'B. Second'


def test_soft_delete_only_terminal(er_staff, admin, manager):
    req = _create(er_staff)
    with pytest.raises(ConflictError):
        svc.soft_delete_request(req.request_id, actor=admin)
    svc.deny_request(req.request_id, actor=manager)
    req = svc.soft_delete_request(req.request_id, actor=er_staff)
    assert req.is_deleted and req.deleted_by_id == er_staff.pk
    assert svc.list_requests(admin) == []
    with pytest.raises(NotFoundError):
        svc.get_request(req.request_id, actor=admin)
    assert AuditEvent.objects.filter(action='request.delete', object_id=req.request_id).exists()


def test_update_recomputes_priority(er_staff):
    req = _create(er_staff, triage='Non-Urgent')
    req = svc.update_request(req.request_id, actor=er_staff, triage_level='Critical', notes='Deteriorating')
    assert req.priority == 5 and req.notes == 'Deteriorating'
    assert BedRequest.objects.get(pk=req.pk).priority == 5


def test_list_is_scoped_for_er_staff(er_staff, make_user, manager):
    mine = _create(er_staff)
    other = make_user('er2', 'er_staff')
    _create(other, name='Other')
    assert [r.request_id for r in svc.list_requests(er_staff)] == [mine.request_id]
    assert len(svc.list_requests(manager)) == 2
    with pytest.raises(ForbiddenError):
        svc.get_request(mine.request_id, actor=other)


def test_list_orders_by_priority(er_staff, manager):
    low = _create(er_staff, triage='Non-Urgent')
    high = _create(er_staff, triage='Critical')
    mid = _create(er_staff, triage='Urgent')
    assert [r.request_id for r in svc.list_requests(manager)] == [high.request_id, mid.request_id, low.request_id]


def test_request_stats(er_staff, manager):
    _create(er_staff)
    svc.deny_request(_create(er_staff, triage='Urgent').request_id, actor=manager)
    stats = svc.request_stats(manager)
    assert stats['total'] == 2
    assert stats['pending'] == 1 and stats['denied'] == 1
    assert stats['byTriage'] == {'Critical': 1, 'Urgent': 1}
