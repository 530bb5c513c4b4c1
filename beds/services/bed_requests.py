"""
ER bed request lifecycle.

    pending -> approved -> fulfilled
    pending -> denied              (deny, or cancel by requester/manager)
    approved -> expired            (reservation expiry sweeper)

Every status change is a conditional write on the status the caller
observed, so a request that two actors race on resolves exactly once.
"""
from __future__ import annotations

import logging
from datetime import timedelta

from django.db import transaction
from django.db.models import Count
from django.utils import timezone

from beds import metrics
from beds.errors import ConflictError, NotFoundError, ValidationError
from beds.models import Bed, BedRequest, Patient
from beds.policy import ER_STAFF, require
from beds.serializers.payloads import patient_payload, request_payload
from beds.services import notify
from beds.services.alerts import raise_alert
from beds.services.audit import log_action
from beds.services.beds import check_ward_occupancy, publish_bed, reservation_holder, transition_bed
from beds.services.config import get_settings
from beds.services.sequences import next_patient_id, next_request_id

logger = logging.getLogger(__name__)

DEFAULT_ETA = timedelta(minutes=30)
DEFAULT_DENIAL_REASON = 'No available beds matching criteria'
DEFAULT_CANCEL_REASON = 'Cancelled by requester'
LIST_LIMIT = 100

PATIENT_FIELDS = {
    'name': 'patient_name',
    'age': 'patient_age',
    'gender': 'patient_gender',
    'contact_number': 'contact_number',
    'triage_level': 'triage_level',
    'required_equipment': 'required_equipment',
    'reason_for_admission': 'reason_for_admission',
    'estimated_stay': 'estimated_stay',
}


def _publish(event, req):
    topics = [notify.ward_topic(w) for w in {req.assigned_ward, req.preferred_ward} if w]
    notify.publish(event, request_payload(req), topics=topics)


def _locked(request_id) -> BedRequest:
    req = BedRequest.objects.select_for_update().filter(request_id=request_id, is_deleted=False).first()
    if req is None:
        raise NotFoundError('Bed request not found')
    return req


def _advance(req: BedRequest, expected: str, **fields) -> BedRequest:
    """Write ``fields`` only if ``req`` is still in ``expected``."""
    fields.setdefault('updated_at', timezone.now())
    updated = BedRequest.objects.filter(pk=req.pk, status=expected).update(**fields)
    if not updated:
        logger.warning("Lost update on %s: no longer %s", req.request_id, expected)
        raise ConflictError(f"Request {req.request_id} was modified concurrently; please retry")
    req.refresh_from_db()
    if 'status' in fields:
        metrics.REQUEST_TRANSITIONS.labels(status=fields['status']).inc()
    return req


def create_request(actor, patient_details: dict, preferred_ward: str | None = None, eta=None,
                   notes: str | None = None) -> BedRequest:
    require(actor, 'request.create')
    details = patient_details or {}
    name = (details.get('name') or '').strip()
    if not name:
        raise ValidationError('Patient name is required')
    unknown = set(details) - set(PATIENT_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown patient field(s): {', '.join(sorted(unknown))}")

    fields = {PATIENT_FIELDS[k]: v for k, v in details.items() if v is not None}
    fields['patient_name'] = name
    req = BedRequest(
        request_id=next_request_id(),
        created_by=actor,
        created_by_name=actor.display_name,
        preferred_ward=preferred_ward or '',
        eta=eta or timezone.now() + DEFAULT_ETA,
        notes=notes or '',
        **fields,
    )
    req.save()
    metrics.REQUEST_TRANSITIONS.labels(status=BedRequest.STATUS_PENDING).inc()
    logger.info("Bed request %s created by %s for %s (%s)", req.request_id, actor.username, name, req.triage_level)
    log_action(user=actor, action='request.create', object_type='BedRequest', object_id=req.request_id)
    _publish('request.created', req)
    raise_alert('info', f"New bed request {req.request_id} for {name} ({req.triage_level or 'untriaged'})",
                ward=req.preferred_ward or None, priority=req.priority)
    return req


def approve_request(request_id, bed_id, *, actor, ttl_hours: int | None = None, notes: str | None = None,
                    now=None) -> BedRequest:
    require(actor, 'request.approve')
    if not bed_id:
        raise ValidationError('Bed ID is required for approval')
    ttl = ttl_hours if ttl_hours is not None else get_settings().reservation_ttl_hours
    if ttl <= 0:
        raise ValidationError('Reservation TTL must be positive')
    now = now or timezone.now()

    with transaction.atomic():
        req = _locked(request_id)
        if req.status != BedRequest.STATUS_PENDING:
            raise ConflictError(f"Request is already {req.status}")
        bed = Bed.objects.select_for_update().filter(pk=bed_id).first()
        if bed is None:
            raise NotFoundError('Bed not found')
        if bed.status != Bed.STATUS_AVAILABLE:
            raise ConflictError(f"Bed {bed.bed_number} is not available (current status: {bed.status})")
        bed, _ = transition_bed(bed, Bed.STATUS_RESERVED, notes=f"Reserved for request {req.request_id}", now=now)
        changes = dict(
            status=BedRequest.STATUS_APPROVED,
            assigned_bed=bed,
            assigned_bed_number=bed.bed_number,
            assigned_ward=bed.ward,
            reviewed_by=actor,
            reviewed_at=now,
            reservation_expires_at=now + timedelta(hours=ttl),
            updated_at=now,
        )
        if notes:
            changes['notes'] = notes
        req = _advance(req, BedRequest.STATUS_PENDING, **changes)

    logger.info("Bed request %s approved: bed %s reserved until %s", req.request_id, bed.bed_number,
                req.reservation_expires_at.isoformat())
    log_action(user=actor, action='request.approve', object_type='BedRequest', object_id=req.request_id,
               detail={'bed': bed.bed_number, 'ttlHours': ttl})
    _publish('request.approved', req)
    publish_bed(bed)
    raise_alert('success', f"Request {req.request_id} approved: bed {bed.bed_number} reserved for {req.patient_name}",
                ward=bed.ward, priority=2, bed=bed)
    return req


def deny_request(request_id, *, actor, reason: str | None = None) -> BedRequest:
    require(actor, 'request.deny')
    now = timezone.now()
    with transaction.atomic():
        req = _locked(request_id)
        if req.status != BedRequest.STATUS_PENDING:
            raise ConflictError(f"Request is already {req.status}")
        req = _advance(req, BedRequest.STATUS_PENDING,
                       status=BedRequest.STATUS_DENIED,
                       reviewed_by=actor,
                       reviewed_at=now,
                       denial_reason=reason or DEFAULT_DENIAL_REASON)

    logger.info("Bed request %s denied: %s", req.request_id, req.denial_reason)
    log_action(user=actor, action='request.deny', object_type='BedRequest', object_id=req.request_id,
               detail={'reason': req.denial_reason})
    _publish('request.denied', req)
    raise_alert('warning', f"Request {req.request_id} for {req.patient_name} denied: {req.denial_reason}",
                ward=req.preferred_ward or None, priority=2)
    return req


def fulfill_request(request_id, *, actor, now=None) -> BedRequest:
    """Admit the patient into the reserved bed."""
    require(actor, 'request.fulfill')
    now = now or timezone.now()
    with transaction.atomic():
        req = _locked(request_id)
        if req.status == BedRequest.STATUS_FULFILLED:
            raise ConflictError(f"Request {req.request_id} has already been fulfilled")
        if req.status != BedRequest.STATUS_APPROVED:
            raise ConflictError(f"Only approved requests can be fulfilled (current status: {req.status})")
        if not req.assigned_bed_id:
            raise ConflictError(f"Request {req.request_id} has no assigned bed")
        bed = Bed.objects.select_for_update().get(pk=req.assigned_bed_id)
        if bed.status != Bed.STATUS_RESERVED or reservation_holder(bed, exclude=req.pk):
            raise ConflictError(f"Bed {bed.bed_number} is no longer reserved for request {req.request_id}")

        patient = Patient.objects.create(
            patient_id=next_patient_id(),
            name=req.patient_name,
            age=req.patient_age,
            gender=req.patient_gender,
            contact_number=req.contact_number,
            department=req.assigned_ward or bed.ward,
            reason_for_admission=req.reason_for_admission,
            estimated_stay=req.estimated_stay or 24,
            status=Patient.STATUS_CRITICAL if req.triage_level == 'Critical' else Patient.STATUS_ADMITTED,
            bed=bed,
        )
        bed, _ = transition_bed(bed, Bed.STATUS_OCCUPIED, patient=patient, now=now)
        req = _advance(req, BedRequest.STATUS_APPROVED,
                       status=BedRequest.STATUS_FULFILLED,
                       patient=patient,
                       fulfilled_at=now,
                       reservation_expires_at=None,
                       updated_at=now)

    logger.info("Bed request %s fulfilled: %s admitted to %s", req.request_id, patient.patient_id, bed.bed_number)
    log_action(user=actor, action='request.fulfill', object_type='BedRequest', object_id=req.request_id,
               detail={'patient': patient.patient_id, 'bed': bed.bed_number})
    notify.publish('patient.admitted', patient_payload(patient), topics=notify.topics_for_bed(bed))
    publish_bed(bed)
    _publish('request.fulfilled', req)
    raise_alert('success', f"{patient.name} admitted to bed {bed.bed_number} ({bed.ward})",
                ward=bed.ward, priority=2, bed=bed)
    check_ward_occupancy(bed.ward)
    return req


def cancel_request(request_id, *, actor, reason: str | None = None) -> BedRequest:
    """Withdraw a pending request.

    Recorded as a denial carrying the cancellation reason, with the
    cancellation metadata kept alongside.
    """
    now = timezone.now()
    bed = None
    with transaction.atomic():
        req = _locked(request_id)
        require(actor, 'request.cancel', req)
        if req.status != BedRequest.STATUS_PENDING:
            raise ConflictError(f"Only pending requests can be cancelled (current status: {req.status})")
        if req.assigned_bed_id:
            bed = Bed.objects.select_for_update().get(pk=req.assigned_bed_id)
            if bed.status == Bed.STATUS_RESERVED:
                bed, _ = transition_bed(bed, Bed.STATUS_AVAILABLE, notes='', now=now)
            else:
                bed = None
        reason = reason or DEFAULT_CANCEL_REASON
        req = _advance(req, BedRequest.STATUS_PENDING,
                       status=BedRequest.STATUS_DENIED,
                       denial_reason=reason,
                       cancel_reason=reason,
                       cancelled_at=now,
                       cancelled_by=actor,
                       updated_at=now)

    logger.info("Bed request %s cancelled by %s", req.request_id, actor.username)
    log_action(user=actor, action='request.cancel', object_type='BedRequest', object_id=req.request_id,
               detail={'reason': reason})
    _publish('request.cancelled', req)
    if bed is not None:
        publish_bed(bed)
    return req


def expire_request(request_id, *, now=None) -> BedRequest | None:
    """Reclaim the bed of an approved request whose reservation lapsed.

    Returns ``None`` when the request was resolved some other way first.
    """
    now = now or timezone.now()
    with transaction.atomic():
        req = BedRequest.objects.select_for_update().filter(request_id=request_id).first()
        if req is None or req.status != BedRequest.STATUS_APPROVED:
            return None
        if req.reservation_expires_at is None or req.reservation_expires_at > now:
            return None
        bed = None
        if req.assigned_bed_id:
            bed = Bed.objects.select_for_update().filter(pk=req.assigned_bed_id).first()
            # the bed may have been freed and reserved again for another request
            if (bed is not None and bed.status == Bed.STATUS_RESERVED
                    and reservation_holder(bed, exclude=req.pk) is None):
                bed, _ = transition_bed(bed, Bed.STATUS_AVAILABLE,
                                        notes=f"Reservation for {req.request_id} expired", now=now)
            else:
                bed = None
        released_number = bed.bed_number if bed is not None else ''
        updated = BedRequest.objects.filter(pk=req.pk, status=BedRequest.STATUS_APPROVED).update(
            status=BedRequest.STATUS_EXPIRED,
            assigned_bed=None,
            assigned_bed_number='',
            assigned_ward='',
            reservation_expires_at=None,
            expired_at=now,
            updated_at=now,
        )
        if not updated:
            return None
        req.refresh_from_db()

    metrics.REQUEST_TRANSITIONS.labels(status=BedRequest.STATUS_EXPIRED).inc()
    metrics.RESERVATIONS_EXPIRED.inc()
    logger.info("Bed request %s expired; bed %s released", req.request_id, released_number or '-')
    log_action(user=None, action='request.expire', object_type='BedRequest', object_id=req.request_id,
               detail={'bed': released_number})
    raise_alert('warning', f"Reservation for {req.patient_name} ({req.request_id}) expired. "
                           f"Bed {released_number or '-'} released.",
                ward=bed.ward if bed else None, priority=3, bed=bed)
    _publish('request.expired', req)
    if bed is not None:
        publish_bed(bed)
    return req


def soft_delete_request(request_id, *, actor) -> BedRequest:
    with transaction.atomic():
        req = _locked(request_id)
        require(actor, 'request.delete', req)
        if not req.is_terminal:
            raise ConflictError('Only resolved requests can be deleted')
        req.is_deleted = True
        req.deleted_at = timezone.now()
        req.deleted_by = actor
        req.save(update_fields=['is_deleted', 'deleted_at', 'deleted_by', 'updated_at'])

    logger.info("Bed request %s deleted by %s", req.request_id, actor.username)
    log_action(user=actor, action='request.delete', object_type='BedRequest', object_id=req.request_id)
    notify.publish('request.deleted', {'requestId': req.request_id})
    return req


def update_request(request_id, *, actor, notes=None, eta=None, triage_level=None) -> BedRequest:
    with transaction.atomic():
        req = _locked(request_id)
        require(actor, 'request.update', req)
        if req.is_terminal:
            raise ConflictError(f"Cannot update a {req.status} request")
        fields = ['updated_at']
        if notes is not None:
            req.notes = notes
            fields.append('notes')
        if eta is not None:
            req.eta = eta
            fields.append('eta')
        if triage_level is not None:
            if triage_level not in dict(BedRequest.TRIAGE_CHOICES):
                raise ValidationError(f"Unknown triage level '{triage_level}'")
            req.triage_level = triage_level
            fields.append('triage_level')
        req.save(update_fields=fields)

    log_action(user=actor, action='request.update', object_type='BedRequest', object_id=req.request_id)
    _publish('request.updated', req)
    return req


def _visible_to(actor):
    """Requests ``actor`` may see: ER staff only their own, other roles all."""
    if getattr(actor, 'role', None) != ER_STAFF or not actor.is_authenticated:
        require(actor, 'request.view')
    qs = BedRequest.objects.filter(is_deleted=False)
    if actor.role == ER_STAFF:
        qs = qs.filter(created_by=actor)
    return qs


def list_requests(actor, *, status=None, ward=None, triage_level=None, limit: int = LIST_LIMIT):
    qs = _visible_to(actor)
    if status:
        qs = qs.filter(status=status)
    if ward:
        qs = qs.filter(preferred_ward=ward)
    if triage_level:
        qs = qs.filter(triage_level=triage_level)
    return list(qs.select_related('assigned_bed').order_by('-priority', '-created_at')[:limit])


def get_request(request_id, *, actor) -> BedRequest:
    req = BedRequest.objects.filter(request_id=request_id, is_deleted=False).first()
    if req is None:
        raise NotFoundError('Bed request not found')
    require(actor, 'request.view', req)
    return req


def request_stats(actor) -> dict:
    qs = _visible_to(actor)
    by_status = {key: 0 for key, _ in BedRequest.STATUS_CHOICES}
    for row in qs.values('status').annotate(n=Count('id')):
        by_status[row['status']] = row['n']
    by_triage = {row['triage_level'] or 'Unspecified': row['n']
                 for row in qs.values('triage_level').annotate(n=Count('id')).order_by('triage_level')}
    by_ward = {row['preferred_ward'] or 'Any': row['n']
               for row in qs.values('preferred_ward').annotate(n=Count('id')).order_by('preferred_ward')}
    return {'total': sum(by_status.values()), **by_status, 'byTriage': by_triage, 'byWard': by_ward}
