"""
Bed inventory and the bed state machine.

Every status change goes through :func:`transition_bed`, which checks the
transition table and writes conditionally on the status it read, so two
concurrent writers cannot both move the same bed out of the same state.
"""
from __future__ import annotations

import logging
import re
from collections import defaultdict

from django.conf import settings
from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from beds import metrics
from beds.errors import ConflictError, InvalidTransitionError, NoCapacityError, NotFoundError, ValidationError
from beds.models import Bed, BedRequest, Patient
from beds.policy import require
from beds.serializers.payloads import bed_payload, job_payload
from beds.services import notify
from beds.services.alerts import raise_alert
from beds.services.audit import log_action
from beds.services.config import get_settings

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    Bed.STATUS_AVAILABLE: frozenset({Bed.STATUS_OCCUPIED, Bed.STATUS_RESERVED, Bed.STATUS_MAINTENANCE}),
    Bed.STATUS_OCCUPIED: frozenset({Bed.STATUS_CLEANING, Bed.STATUS_MAINTENANCE}),
    Bed.STATUS_CLEANING: frozenset({Bed.STATUS_AVAILABLE, Bed.STATUS_MAINTENANCE}),
    Bed.STATUS_RESERVED: frozenset({Bed.STATUS_OCCUPIED, Bed.STATUS_AVAILABLE, Bed.STATUS_MAINTENANCE}),
    Bed.STATUS_MAINTENANCE: frozenset({Bed.STATUS_AVAILABLE}),
}

RECOMMEND_LIMIT = 3


def can_transition(source: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(source, ())


def ward_equipment(ward: str) -> list[str]:
    """Default equipment set for a ward; unknown wards have none."""
    return list(settings.BEDS_WARD_EQUIPMENT.get(ward, []))


def is_emergency_ward(ward: str) -> bool:
    return (ward or '').strip().lower() == settings.BEDS_EMERGENCY_WARD.lower()


def reservation_holder(bed: Bed, *, exclude=None) -> str | None:
    """Request id of the approved request currently holding ``bed``, if any."""
    qs = BedRequest.objects.filter(assigned_bed=bed, status=BedRequest.STATUS_APPROVED)
    if exclude is not None:
        qs = qs.exclude(pk=exclude)
    return qs.values_list('request_id', flat=True).first()


def get_bed(bed_id) -> Bed:
    bed = Bed.objects.select_related('patient').filter(pk=bed_id).first()
    if bed is None:
        raise NotFoundError('Bed not found')
    return bed


def transition_bed(bed: Bed, new_status: str, *, patient: Patient | None = None, notes: str | None = None, now=None):
    """Move ``bed`` to ``new_status``.

    Returns ``(bed, cleaning_job)``; the job is set when the bed left
    ``occupied`` and a cleaning job was opened for it. Events are left to
    the caller so they can be sent after the surrounding transaction.
    """
    source = bed.status
    if not can_transition(source, new_status):
        raise InvalidTransitionError(source, new_status, ALLOWED_TRANSITIONS.get(source, ()))
    if new_status == Bed.STATUS_OCCUPIED and patient is None:
        raise ValidationError('A patient is required to occupy a bed')

    now = now or timezone.now()
    fields = {
        'status': new_status,
        'patient': patient if new_status == Bed.STATUS_OCCUPIED else None,
        'last_updated': now,
    }
    if new_status == Bed.STATUS_OCCUPIED:
        fields['ever_occupied'] = True
    if notes is not None:
        fields['notes'] = notes

    updated = Bed.objects.filter(pk=bed.pk, status=source).update(**fields)
    if not updated:
        logger.warning("Lost update on bed %s: expected status %s", bed.bed_number, source)
        raise ConflictError(f"Bed {bed.bed_number} was modified concurrently; please retry")
    bed.refresh_from_db()
    metrics.BED_TRANSITIONS.labels(source=source, target=new_status).inc()
    logger.info("Bed %s: %s -> %s", bed.bed_number, source, new_status)

    job = None
    if source == Bed.STATUS_OCCUPIED:
        from beds.services.cleaning import auto_create_job
        job = auto_create_job(bed)
    return bed, job


def publish_bed(bed: Bed, job=None) -> None:
    notify.publish('bed.updated', bed_payload(bed), topics=notify.topics_for_bed(bed))
    if job is not None:
        notify.publish('cleaning.created', job_payload(job), topics=[notify.ward_topic(job.ward)])


def update_bed(bed_id, *, actor, status: str | None = None, notes: str | None = None) -> Bed:
    """Generic status/notes update from the bed board.

    Leaving ``occupied`` this way discharges the patient that held the bed.
    A bed held by an approved request cannot be moved out of ``reserved``.
    """
    require(actor, 'bed.update')
    if status is not None and status not in dict(Bed.STATUS_CHOICES):
        raise ValidationError(f"Unknown bed status '{status}'")

    job = None
    with transaction.atomic():
        bed = Bed.objects.select_for_update().filter(pk=bed_id).first()
        if bed is None:
            raise NotFoundError('Bed not found')
        previous = bed.status
        if previous == Bed.STATUS_RESERVED and status is not None and status != previous:
            holder = reservation_holder(bed)
            if holder is not None:
                raise ConflictError(f"Bed {bed.bed_number} is reserved for request {holder}; "
                                    f"fulfil the request or let it expire first")
        if status is not None and status != previous:
            discharged = bed.patient_id if previous == Bed.STATUS_OCCUPIED else None
            bed, job = transition_bed(bed, status, notes=notes)
            if discharged:
                now = timezone.now()
                Patient.objects.filter(pk=discharged).update(
                    status=Patient.STATUS_DISCHARGED, actual_discharge=now, bed=None, updated_at=now,
                )
                logger.info("Patient %s discharged from bed %s", discharged, bed.bed_number)
        elif notes is not None:
            bed.notes = notes
            bed.save(update_fields=['notes', 'last_updated'])
        else:
            return bed

    log_action(user=actor, action='bed.update', object_type='Bed', object_id=bed.pk,
               detail={'from': previous, 'to': bed.status})
    publish_bed(bed, job)
    if bed.status != previous:
        raise_alert('info', f"Bed {bed.bed_number} status changed from {previous} to {bed.status}",
                    ward=bed.ward, priority=1, bed=bed)
    return bed


def list_beds(*, ward=None, status=None, floor=None, equipment_type=None):
    qs = Bed.objects.select_related('patient')
    if ward and ward != 'All':
        qs = qs.filter(ward=ward)
    if status:
        qs = qs.filter(status=status)
    if floor is not None and floor != '':
        qs = qs.filter(floor=floor)
    if equipment_type:
        qs = qs.filter(equipment_type=equipment_type)
    return list(qs.order_by('bed_number'))


def available_beds(*, ward=None, equipment_type=None, urgency=None) -> dict:
    qs = Bed.objects.filter(status=Bed.STATUS_AVAILABLE)
    if equipment_type:
        qs = qs.filter(equipment_type=equipment_type)
    beds = list((qs.filter(ward=ward) if ward and ward != 'All' else qs).order_by('bed_number'))
    result = {'available': beds, 'alternatives': [], 'message': ''}
    if urgency != 'high' or beds:
        return result
    # high urgency: widen to every ward before offering beds still being cleaned
    if equipment_type:
        result['available'] = list(qs.order_by('bed_number'))
    if not result['available']:
        cleaning = Bed.objects.filter(status=Bed.STATUS_CLEANING)
        if equipment_type:
            cleaning = cleaning.filter(equipment_type=equipment_type)
        result['alternatives'] = list(cleaning.order_by('-last_cleaned')[:5])
        result['message'] = 'No available beds. These beds are under cleaning and may be ready soon.'
    return result


def _rate(occupied: int, total: int) -> float:
    return round(occupied * 100.0 / total, 1) if total else 0.0


def occupancy_level(rate: float) -> str:
    policy = get_settings()
    if rate >= policy.critical_threshold:
        return 'critical'
    if rate >= policy.warning_threshold:
        return 'warning'
    return 'normal'


def bed_stats(*, ward=None) -> dict:
    qs = Bed.objects.all()
    if ward and ward != 'All':
        qs = qs.filter(ward=ward)
    counts = {key: 0 for key, _ in Bed.STATUS_CHOICES}
    for row in qs.values('status').annotate(n=Count('id')):
        counts[row['status']] = row['n']
    total = sum(counts.values())
    rate = _rate(counts[Bed.STATUS_OCCUPIED], total)

    by_ward = []
    for row in qs.values('ward').annotate(
        total=Count('id'),
        occupied=Count('id', filter=Q(status=Bed.STATUS_OCCUPIED)),
        available=Count('id', filter=Q(status=Bed.STATUS_AVAILABLE)),
    ).order_by('ward'):
        by_ward.append({
            'ward': row['ward'],
            'total': row['total'],
            'occupied': row['occupied'],
            'available': row['available'],
            'occupancyRate': _rate(row['occupied'], row['total']),
        })

    by_equipment = defaultdict(lambda: {'total': 0, 'available': 0})
    for row in qs.values('equipment_type', 'status').annotate(n=Count('id')):
        entry = by_equipment[row['equipment_type']]
        entry['total'] += row['n']
        if row['status'] == Bed.STATUS_AVAILABLE:
            entry['available'] += row['n']

    return {
        'totalBeds': total,
        **counts,
        'occupancyRate': rate,
        'level': occupancy_level(rate),
        'wardStats': by_ward,
        'equipmentStats': dict(by_equipment),
    }


def check_ward_occupancy(ward: str):
    """Alert when the bed that just became occupied pushed ``ward`` over a threshold."""
    qs = Bed.objects.filter(ward=ward)
    total = qs.count()
    if not total:
        return None
    occupied = qs.filter(status=Bed.STATUS_OCCUPIED).count()
    rate = _rate(occupied, total)
    before = _rate(max(occupied - 1, 0), total)
    policy = get_settings()
    if before < policy.critical_threshold <= rate:
        return raise_alert('critical', f"Critical occupancy in {ward}: {rate}% ({occupied}/{total} beds occupied)",
                           ward=ward, priority=4)
    if before < policy.warning_threshold <= rate:
        return raise_alert('warning', f"High occupancy in {ward}: {rate}% ({occupied}/{total} beds occupied)",
                           ward=ward, priority=3)
    return None


def recommend_beds(*, ward=None, equipment_type=None, limit: int = RECOMMEND_LIMIT) -> list[dict]:
    """Rank up to ``limit`` available beds for an admission.

    With a ward: beds matching ward and equipment ('perfect'), then other
    beds in that ward ('ward_match'). Without one: equipment matches in
    any ward ('equipment_match'), then anything available ('any_available').
    At most ``limit - 1`` exact matches are taken when other beds exist, so
    the requester always sees an alternative.
    """
    limit = max(1, min(int(limit or RECOMMEND_LIMIT), RECOMMEND_LIMIT))
    available = Bed.objects.filter(status=Bed.STATUS_AVAILABLE).order_by('last_updated', 'bed_number')
    in_ward = bool(ward) and ward != 'Any'
    scoped = available.filter(ward=ward) if in_ward else available
    exact_label, other_label = ('perfect', 'ward_match') if in_ward else ('equipment_match', 'any_available')

    if equipment_type:
        exact = list(scoped.filter(equipment_type=equipment_type)[:limit])
        others = list(scoped.exclude(equipment_type=equipment_type)[:limit])
        if others and len(exact) >= limit:
            exact = exact[:limit - 1]
        others = others[:limit - len(exact)]
    else:
        exact, others = [], list(scoped[:limit])

    ranked = [{'bed': b, 'matchLevel': exact_label} for b in exact]
    ranked += [{'bed': b, 'matchLevel': other_label} for b in others]
    if ranked:
        return ranked

    pending = Bed.objects.all()
    if in_ward:
        pending = pending.filter(ward=ward)
    alternatives = {
        'cleaning': [b.bed_number for b in pending.filter(status=Bed.STATUS_CLEANING).order_by('-last_cleaned')[:3]],
        'reserved': [b.bed_number for b in pending.filter(status=Bed.STATUS_RESERVED).order_by('last_updated')[:3]],
    }
    where = f" in {ward} ward" if in_ward else ''
    raise NoCapacityError(
        f"No available beds{where}. Check beds under cleaning or reserved beds for upcoming availability",
        alternatives=alternatives,
    )


def _ward_code(ward: str) -> str:
    words = re.findall(r'[A-Za-z0-9]+', ward)
    if len(words) > 1:
        return ''.join(w[0] for w in words).upper()
    return (words[0][:4] if words else 'BED').upper()


def _next_bed_number(code: str, taken: set[str]) -> str:
    n = 1
    while f"{code}-{n:03d}" in taken:
        n += 1
    number = f"{code}-{n:03d}"
    taken.add(number)
    return number


def sync_ward_capacity(targets: dict[str, int], *, actor=None) -> dict[str, dict]:
    """Reconcile the number of beds per ward with ``targets``.

    Missing beds are created with the ward's default equipment. Surplus
    beds are removed only when available and never occupied; what cannot
    be removed is reported as ``shortfall``.
    """
    if actor is not None:
        require(actor, 'capacity.sync')
    for ward, count in targets.items():
        if not ward or not isinstance(count, int) or count < 0:
            raise ValidationError(f"Invalid capacity target for ward '{ward}': {count!r}")

    report = {}
    with transaction.atomic():
        taken = set(Bed.objects.values_list('bed_number', flat=True))
        for ward, target in targets.items():
            current = Bed.objects.filter(ward=ward).count()
            created = removed = shortfall = 0
            if current < target:
                equipment = (ward_equipment(ward) or ['Standard'])[0]
                code = _ward_code(ward)
                Bed.objects.bulk_create([
                    Bed(bed_number=_next_bed_number(code, taken), ward=ward, equipment_type=equipment)
                    for _ in range(target - current)
                ])
                created = target - current
            elif current > target:
                surplus = current - target
                removable = list(
                    Bed.objects.filter(ward=ward, status=Bed.STATUS_AVAILABLE, ever_occupied=False)
                    .order_by('-created_at', '-bed_number').values_list('pk', flat=True)[:surplus]
                )
                Bed.objects.filter(pk__in=removable).delete()
                removed = len(removable)
                shortfall = surplus - removed
            report[ward] = {'target': target, 'created': created, 'removed': removed, 'shortfall': shortfall,
                            'total': current + created - removed}
            logger.info("Capacity sync %s: %s", ward, report[ward])

    if actor is not None:
        log_action(user=actor, action='capacity.sync', object_type='Bed', detail=report)
    notify.publish('capacity.synced', report)
    return report
