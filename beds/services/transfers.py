"""
Ward transfers.

A transfer is requested against the bed a patient currently holds and
approved by a manager. Approval finds a destination bed and performs the
whole move in one transaction: nothing is written unless every step
succeeds.
"""
import logging

from django.db import transaction
from django.utils import timezone

from beds.errors import ConflictError, NoCapacityError, NotFoundError, ValidationError
from beds.models import Bed, Patient, WardTransfer
from beds.policy import require
from beds.serializers.payloads import job_payload, patient_payload, transfer_payload
from beds.services import notify
from beds.services.audit import log_action
from beds.services.beds import is_emergency_ward, publish_bed, transition_bed, ward_equipment

logger = logging.getLogger(__name__)

LIST_LIMIT = 50


def _publish(event, transfer):
    topics = [notify.ward_topic(transfer.current_ward), notify.ward_topic(transfer.target_ward)]
    notify.publish(event, transfer_payload(transfer), topics=topics)


def _pending(transfer_id) -> WardTransfer:
    transfer = WardTransfer.objects.select_for_update().filter(pk=transfer_id).first()
    if transfer is None:
        raise NotFoundError('Transfer not found')
    if transfer.status != WardTransfer.STATUS_PENDING:
        raise ConflictError(f"Transfer is already {transfer.status}")
    return transfer


def _check_wards(current_ward, target_ward):
    if current_ward and current_ward.strip().lower() == target_ward.strip().lower():
        raise ValidationError('Target ward must be different from the current ward')


def request_transfer(*, bed_id, patient_id, current_ward, target_ward, reason, actor) -> WardTransfer:
    require(actor, 'transfer.request')
    if not bed_id or not patient_id or not target_ward:
        raise ValidationError('Bed, patient and target ward are required')
    if is_emergency_ward(target_ward):
        raise ValidationError(f"Cannot transfer patients to {target_ward}")

    bed = Bed.objects.filter(pk=bed_id).first()
    if bed is None:
        raise NotFoundError('Bed not found')
    if current_ward and current_ward.strip().lower() != bed.ward.lower():
        raise ValidationError(f"Bed {bed.bed_number} is in {bed.ward}, not {current_ward}")
    current_ward = bed.ward
    _check_wards(current_ward, target_ward)
    patient = Patient.objects.filter(pk=patient_id).first()
    if patient is None:
        raise NotFoundError('Patient not found')
    if bed.patient_id != patient.pk:
        raise ConflictError(f"Bed {bed.bed_number} is not held by patient {patient.patient_id}")

    with transaction.atomic():
        # lock the patient row so two requests for the same patient serialise here
        Patient.objects.select_for_update().get(pk=patient.pk)
        if WardTransfer.objects.filter(patient=patient, status=WardTransfer.STATUS_PENDING).exists():
            raise ConflictError(f"Patient {patient.patient_id} already has a pending transfer")
        transfer = WardTransfer.objects.create(
            bed=bed,
            patient=patient,
            current_ward=current_ward,
            target_ward=target_ward,
            reason=reason or '',
            requested_by=actor,
        )

    logger.info("Transfer %s requested: %s %s -> %s", transfer.pk, patient.patient_id, current_ward, target_ward)
    log_action(user=actor, action='transfer.request', object_type='WardTransfer', object_id=transfer.pk)
    _publish('transfer.created', transfer)
    return transfer


def find_destination(target_ward):
    """First available bed in ``target_ward`` carrying that ward's standard equipment."""
    return (
        Bed.objects.select_for_update()
        .filter(ward=target_ward, status=Bed.STATUS_AVAILABLE, equipment_type__in=ward_equipment(target_ward))
        .order_by('floor', 'section', 'bed_number')
        .first()
    )


def approve_transfer(transfer_id, *, actor, notes=None) -> WardTransfer:
    require(actor, 'transfer.review')
    now = timezone.now()
    with transaction.atomic():
        transfer = _pending(transfer_id)
        destination = find_destination(transfer.target_ward)
        if destination is None:
            raise NoCapacityError(f"No available beds in {transfer.target_ward} with suitable equipment")
        source = Bed.objects.select_for_update().get(pk=transfer.bed_id)
        patient = Patient.objects.select_for_update().get(pk=transfer.patient_id)
        if source.patient_id != patient.pk:
            raise ConflictError(f"Bed {source.bed_number} no longer holds patient {patient.patient_id}")

        source, job = transition_bed(source, Bed.STATUS_CLEANING, now=now)
        destination, _ = transition_bed(
            destination, Bed.STATUS_OCCUPIED, patient=patient,
            notes=f"Patient transferred from {transfer.current_ward} - {source.bed_number}", now=now)

        patient.bed = destination
        patient.department = transfer.target_ward
        patient.transfer_history = list(patient.transfer_history or []) + [{
            'fromBed': source.bed_number,
            'toBed': destination.bed_number,
            'fromWard': transfer.current_ward,
            'toWard': transfer.target_ward,
            'timestamp': now.isoformat(),
            'reason': transfer.reason,
        }]
        patient.save(update_fields=['bed', 'department', 'transfer_history', 'updated_at'])

        transfer.status = WardTransfer.STATUS_COMPLETED
        transfer.new_bed = destination
        transfer.reviewed_by = actor
        transfer.reviewed_at = now
        transfer.completed_at = now
        if notes:
            transfer.notes = notes
        transfer.save()

    logger.info("Transfer %s completed: %s %s -> %s", transfer.pk, patient.patient_id,
                source.bed_number, destination.bed_number)
    log_action(user=actor, action='transfer.approve', object_type='WardTransfer', object_id=transfer.pk,
               detail={'from': source.bed_number, 'to': destination.bed_number})
    _publish('transfer.completed', transfer)
    publish_bed(source)
    publish_bed(destination)
    notify.publish('patient.transferred', patient_payload(patient), topics=notify.topics_for_bed(destination))
    if job is not None:
        notify.publish('cleaning.created', job_payload(job), topics=[notify.ward_topic(job.ward)])
    return transfer


def deny_transfer(transfer_id, *, reason, actor) -> WardTransfer:
    require(actor, 'transfer.review')
    if not reason:
        raise ValidationError('A reason is required to deny a transfer')
    with transaction.atomic():
        transfer = _pending(transfer_id)
        transfer.status = WardTransfer.STATUS_DENIED
        transfer.deny_reason = reason
        transfer.reviewed_by = actor
        transfer.reviewed_at = timezone.now()
        transfer.save()

    logger.info("Transfer %s denied: %s", transfer.pk, reason)
    log_action(user=actor, action='transfer.deny', object_type='WardTransfer', object_id=transfer.pk,
               detail={'reason': reason})
    _publish('transfer.denied', transfer)
    return transfer


def update_transfer(transfer_id, *, actor, reason=None, notes=None) -> WardTransfer:
    require(actor, 'transfer.request')
    with transaction.atomic():
        transfer = _pending(transfer_id)
        if reason is not None:
            transfer.reason = reason
        if notes is not None:
            transfer.notes = notes
        transfer.save()
    _publish('transfer.updated', transfer)
    return transfer


def delete_transfer(transfer_id, *, actor) -> None:
    require(actor, 'transfer.request')
    with transaction.atomic():
        transfer = _pending(transfer_id)
        payload = transfer_payload(transfer)
        transfer.delete()
    log_action(user=actor, action='transfer.delete', object_type='WardTransfer', object_id=payload['id'])
    notify.publish('transfer.deleted', payload,
                   topics=[notify.ward_topic(payload['currentWard']), notify.ward_topic(payload['targetWard'])])


def list_transfers(*, status=None, current_ward=None, target_ward=None, limit=LIST_LIMIT):
    qs = WardTransfer.objects.select_related('patient', 'bed', 'new_bed')
    if status:
        qs = qs.filter(status=status)
    if current_ward:
        qs = qs.filter(current_ward=current_ward)
    if target_ward:
        qs = qs.filter(target_ward=target_ward)
    return list(qs.order_by('-created_at')[:limit])


def get_transfer(transfer_id) -> WardTransfer:
    transfer = WardTransfer.objects.select_related('patient', 'bed', 'new_bed').filter(pk=transfer_id).first()
    if transfer is None:
        raise NotFoundError('Transfer not found')
    return transfer
