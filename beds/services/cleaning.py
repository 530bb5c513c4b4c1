import logging

from django.db import transaction
from django.db.models import Count
from django.utils import timezone

from beds.errors import ConflictError, NotFoundError, ValidationError
from beds.models import Bed, CleaningJob, CleaningStaff
from beds.serializers.payloads import job_payload, staff_payload
from beds.services import notify
from beds.services.audit import log_action

logger = logging.getLogger(__name__)


def _publish_job(event, job):
    notify.publish(event, job_payload(job), topics=[notify.ward_topic(job.ward), notify.bed_topic(job.bed_id)])


def _locked_job(job_id) -> CleaningJob:
    job = CleaningJob.objects.select_for_update().filter(pk=job_id).first()
    if job is None:
        raise NotFoundError('Cleaning job not found')
    return job


def _release(staff_id, *, completed=False):
    """Give back one active-job slot; the count never drops below zero."""
    staff = CleaningStaff.objects.select_for_update().filter(pk=staff_id).first()
    if staff is None:
        return None
    staff.active_jobs_count = max(0, staff.active_jobs_count - 1)
    if staff.active_jobs_count == 0:
        staff.status = CleaningStaff.STATUS_AVAILABLE
    if completed:
        staff.total_jobs_completed += 1
    staff.save(update_fields=['active_jobs_count', 'status', 'total_jobs_completed'])
    return staff


def auto_create_job(bed: Bed) -> CleaningJob:
    """Open a cleaning job for ``bed`` unless one is already pending or active."""
    existing = CleaningJob.objects.filter(bed=bed, status__in=CleaningJob.OPEN_STATUSES).first()
    if existing is not None:
        logger.info("Bed %s already has open cleaning job %s", bed.bed_number, existing.pk)
        return existing
    job = CleaningJob.objects.create(
        bed=bed,
        bed_number=bed.bed_number,
        ward=bed.ward,
        floor=bed.floor,
        section=bed.section,
        room_number=bed.room_number,
    )
    logger.info("Cleaning job %s created for bed %s", job.pk, bed.bed_number)
    return job


def create_job(bed_id, *, actor=None) -> CleaningJob:
    with transaction.atomic():
        bed = Bed.objects.select_for_update().filter(pk=bed_id).first()
        if bed is None:
            raise NotFoundError('Bed not found')
        job = auto_create_job(bed)
    log_action(user=actor, action='cleaning.create', object_type='CleaningJob', object_id=job.pk,
               detail={'bed': job.bed_number})
    _publish_job('cleaning.created', job)
    return job


def get_job(job_id) -> CleaningJob:
    job = CleaningJob.objects.select_related('assigned_to').filter(pk=job_id).first()
    if job is None:
        raise NotFoundError('Cleaning job not found')
    return job


def start_job(job_id, *, actor=None) -> CleaningJob:
    with transaction.atomic():
        job = _locked_job(job_id)
        if job.status != CleaningJob.STATUS_PENDING:
            raise ConflictError(f"Cannot start a cleaning job that is {job.status}")
        if CleaningJob.objects.filter(bed_id=job.bed_id, status=CleaningJob.STATUS_ACTIVE).exclude(pk=job.pk).exists():
            raise ConflictError(f"Bed {job.bed_number} is already being cleaned")
        job.status = CleaningJob.STATUS_ACTIVE
        job.started_at = timezone.now()
        job.save(update_fields=['status', 'started_at'])
    logger.info("Cleaning job %s started", job.pk)
    log_action(user=actor, action='cleaning.start', object_type='CleaningJob', object_id=job.pk)
    _publish_job('cleaning.started', job)
    return job


def assign_job(job_id, staff_id, *, actor=None) -> CleaningJob:
    with transaction.atomic():
        job = _locked_job(job_id)
        if job.status == CleaningJob.STATUS_COMPLETED:
            raise ConflictError('Cannot assign a completed cleaning job')
        staff = CleaningStaff.objects.select_for_update().filter(pk=staff_id).first()
        if staff is None:
            raise NotFoundError('Cleaning staff not found')
        if job.assigned_to_id == staff.pk:
            return job
        if job.assigned_to_id:
            _release(job.assigned_to_id)
        staff.active_jobs_count += 1
        staff.status = CleaningStaff.STATUS_BUSY
        staff.save(update_fields=['active_jobs_count', 'status'])
        job.assigned_to = staff
        job.assigned_to_name = staff.name
        job.save(update_fields=['assigned_to', 'assigned_to_name'])
    logger.info("Cleaning job %s assigned to %s", job.pk, staff.staff_id)
    log_action(user=actor, action='cleaning.assign', object_type='CleaningJob', object_id=job.pk,
               detail={'staff': staff.staff_id})
    _publish_job('cleaning.assigned', job)
    notify.publish('staff.updated', staff_payload(staff))
    return job


def complete_job(job_id, *, actor=None) -> CleaningJob:
    from beds.services.beds import publish_bed, transition_bed

    now = timezone.now()
    with transaction.atomic():
        job = _locked_job(job_id)
        if job.status != CleaningJob.STATUS_ACTIVE:
            raise ConflictError(f"Cannot complete a cleaning job that is {job.status}")
        job.status = CleaningJob.STATUS_COMPLETED
        job.completed_at = now
        job.save(update_fields=['status', 'completed_at'])
        if job.assigned_to_id:
            _release(job.assigned_to_id, completed=True)

        bed = Bed.objects.select_for_update().get(pk=job.bed_id)
        if bed.status in (Bed.STATUS_CLEANING, Bed.STATUS_MAINTENANCE):
            bed, _ = transition_bed(bed, Bed.STATUS_AVAILABLE, now=now)
        elif bed.status != Bed.STATUS_AVAILABLE:
            logger.warning("Bed %s is %s; cleaning completed without releasing it", bed.bed_number, bed.status)
        bed.last_cleaned = now
        bed.save(update_fields=['last_cleaned', 'last_updated'])
    logger.info("Cleaning job %s completed, bed %s is %s", job.pk, bed.bed_number, bed.status)
    log_action(user=actor, action='cleaning.complete', object_type='CleaningJob', object_id=job.pk,
               detail={'bed': bed.bed_number, 'bedStatus': bed.status})
    _publish_job('cleaning.completed', job)
    publish_bed(bed)
    return job


def delete_job(job_id, *, actor=None) -> None:
    with transaction.atomic():
        job = _locked_job(job_id)
        if job.status == CleaningJob.STATUS_COMPLETED:
            raise ConflictError('Cannot delete a completed cleaning job')
        if job.assigned_to_id:
            _release(job.assigned_to_id)
        payload = job_payload(job)
        job.delete()
    logger.info("Cleaning job %s deleted", payload['id'])
    log_action(user=actor, action='cleaning.delete', object_type='CleaningJob', object_id=payload['id'],
               detail={'bed': payload['bedNumber']})
    notify.publish('cleaning.deleted', payload, topics=[notify.ward_topic(payload['ward'])])


def list_jobs(*, status=None, floor=None, ward=None):
    qs = CleaningJob.objects.select_related('assigned_to')
    if status:
        qs = qs.filter(status=status)
    if floor not in (None, ''):
        qs = qs.filter(floor=floor)
    if ward:
        qs = qs.filter(ward=ward)
    return list(qs.order_by('created_at'))


def job_stats(*, status=None) -> dict:
    qs = CleaningJob.objects.all()
    if status:
        qs = qs.filter(status=status)
    by_floor = {row['floor']: row['n'] for row in qs.values('floor').annotate(n=Count('id')).order_by('floor')}
    by_ward = {row['ward']: row['n'] for row in qs.values('ward').annotate(n=Count('id')).order_by('ward')}
    by_status = {row['status']: row['n'] for row in qs.values('status').annotate(n=Count('id'))}
    return {'total': qs.count(), 'byFloor': by_floor, 'byWard': by_ward, 'byStatus': by_status}


# Staff

def list_staff():
    return list(CleaningStaff.objects.order_by('name'))


def get_staff(pk) -> CleaningStaff:
    staff = CleaningStaff.objects.filter(pk=pk).first()
    if staff is None:
        raise NotFoundError('Cleaning staff not found')
    return staff


def create_staff(*, staff_id, name, actor=None) -> CleaningStaff:
    if not staff_id or not name:
        raise ValidationError('Staff ID and name are required')
    if CleaningStaff.objects.filter(staff_id=staff_id).exists():
        raise ConflictError(f"Staff ID {staff_id} already exists")
    staff = CleaningStaff.objects.create(staff_id=staff_id, name=name)
    log_action(user=actor, action='staff.create', object_type='CleaningStaff', object_id=staff.staff_id)
    notify.publish('staff.created', staff_payload(staff))
    return staff


def update_staff(pk, *, name, actor=None) -> CleaningStaff:
    if not name:
        raise ValidationError('Name is required')
    staff = get_staff(pk)
    staff.name = name
    staff.save(update_fields=['name'])
    log_action(user=actor, action='staff.update', object_type='CleaningStaff', object_id=staff.staff_id)
    notify.publish('staff.updated', staff_payload(staff))
    return staff


def delete_staff(pk, *, actor=None) -> None:
    with transaction.atomic():
        staff = CleaningStaff.objects.select_for_update().filter(pk=pk).first()
        if staff is None:
            raise NotFoundError('Cleaning staff not found')
        if staff.status == CleaningStaff.STATUS_BUSY or staff.active_jobs_count > 0:
            raise ConflictError('Cannot delete staff member with active jobs')
        payload = staff_payload(staff)
        staff.delete()
    log_action(user=actor, action='staff.delete', object_type='CleaningStaff', object_id=payload['staffId'])
    notify.publish('staff.deleted', payload)
