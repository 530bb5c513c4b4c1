import pytest

from beds.errors import ConflictError, NotFoundError, ValidationError
from beds.models import AuditEvent, Bed, CleaningJob, CleaningStaff
from beds.services import cleaning
from beds.services.beds import transition_bed


@pytest.fixture
def dirty_bed(admitted):
    bed, _ = admitted('ICU-001')
    bed, job = transition_bed(bed, Bed.STATUS_CLEANING)
    return bed, job


@pytest.fixture
def staff(db):
    return cleaning.create_staff(staff_id='CS-01', name='Robin Vega')


def test_leaving_occupied_opens_one_job(dirty_bed):
    bed, job = dirty_bed
    assert job.status == CleaningJob.STATUS_PENDING
    assert (job.bed_number, job.ward, job.floor) == ('ICU-001', 'ICU', 1)
    assert cleaning.create_job(bed.pk).pk == job.pk
    assert CleaningJob.objects.filter(bed=bed).count() == 1


def test_create_job_for_missing_bed(db):
    with pytest.raises(NotFoundError):
        cleaning.create_job(4242)


def test_full_cycle_releases_bed_and_staff(dirty_bed, staff, events):
    bed, job = dirty_bed
    cleaning.assign_job(job.pk, staff.pk)
    staff.refresh_from_db()
    assert staff.status == CleaningStaff.STATUS_BUSY and staff.active_jobs_count == 1

    cleaning.start_job(job.pk)
    job = cleaning.complete_job(job.pk)

    bed.refresh_from_db()
    staff.refresh_from_db()
    assert job.status == CleaningJob.STATUS_COMPLETED and job.completed_at is not None
    assert bed.status == Bed.STATUS_AVAILABLE and bed.last_cleaned is not None
    assert staff.status == CleaningStaff.STATUS_AVAILABLE
    assert staff.active_jobs_count == 0 and staff.total_jobs_completed == 1
    names = [e[0] for e in events]
    assert names.index('cleaning.started') < names.index('cleaning.completed')
    assert 'bed.updated' in names


def test_job_actions_are_audited(dirty_bed, staff, ward_staff):
    bed, job = dirty_bed
    cleaning.assign_job(job.pk, staff.pk, actor=ward_staff)
    cleaning.start_job(job.pk, actor=ward_staff)
    cleaning.complete_job(job.pk, actor=ward_staff)

    trail = AuditEvent.objects.filter(object_type='CleaningJob', object_id=str(job.pk)).order_by('id')
    assert [e.action for e in trail] == ['cleaning.assign', 'cleaning.start', 'cleaning.complete']
    assert all(e.user_id == ward_staff.pk for e in trail)
    assert trail.last().detail == {'bed': 'ICU-001', 'bedStatus': Bed.STATUS_AVAILABLE}

    again = cleaning.create_job(bed.pk, actor=ward_staff)
    cleaning.delete_job(again.pk, actor=ward_staff)
    deleted = AuditEvent.objects.get(action='cleaning.delete', object_id=str(again.pk))
    assert deleted.user_id == ward_staff.pk and deleted.detail == {'bed': 'ICU-001'}
    assert AuditEvent.objects.filter(action='cleaning.create', object_id=str(again.pk)).exists()


def test_complete_requires_active(dirty_bed):
    _, job = dirty_bed
    with pytest.raises(ConflictError):
        cleaning.complete_job(job.pk)


def test_start_twice_conflicts(dirty_bed):
    _, job = dirty_bed
    cleaning.start_job(job.pk)
    with pytest.raises(ConflictError):
        cleaning.start_job(job.pk)


def test_complete_does_not_touch_a_reused_bed(dirty_bed):
    bed, job = dirty_bed
    cleaning.start_job(job.pk)
    Bed.objects.filter(pk=bed.pk).update(status=Bed.STATUS_RESERVED)

    cleaning.complete_job(job.pk)
    bed.refresh_from_db()
    assert bed.status == Bed.STATUS_RESERVED
    assert bed.last_cleaned is not None


def test_reassign_moves_the_slot(dirty_bed, staff):
    _, job = dirty_bed
    other = cleaning.create_staff(staff_id='CS-02', name='Kai Lund')
    cleaning.assign_job(job.pk, staff.pk)
    job = cleaning.assign_job(job.pk, other.pk)

    staff.refresh_from_db()
    other.refresh_from_db()
    assert job.assigned_to_name == 'Kai Lund'
    assert (staff.status, staff.active_jobs_count) == (CleaningStaff.STATUS_AVAILABLE, 0)
    assert (other.status, other.active_jobs_count) == (CleaningStaff.STATUS_BUSY, 1)

    cleaning.assign_job(job.pk, other.pk)
    other.refresh_from_db()
    assert other.active_jobs_count == 1


def test_delete_job_frees_staff(dirty_bed, staff):
    _, job = dirty_bed
    cleaning.assign_job(job.pk, staff.pk)
    cleaning.delete_job(job.pk)
    staff.refresh_from_db()
    assert not CleaningJob.objects.exists()
    assert staff.active_jobs_count == 0 and staff.status == CleaningStaff.STATUS_AVAILABLE


def test_staff_with_jobs_cannot_be_deleted(dirty_bed, staff):
    _, job = dirty_bed
    cleaning.assign_job(job.pk, staff.pk)
    with pytest.raises(ConflictError):
        cleaning.delete_staff(staff.pk)


def test_staff_ids_are_unique(staff):
    with pytest.raises(ConflictError):
        cleaning.create_staff(staff_id='CS-01', name='Someone Else')
    with pytest.raises(ValidationError):
        cleaning.create_staff(staff_id='', name='Nobody')


def test_job_stats_group_by_floor_and_ward(admitted):
    for number, ward, floor in [('ICU-001', 'ICU', 1), ('ICU-002', 'ICU', 1), ('CAR-001', 'Cardiology', 3)]:
        bed, _ = admitted(number, ward=ward)
        Bed.objects.filter(pk=bed.pk).update(floor=floor)
        bed.refresh_from_db()
        transition_bed(bed, Bed.STATUS_CLEANING)

    stats = cleaning.job_stats()
    assert stats['total'] == 3
    assert stats['byFloor'] == {1: 2, 3: 1}
    assert stats['byWard'] == {'Cardiology': 1, 'ICU': 2}
    assert [j.bed_number for j in cleaning.list_jobs(floor=3)] == ['CAR-001']
