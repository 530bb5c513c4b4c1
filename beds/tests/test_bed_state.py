import pytest

from beds.errors import ConflictError, ForbiddenError, InvalidTransitionError, NoCapacityError, ValidationError
from beds.models import Alert, Bed, CleaningJob, Patient
from beds.services import beds as bed_service
from beds.services.beds import ALLOWED_TRANSITIONS, can_transition, transition_bed


@pytest.mark.parametrize('source,target', [
    ('available', 'occupied'), ('available', 'reserved'), ('available', 'maintenance'),
    ('occupied', 'cleaning'), ('occupied', 'maintenance'),
    ('cleaning', 'available'), ('cleaning', 'maintenance'),
    ('reserved', 'occupied'), ('reserved', 'available'), ('reserved', 'maintenance'),
    ('maintenance', 'available'),
])
def test_allowed_transitions(source, target):
    assert can_transition(source, target)


@pytest.mark.parametrize('source,target', [
    ('available', 'cleaning'), ('occupied', 'available'), ('occupied', 'reserved'),
    ('cleaning', 'occupied'), ('maintenance', 'occupied'), ('available', 'available'),
])
def test_disallowed_transitions(source, target):
    assert not can_transition(source, target)


def test_every_status_has_a_row():
    assert set(ALLOWED_TRANSITIONS) == {s for s, _ in Bed.STATUS_CHOICES}


def test_invalid_transition_leaves_bed_unchanged(make_bed):
    bed = make_bed('ICU-001', status=Bed.STATUS_CLEANING)
    with pytest.raises(InvalidTransitionError) as exc:
        transition_bed(bed, Bed.STATUS_OCCUPIED)
    msg = str(exc.value)
    assert "'cleaning'" in msg and "'occupied'" in msg
    assert 'available' in msg and 'maintenance' in msg
    bed.refresh_from_db()
    assert bed.status == Bed.STATUS_CLEANING


def test_occupying_requires_patient(make_bed):
    bed = make_bed('ICU-001')
    with pytest.raises(ValidationError):
        transition_bed(bed, Bed.STATUS_OCCUPIED)


def test_occupy_sets_patient_and_marks_ever_occupied(make_bed):
    bed = make_bed('ICU-001')
    patient = Patient.objects.create(patient_id='PAT-000001', name='A', department='ICU')
    bed, job = transition_bed(bed, Bed.STATUS_OCCUPIED, patient=patient)
    assert job is None
    assert bed.patient_id == patient.pk
    assert bed.ever_occupied


def test_leaving_occupied_clears_patient_and_opens_cleaning_job(admitted):
    bed, _ = admitted('ICU-001')
    bed, job = transition_bed(bed, Bed.STATUS_CLEANING)
    assert bed.patient_id is None
    assert job is not None and job.status == CleaningJob.STATUS_PENDING
    assert job.bed_number == 'ICU-001' and job.ward == 'ICU'
    assert bed.last_cleaned is None


def test_stale_read_is_rejected(make_bed):
    bed = make_bed('ICU-001')
    stale = Bed.objects.get(pk=bed.pk)
    transition_bed(bed, Bed.STATUS_MAINTENANCE)
    with pytest.raises(ConflictError):
        transition_bed(stale, Bed.STATUS_RESERVED)
    assert Bed.objects.get(pk=bed.pk).status == Bed.STATUS_MAINTENANCE


def test_update_bed_discharges_patient(admitted, ward_staff, events):
    bed, patient = admitted('ICU-001')
    bed = bed_service.update_bed(bed.pk, actor=ward_staff, status=Bed.STATUS_CLEANING)
    patient.refresh_from_db()
    assert bed.status == Bed.STATUS_CLEANING
    assert patient.status == Patient.STATUS_DISCHARGED
    assert patient.bed_id is None and patient.actual_discharge is not None
    assert CleaningJob.objects.filter(bed=bed, status=CleaningJob.STATUS_PENDING).count() == 1
    names = [e[0] for e in events]
    assert 'bed.updated' in names and 'cleaning.created' in names
    bed_event = next(e for e in events if e[0] == 'bed.updated')
    assert 'ward.icu' in bed_event[2] and f'bed.{bed.pk}' in bed_event[2]
    assert Alert.objects.filter(severity='info', bed=bed).exists()


def test_update_bed_notes_only(make_bed, manager):
    bed = make_bed('ICU-001')
    bed = bed_service.update_bed(bed.pk, actor=manager, notes='Rail loose')
    assert bed.notes == 'Rail loose' and bed.status == Bed.STATUS_AVAILABLE


def test_update_bed_forbidden_for_er_staff(make_bed, er_staff):
    bed = make_bed('ICU-001')
    with pytest.raises(ForbiddenError):
        bed_service.update_bed(bed.pk, actor=er_staff, status=Bed.STATUS_MAINTENANCE)


def test_ward_occupancy_alerts_on_threshold_crossing(make_bed, admitted):
    for i in range(3):
        admitted(f'ICU-00{i}')
    make_bed('ICU-010')
    make_bed('ICU-011')
    assert bed_service.check_ward_occupancy('ICU') is None  # 60%

    patient = Patient.objects.create(patient_id='PAT-X1', name='X', department='ICU')
    transition_bed(Bed.objects.get(bed_number='ICU-010'), Bed.STATUS_OCCUPIED, patient=patient)
    alert = bed_service.check_ward_occupancy('ICU')  # 80%
    assert alert.severity == 'warning'

    patient2 = Patient.objects.create(patient_id='PAT-X2', name='Y', department='ICU')
    transition_bed(Bed.objects.get(bed_number='ICU-011'), Bed.STATUS_OCCUPIED, patient=patient2)
    alert = bed_service.check_ward_occupancy('ICU')  # 100%
    assert alert.severity == 'critical'


def test_bed_stats(make_bed, admitted):
    admitted('ICU-001')
    make_bed('ICU-002')
    make_bed('GW-001', ward='General Ward', equipment='Standard', status=Bed.STATUS_CLEANING)
    make_bed('GW-002', ward='General Ward', equipment='Standard')
    stats = bed_service.bed_stats()
    assert stats['totalBeds'] == 4
    assert stats['occupied'] == 1 and stats['available'] == 2 and stats['cleaning'] == 1
    assert stats['occupancyRate'] == 25.0
    assert stats['level'] == 'normal'
    icu = next(w for w in stats['wardStats'] if w['ward'] == 'ICU')
    assert icu['occupancyRate'] == 50.0
    assert stats['equipmentStats']['Standard'] == {'total': 2, 'available': 1}


def test_available_beds_high_urgency_falls_back(make_bed):
    make_bed('GW-001', ward='General Ward', equipment='Ventilator')
    result = bed_service.available_beds(ward='ICU', equipment_type='Ventilator', urgency='high')
    assert [b.bed_number for b in result['available']] == ['GW-001']

    make_bed('ICU-002', status=Bed.STATUS_CLEANING, equipment='Dialysis')
    result = bed_service.available_beds(ward='ICU', equipment_type='Dialysis', urgency='high')
    assert result['available'] == []
    assert [b.bed_number for b in result['alternatives']] == ['ICU-002']


def test_recommend_prefers_ward_and_equipment(make_bed):
    for n in ('ICU-001', 'ICU-002', 'ICU-003'):
        make_bed(n)
    make_bed('ICU-004', equipment='Ventilator')
    make_bed('GW-001', ward='General Ward', equipment='ICU Monitor')
    ranked = bed_service.recommend_beds(ward='ICU', equipment_type='ICU Monitor')
    assert [r['matchLevel'] for r in ranked] == ['perfect', 'perfect', 'ward_match']
    assert ranked[2]['bed'].bed_number == 'ICU-004'
    assert all(r['bed'].ward == 'ICU' for r in ranked)


def test_recommend_without_ward_searches_everywhere(make_bed):
    make_bed('GW-001', ward='General Ward', equipment='Standard')
    ranked = bed_service.recommend_beds(equipment_type='Ventilator')
    assert [(r['bed'].bed_number, r['matchLevel']) for r in ranked] == [('GW-001', 'any_available')]


def test_recommend_with_no_capacity_lists_alternatives(make_bed):
    make_bed('ICU-001', status=Bed.STATUS_CLEANING)
    make_bed('ICU-002', status=Bed.STATUS_RESERVED)
    with pytest.raises(NoCapacityError) as exc:
        bed_service.recommend_beds(ward='ICU')
    assert exc.value.alternatives == {'cleaning': ['ICU-001'], 'reserved': ['ICU-002']}
