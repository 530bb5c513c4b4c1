import pytest

from beds.models import Bed, Patient, User
from beds.services import config, notify


@pytest.fixture(autouse=True)
def fresh_settings():
    config.invalidate()
    yield
    config.invalidate()


@pytest.fixture(autouse=True)
def events(monkeypatch):
    """Capture published events instead of sending them to the channel layer."""
    sent = []

    def record(event, payload, *, topics=None):
        sent.append((event, payload, list(topics or ())))

    monkeypatch.setattr(notify, 'publish', record)
    return sent


@pytest.fixture
def make_user(db):
    def _make(username, role, ward=''):
        return User.objects.create_user(username=username, password='P@ssw0rd1', role=role, ward=ward)
    return _make


@pytest.fixture
def admin(make_user):
    return make_user('admin1', 'admin')


@pytest.fixture
def manager(make_user):
    return make_user('manager1', 'bed_manager')


@pytest.fixture
def ward_staff(make_user):
    return make_user('icu1', 'ward_staff', 'ICU')


@pytest.fixture
def er_staff(make_user):
    return make_user('er1', 'er_staff', 'Emergency')


@pytest.fixture
def make_bed(db):
    def _make(number, ward='ICU', status=Bed.STATUS_AVAILABLE, equipment='ICU Monitor', floor=1, **kw):
        return Bed.objects.create(bed_number=number, ward=ward, status=status, equipment_type=equipment,
                                  floor=floor, **kw)
    return _make


@pytest.fixture
def admitted(make_bed):
    """Put a new patient into a new occupied bed."""
    def _make(number, ward='ICU', name='Pat Ient', equipment='ICU Monitor'):
        patient = Patient.objects.create(patient_id=f'PAT-{number}', name=name, department=ward)
        bed = make_bed(number, ward=ward, status=Bed.STATUS_OCCUPIED, equipment=equipment,
                       patient=patient, ever_occupied=True)
        patient.bed = bed
        patient.save(update_fields=['bed'])
        return bed, patient
    return _make
