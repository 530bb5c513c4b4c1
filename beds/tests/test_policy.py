import pytest
from django.contrib.auth.models import AnonymousUser

from beds.errors import ForbiddenError
from beds.models import BedRequest
from beds.policy import ROLE_MATRIX, is_allowed, require


@pytest.mark.parametrize('role,action,allowed', [
    ('er_staff', 'request.create', True),
    ('ward_staff', 'request.create', False),
    ('bed_manager', 'request.create', False),
    ('bed_manager', 'request.approve', True),
    ('ward_staff', 'request.approve', False),
    ('ward_staff', 'request.fulfill', True),
    ('er_staff', 'request.fulfill', False),
    ('er_staff', 'transfer.request', False),
    ('ward_staff', 'transfer.review', False),
    ('admin', 'settings.update', True),
    ('bed_manager', 'settings.update', False),
    ('bed_manager', 'capacity.sync', False),
])
def test_role_matrix(make_user, role, action, allowed):
    assert is_allowed(make_user(f'u-{role}', role), action) is allowed


def test_admin_may_do_everything(admin):
    assert all(is_allowed(admin, action) for action in ROLE_MATRIX)


def test_unknown_action_is_denied(admin):
    assert not is_allowed(admin, 'bed.explode')


def test_anonymous_is_denied():
    assert not is_allowed(AnonymousUser(), 'request.view')
    assert not is_allowed(None, 'request.view')


def test_owner_may_act_on_own_request(er_staff, make_user):
    other = make_user('er2', 'er_staff')
    req = BedRequest(request_id='REQ-000001', patient_name='J. Doe', created_by=er_staff)
    assert is_allowed(er_staff, 'request.cancel', req)
    assert is_allowed(er_staff, 'request.view', req)
    assert not is_allowed(other, 'request.cancel', req)
    assert not is_allowed(er_staff, 'request.cancel')


def test_require_uses_action_message(er_staff, make_user):
    req = BedRequest(request_id='REQ-000001', patient_name='J. Doe', created_by=er_staff)
    with pytest.raises(ForbiddenError) as exc:
        require(make_user('er2', 'er_staff'), 'request.cancel', req)
    assert str(exc.value) == 'Can only cancel your own requests'
    with pytest.raises(ForbiddenError) as exc:
        require(er_staff, 'settings.update')
    assert str(exc.value) == 'Insufficient permissions'
