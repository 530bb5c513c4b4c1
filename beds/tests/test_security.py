import pytest
from django.core.cache import cache
from django.urls import reverse
from rest_framework.authtoken.models import Token
from rest_framework.test import APIClient

from beds.models import AuditEvent, User

pytestmark = pytest.mark.django_db


@pytest.fixture(autouse=True)
def clear_throttles():
    cache.clear()


def login(client, username, password, **extra):
    return client.post(reverse('login_view'), {'username': username, 'password': password, **extra}, format='json')


def test_no_role_escalation_through_login():
    client = APIClient()
    u = User.objects.create_user(username='er1', password='P@ssw0rd1', role='er_staff')
    r = login(client, 'er1', 'P@ssw0rd1', role='admin')
    assert r.status_code == 200
    assert r.data['user']['role'] == 'er_staff'
    u.refresh_from_db()
    assert u.role == 'er_staff'


def test_failed_login_is_audited_without_password():
    User.objects.create_user(username='er1', password='P@ssw0rd1', role='er_staff')
    r = login(APIClient(), 'er1', 'wrong')
    assert r.status_code == 400
    event = AuditEvent.objects.get(action='login')
    assert event.detail['result'] == 'fail'
    assert 'wrong' not in str(event.detail)


def test_token_of_user_without_role_is_rejected():
    u = User.objects.create_user(username='ghost', password='P@ssw0rd1', role='')
    token = Token.objects.create(user=u)
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f'Token {token.key}')
    assert client.get(reverse('me_view')).status_code == 401


def test_logout_blacklists_refresh_token():
    User.objects.create_user(username='manager1', password='P@ssw0rd1', role='bed_manager')
    data = login(APIClient(), 'manager1', 'P@ssw0rd1').data
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {data['jwt_access']}")

    r = client.post('/api/auth/logout', {'refresh': data['jwt_refresh']}, format='json')
    assert r.status_code == 200 and r.data['blacklisted'] == 1

    r = APIClient().post('/api/auth/refresh', {'refresh': data['jwt_refresh']}, format='json')
    assert r.status_code == 401
