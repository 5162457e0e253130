"""JWT login and the authenticated caller identity."""
import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken, RefreshToken

pytestmark = pytest.mark.django_db


def bearer(user):
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {RefreshToken.for_user(user).access_token}')
    return client


def test_token_carries_role(patient):
    response = APIClient().post(
        '/api/accounts/token/',
        {'email': 'patient@example.com', 'password': 'pass12345'},
        format='json'
    )

    assert response.status_code == 200
    token = AccessToken(response.data['access'])
    assert token['role'] == 'patient'
    assert token['full_name'] == patient.full_name


def test_me_records_client_ip(patient):
    response = bearer(patient).get('/api/accounts/me/', REMOTE_ADDR='10.0.0.7')

    assert response.status_code == 200
    assert response.data['email'] == 'patient@example.com'
    patient.refresh_from_db()
    assert patient.last_login_ip == '10.0.0.7'


def test_inactive_user_is_rejected(doctor):
    client = bearer(doctor)
    doctor.is_active = False
    doctor.save()

    response = client.get('/api/accounts/me/')

    assert response.status_code == 401


def test_role_cannot_be_self_assigned(patient):
    response = bearer(patient).patch('/api/accounts/me/', {'role': 'admin'}, format='json')

    assert response.status_code == 200
    patient.refresh_from_db()
    assert patient.role == 'patient'
