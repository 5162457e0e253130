"""Shared fixtures: users for each role, a Monday schedule and API clients."""
from datetime import datetime, timedelta

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from apps.accounts.models import User
from apps.appointments.services import AppointmentBookingService
from apps.doctors.services import ScheduleStore
from core.constants import UserRoles


def next_weekday(weekday, from_date=None):
    """First date strictly after from_date falling on weekday (0 = Monday)."""
    from_date = from_date or timezone.localdate()
    days_ahead = (weekday - from_date.weekday()) % 7 or 7
    return from_date + timedelta(days=days_ahead)


class RecordingNotifier:
    """Stands in for NotificationService and remembers what it was asked to send."""

    def __init__(self):
        self.sent = []

    def send_booking_confirmation(self, appointment):
        self.sent.append(('booked', appointment.appointment_id, appointment.status))
        return True

    def send_status_update(self, appointment):
        self.sent.append(('status', appointment.appointment_id, appointment.status))
        return True


def make_user(email, role, **extra):
    return User.objects.create_user(
        email=email,
        password='pass12345',
        full_name=email.split('@')[0].title(),
        role=role,
        **extra
    )


@pytest.fixture
def patient(db):
    return make_user('patient@example.com', UserRoles.PATIENT, phone='+15550000001')


@pytest.fixture
def other_patient(db):
    return make_user('other.patient@example.com', UserRoles.PATIENT)


@pytest.fixture
def doctor(db):
    return make_user('doctor@example.com', UserRoles.DOCTOR)


@pytest.fixture
def other_doctor(db):
    return make_user('other.doctor@example.com', UserRoles.DOCTOR)


@pytest.fixture
def admin_user(db):
    return make_user('admin@example.com', UserRoles.ADMIN, is_staff=True)


@pytest.fixture
def monday():
    return next_weekday(0)


@pytest.fixture
def schedule(doctor):
    """Monday 09:00-12:00 with a 10:30-11:00 break, 30 minute slots."""
    return ScheduleStore().upsert(doctor, 'monday', {
        'is_available': True,
        'time_slots': [{'start_time': '09:00', 'end_time': '12:00'}],
        'break_start': datetime.strptime('10:30', '%H:%M').time(),
        'break_end': datetime.strptime('11:00', '%H:%M').time(),
        'slot_duration_minutes': 30,
    }, actor=doctor)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def service(notifier):
    return AppointmentBookingService(notifier=notifier)


@pytest.fixture
def api_client():
    """Factory returning an APIClient authenticated as the given user."""

    def _client_for(user=None):
        client = APIClient()
        if user is not None:
            client.force_authenticate(user=user)
        return client

    return _client_for
