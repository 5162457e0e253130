"""Email and SMS delivery for appointment events."""
from unittest import mock

import pytest
from django.core import mail
from twilio.base.exceptions import TwilioRestException

from apps.appointments.services import AppointmentBookingService
from core.utils.notifications import NotificationConfig, NotificationService

pytestmark = pytest.mark.django_db

TWILIO = {
    'TWILIO_ACCOUNT_SID': 'AC123',
    'TWILIO_AUTH_TOKEN': 'secret',
    'TWILIO_FROM_NUMBER': '+15559990000',
}


@pytest.fixture
def appointment(schedule, doctor, patient, monday):
    return AppointmentBookingService().book(doctor, patient, monday, '09:00', 'clinic_visit')


def test_booking_confirmation_email(appointment):
    config = NotificationConfig.from_mapping({'FROM_EMAIL': 'clinic@example.com'})

    assert NotificationService(config).send_booking_confirmation(appointment)

    assert len(mail.outbox) == 1
    assert mail.outbox[0].to == ['patient@example.com']
    assert appointment.appointment_id in mail.outbox[0].subject
    assert '09:00' in mail.outbox[0].body


def test_cancellation_includes_reason(appointment, patient):
    AppointmentBookingService().cancel(appointment, patient, 'Out of town')

    NotificationService(NotificationConfig()).send_status_update(appointment)

    assert 'cancelled' in mail.outbox[0].body
    assert 'Reason: Out of town' in mail.outbox[0].body


def test_disabled_sends_nothing(appointment):
    config = NotificationConfig.from_mapping({'ENABLED': False})

    assert NotificationService(config).send_booking_confirmation(appointment) is False
    assert mail.outbox == []


def test_sms_skipped_without_credentials(appointment):
    service = NotificationService(NotificationConfig())

    assert service.send_sms('+15550000001', 'hello') is False


def test_sms_via_twilio(appointment):
    service = NotificationService(NotificationConfig.from_mapping(TWILIO))

    with mock.patch('core.utils.notifications.Client') as client_class:
        assert service.send_sms('+15550000001', 'hello')

    client_class.assert_called_once_with('AC123', 'secret')
    client_class.return_value.messages.create.assert_called_once_with(
        body='hello', from_='+15559990000', to='+15550000001'
    )


def test_twilio_failure_does_not_raise(appointment):
    service = NotificationService(NotificationConfig.from_mapping(TWILIO))

    with mock.patch('core.utils.notifications.Client') as client_class:
        client_class.return_value.messages.create.side_effect = TwilioRestException(
            400, '/Messages', 'Invalid number'
        )
        # Email still goes out, so the notification as a whole succeeds
        assert service.send_booking_confirmation(appointment)
        assert service.send_sms('+15550000001', 'hello') is False
