# core/utils/notifications.py
from smtplib import SMTPException

from django.core.mail import send_mail
from twilio.rest import Client
from twilio.base.exceptions import TwilioRestException
import logging

from core.constants import TIME_FORMAT

logger = logging.getLogger(__name__)


class NotificationConfig:
    """Outbound notification settings, built once at the composition root"""

    def __init__(self, enabled=True, from_email=None, twilio_account_sid=None,
                 twilio_auth_token=None, twilio_from_number=None):
        self.enabled = enabled
        self.from_email = from_email
        self.twilio_account_sid = twilio_account_sid
        self.twilio_auth_token = twilio_auth_token
        self.twilio_from_number = twilio_from_number

    @classmethod
    def from_mapping(cls, values):
        values = values or {}
        return cls(
            enabled=values.get('ENABLED', True),
            from_email=values.get('FROM_EMAIL'),
            twilio_account_sid=values.get('TWILIO_ACCOUNT_SID'),
            twilio_auth_token=values.get('TWILIO_AUTH_TOKEN'),
            twilio_from_number=values.get('TWILIO_FROM_NUMBER'),
        )

    @property
    def sms_enabled(self):
        return bool(
            self.twilio_account_sid
            and self.twilio_auth_token
            and self.twilio_from_number
        )


class NotificationService:
    """Best-effort appointment notifications (email + SMS)

    Every public method returns a bool and never raises for delivery
    failures, so callers can fire it after commit without guarding.
    """

    def __init__(self, config):
        self.config = config
        self._sms_client = None

    def send_booking_confirmation(self, appointment):
        subject = f"Appointment Booked - {appointment.appointment_id}"
        message = (
            f"Your appointment with Dr. {appointment.doctor.full_name} "
            f"is booked for {self._describe_slot(appointment)}.\n"
            f"Type: {appointment.get_type_display()}\n"
            f"Reference: {appointment.appointment_id}"
        )
        return self._notify(appointment.patient, subject, message, appointment)

    def send_status_update(self, appointment):
        subject = f"Appointment {appointment.get_status_display()} - {appointment.appointment_id}"
        message = (
            f"Your appointment with Dr. {appointment.doctor.full_name} "
            f"on {self._describe_slot(appointment)} is now "
            f"{appointment.get_status_display().lower()}."
        )
        if appointment.cancel_reason:
            message += f"\nReason: {appointment.cancel_reason}"
        return self._notify(appointment.patient, subject, message, appointment)

    def send_email(self, to_email, subject, message):
        try:
            send_mail(
                subject=subject,
                message=message,
                from_email=self.config.from_email,
                recipient_list=[to_email],
                fail_silently=False,
            )
            return True
        except (SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to_email}: {str(e)}")
            return False

    def send_sms(self, phone_number, message):
        if not self.config.sms_enabled:
            logger.debug("Twilio credentials not configured, skipping SMS")
            return False

        try:
            if self._sms_client is None:
                self._sms_client = Client(
                    self.config.twilio_account_sid,
                    self.config.twilio_auth_token
                )
            self._sms_client.messages.create(
                body=message,
                from_=self.config.twilio_from_number,
                to=phone_number
            )
            return True
        except TwilioRestException as e:
            logger.error(f"Twilio error: {str(e)}")
            return False

    def _notify(self, user, subject, message, appointment):
        if not self.config.enabled:
            return False

        sent_email = bool(user.email) and self.send_email(user.email, subject, message)
        sent_sms = bool(user.phone) and self.send_sms(user.phone, message)

        if sent_email or sent_sms:
            logger.info(
                f"Notification '{subject}' sent for appointment {appointment.appointment_id} "
                f"(email={sent_email}, sms={sent_sms})"
            )
        else:
            logger.warning(f"No notification delivered for appointment {appointment.appointment_id}")
        return sent_email or sent_sms

    @staticmethod
    def _describe_slot(appointment):
        return (
            f"{appointment.appointment_date.strftime('%A, %B %d, %Y')} "
            f"at {appointment.appointment_time.strftime(TIME_FORMAT)}"
        )
