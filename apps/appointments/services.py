# apps/appointments/services.py
"""
Booking coordination.

AppointmentBookingService is the only writer of appointment rows. Booking
re-derives the open slots from current data before inserting, and the
insert itself is guarded by the active-slot unique constraint, so a stale
read can never produce a double booking. Status changes are compare-and-swap
updates keyed on the status the caller observed.
"""
import logging
import re
from datetime import date, datetime

from django.db import transaction
from django.utils import timezone

from apps.doctors.services import ScheduleStore
from core.constants import (
    AppointmentStatus, AppointmentType, DATE_FORMAT, TIME_FORMAT, TIME_PATTERN,
    UserRoles
)
from core.exceptions import (
    AlreadyTerminal, Forbidden, InvalidRequest, InvalidStatus, PastDate,
    SlotUnavailable
)
from .slots import compute_open_slots
from .state_machine import check_transition, is_participant, releases_slot
from .store import AppointmentStore

logger = logging.getLogger(__name__)


METADATA_FIELDS = ('reason', 'chief_complaint', 'symptoms', 'notes')
UPDATABLE_FIELDS = METADATA_FIELDS + ('type',)
IMMUTABLE_FIELDS = (
    'doctor', 'doctor_id', 'patient', 'patient_id',
    'appointment_date', 'appointment_time', 'status',
)

# Transitions the patient is told about
NOTIFY_STATUSES = (AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED)

# Statuses only move forward, so a transition can lose at most this many races
MAX_TRANSITION_ATTEMPTS = 3


def local_now():
    """Current clinic wall-clock time as a naive datetime"""
    now = timezone.now()
    if timezone.is_aware(now):
        return timezone.localtime(now).replace(tzinfo=None)
    return now


def parse_date(value):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value), DATE_FORMAT).date()
    except ValueError:
        raise InvalidRequest("Invalid date format. Use YYYY-MM-DD")


def parse_time(value):
    if not isinstance(value, str) or not re.match(TIME_PATTERN, value):
        raise InvalidRequest("Invalid time format. Use HH:MM")
    return datetime.strptime(value, TIME_FORMAT).time()


class AppointmentBookingService:
    """Books, cancels, updates and transitions appointments

    Collaborators are injected so the service never reads settings itself;
    clock returns a naive local datetime.
    """

    def __init__(self, appointments=None, schedules=None, notifier=None, clock=None):
        self.appointments = appointments or AppointmentStore()
        self.schedules = schedules or ScheduleStore()
        self.notifier = notifier
        self.clock = clock or local_now

    def list_open_slots(self, doctor, target_date):
        target_date = parse_date(target_date)
        schedule = self.schedules.for_date(doctor, target_date)
        booked = self.appointments.list_active_slots(doctor, target_date)
        return compute_open_slots(schedule, booked, target_date, self.clock())

    def book(self, doctor, patient, target_date, start_time, appointment_type, metadata=None):
        target_date = parse_date(target_date)
        if target_date < self.clock().date():
            raise PastDate("Cannot book appointments in the past")

        slot_time = parse_time(start_time)
        if appointment_type not in AppointmentType.values:
            raise InvalidRequest(f"Invalid appointment type: {appointment_type}")
        if getattr(doctor, 'role', None) != UserRoles.DOCTOR or not doctor.is_active:
            raise InvalidRequest("Selected user is not an active doctor")
        if getattr(patient, 'role', None) != UserRoles.PATIENT or not patient.is_active:
            raise InvalidRequest("Appointments can only be booked for active patients")

        schedule = self.schedules.for_date(doctor, target_date)
        open_slots = compute_open_slots(
            schedule,
            self.appointments.list_active_slots(doctor, target_date),
            target_date,
            self.clock(),
        )
        if start_time not in open_slots:
            raise SlotUnavailable("This time slot is not available")

        payload = {
            key: value for key, value in (metadata or {}).items()
            if key in METADATA_FIELDS and value is not None
        }
        payload.update(
            patient=patient,
            type=appointment_type,
            duration_minutes=schedule.slot_duration_minutes,
        )

        appointment = self.appointments.create_if_absent(doctor, target_date, slot_time, payload)
        logger.info(
            f"Appointment {appointment.appointment_id} booked: patient {patient.pk} "
            f"with doctor {doctor.pk} on {target_date} at {start_time}"
        )
        self._queue_notification(appointment, booked=True)
        return appointment

    def get_for(self, actor, pk):
        appointment = self.appointments.get(pk)
        if not is_participant(actor, appointment):
            raise Forbidden("Not authorized to view this appointment")
        return appointment

    def cancel(self, appointment, actor, reason=''):
        return self._transition(appointment, actor, AppointmentStatus.CANCELLED, reason=reason)

    def transition_status(self, appointment, actor, new_status, reason=''):
        if new_status == AppointmentStatus.CANCELLED:
            return self.cancel(appointment, actor, reason)
        return self._transition(appointment, actor, new_status)

    def update(self, appointment, actor, fields):
        """Change descriptive fields of an active appointment

        Moving an appointment to another doctor, patient or slot is a
        cancel followed by a new booking, never an update.
        """
        if not is_participant(actor, appointment):
            raise Forbidden("Not authorized to modify this appointment")

        locked = sorted(set(fields) & set(IMMUTABLE_FIELDS))
        if locked:
            raise InvalidRequest(
                f"Cannot change {', '.join(locked)}; cancel and book a new appointment instead"
            )
        unknown = sorted(set(fields) - set(UPDATABLE_FIELDS))
        if unknown:
            raise InvalidRequest(f"Unknown fields: {', '.join(unknown)}")
        if 'type' in fields and fields['type'] not in AppointmentType.values:
            raise InvalidRequest(f"Invalid appointment type: {fields['type']}")

        if appointment.is_terminal:
            raise AlreadyTerminal(
                f"Cannot update a {appointment.get_status_display().lower()} appointment"
            )
        if not fields:
            return appointment

        if not self.appointments.update_fields(appointment, fields):
            self.appointments.refresh(appointment)
            raise AlreadyTerminal(
                f"Cannot update a {appointment.get_status_display().lower()} appointment"
            )

        logger.info(
            f"Appointment {appointment.appointment_id} updated by {actor.pk}: {', '.join(sorted(fields))}"
        )
        return appointment

    def stats(self, actor):
        return self.appointments.stats_for(actor)

    def _transition(self, appointment, actor, new_status, reason=''):
        for _ in range(MAX_TRANSITION_ATTEMPTS):
            target = check_transition(appointment, new_status, actor)
            observed = appointment.status
            changed_at = timezone.now()

            changes = {
                'status_changed_by': actor,
                'status_changed_at': changed_at,
            }
            if target == AppointmentStatus.CANCELLED:
                changes.update(
                    cancel_reason=reason or '',
                    cancelled_by=actor,
                    cancelled_at=changed_at,
                )

            if self.appointments.compare_and_set_status(appointment, observed, target, **changes):
                logger.info(
                    f"Appointment {appointment.appointment_id} {observed} -> {target} by "
                    f"{actor.role} {actor.pk}"
                    + (" (slot released)" if releases_slot(target) else "")
                )
                if target in NOTIFY_STATUSES:
                    self._queue_notification(appointment)
                return appointment

            # Another request moved it first; re-check against what it left behind
            logger.warning(
                f"Concurrent status change on appointment {appointment.appointment_id}, "
                f"expected {observed}"
            )
            self.appointments.refresh(appointment)

        raise InvalidStatus("Appointment status changed concurrently, please retry")

    def _queue_notification(self, appointment, booked=False):
        if self.notifier is None:
            return

        # robust: a notifier error is logged by Django and never reaches the caller
        if booked:
            transaction.on_commit(
                lambda: self.notifier.send_booking_confirmation(appointment), robust=True
            )
        else:
            transaction.on_commit(
                lambda: self.notifier.send_status_update(appointment), robust=True
            )
