# core/constants.py

from django.db import models


class UserRoles:
    """User role constants for RBAC"""
    PATIENT = 'patient'
    DOCTOR = 'doctor'
    ADMIN = 'admin'

    CHOICES = [
        (PATIENT, 'Patient'),
        (DOCTOR, 'Doctor'),
        (ADMIN, 'Administrator'),
    ]


class DayOfWeek(models.TextChoices):
    MONDAY = 'monday', 'Monday'
    TUESDAY = 'tuesday', 'Tuesday'
    WEDNESDAY = 'wednesday', 'Wednesday'
    THURSDAY = 'thursday', 'Thursday'
    FRIDAY = 'friday', 'Friday'
    SATURDAY = 'saturday', 'Saturday'
    SUNDAY = 'sunday', 'Sunday'

    @classmethod
    def for_date(cls, value):
        """Weekday name for a date (date.weekday() is 0 for Monday)"""
        return cls.values[value.weekday()]


class AppointmentStatus(models.TextChoices):
    SCHEDULED = 'scheduled', 'Scheduled'
    CONFIRMED = 'confirmed', 'Confirmed'
    COMPLETED = 'completed', 'Completed'
    CANCELLED = 'cancelled', 'Cancelled'
    NO_SHOW = 'no_show', 'No Show'


# Statuses that hold a slot exclusively
ACTIVE_STATUSES = (AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED)

TERMINAL_STATUSES = (
    AppointmentStatus.COMPLETED,
    AppointmentStatus.CANCELLED,
    AppointmentStatus.NO_SHOW,
)


class AppointmentType(models.TextChoices):
    CLINIC_VISIT = 'clinic_visit', 'Clinic Visit'
    TELEMEDICINE = 'telemedicine', 'Telemedicine'
    EMERGENCY = 'emergency', 'Emergency'
    FOLLOW_UP = 'follow_up', 'Follow-up'
    WALK_IN = 'walk-in', 'Walk-in'


# HH:MM, 24-hour
TIME_PATTERN = r'^([01]\d|2[0-3]):([0-5]\d)$'
TIME_FORMAT = '%H:%M'
DATE_FORMAT = '%Y-%m-%d'
