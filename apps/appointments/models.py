# apps/appointments/models.py

import uuid

from django.db import models
from django.utils import timezone

from core.constants import (
    ACTIVE_STATUSES, TERMINAL_STATUSES, AppointmentStatus, AppointmentType
)


class Appointment(models.Model):
    """A booked slot; never deleted, closed by a terminal status instead"""

    patient = models.ForeignKey(
        'accounts.User',
        on_delete=models.PROTECT,
        related_name='patient_appointments',
        limit_choices_to={'role': 'patient'},
    )
    doctor = models.ForeignKey(
        'accounts.User',
        on_delete=models.PROTECT,
        related_name='doctor_appointments',
        limit_choices_to={'role': 'doctor'},
    )

    appointment_id = models.CharField(max_length=50, unique=True, blank=True)
    status = models.CharField(
        max_length=20,
        choices=AppointmentStatus.choices,
        default=AppointmentStatus.SCHEDULED
    )
    type = models.CharField(max_length=20, choices=AppointmentType.choices)

    # Timing
    appointment_date = models.DateField()
    appointment_time = models.TimeField()
    duration_minutes = models.PositiveIntegerField(default=30)

    # Purpose
    reason = models.CharField(max_length=500, blank=True)
    chief_complaint = models.CharField(max_length=500, blank=True)
    symptoms = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True)

    # Cancellation
    cancel_reason = models.CharField(max_length=500, blank=True)
    cancelled_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='cancelled_appointments'
    )
    cancelled_at = models.DateTimeField(null=True, blank=True)

    # Last transition
    status_changed_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+'
    )
    status_changed_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'appointments'
        ordering = ['appointment_date', 'appointment_time']
        constraints = [
            # One active appointment per doctor per slot
            models.UniqueConstraint(
                fields=['doctor', 'appointment_date', 'appointment_time'],
                condition=models.Q(status__in=ACTIVE_STATUSES),
                name='unique_active_doctor_slot',
            ),
        ]
        indexes = [
            models.Index(fields=['doctor', 'appointment_date', 'status']),
            models.Index(fields=['patient', 'appointment_date']),
            models.Index(fields=['status', 'appointment_date']),
        ]

    def __str__(self):
        return f"Appt {self.appointment_id}: {self.patient} with {self.doctor}"

    def save(self, *args, **kwargs):
        if not self.appointment_id:
            self.appointment_id = self._generate_appointment_id()
        super().save(*args, **kwargs)

    def _generate_appointment_id(self):
        """Generate APPT-YYYYMMDD-XXXXXXXX format ID"""
        date_str = self.appointment_date.strftime('%Y%m%d')
        return f'APPT-{date_str}-{uuid.uuid4().hex[:8].upper()}'

    @property
    def is_active(self):
        return self.status in ACTIVE_STATUSES

    @property
    def is_terminal(self):
        return self.status in TERMINAL_STATUSES

    @property
    def is_upcoming(self):
        """Check if appointment is in the future"""
        return self.appointment_date >= timezone.localdate() and self.is_active

    @property
    def is_today(self):
        return self.appointment_date == timezone.localdate()
