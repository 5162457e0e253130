# apps/doctors/models.py

from django.conf import settings
from django.db import models

from core.constants import DayOfWeek
from core.mixins.audit_fields import AuditFieldsMixin


def default_slot_duration():
    return settings.BOOKING['DEFAULT_SLOT_DURATION_MINUTES']


class DoctorSchedule(AuditFieldsMixin, models.Model):
    """Recurring weekly template for one doctor on one weekday"""

    doctor = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='schedules',
        limit_choices_to={'role': 'doctor'},
    )

    day_of_week = models.CharField(max_length=10, choices=DayOfWeek.choices)
    is_available = models.BooleanField(default=True)

    # [{"start_time": "09:00", "end_time": "12:00"}, ...]
    time_slots = models.JSONField(default=list, blank=True)

    # Break timings
    break_start = models.TimeField(null=True, blank=True)
    break_end = models.TimeField(null=True, blank=True)

    # Appointment settings
    slot_duration_minutes = models.PositiveIntegerField(default=default_slot_duration)

    notes = models.CharField(max_length=500, blank=True)

    class Meta:
        db_table = 'doctor_schedules'
        unique_together = ['doctor', 'day_of_week']
        ordering = ['doctor', 'day_of_week']
        indexes = [
            models.Index(fields=['doctor', 'day_of_week', 'is_available']),
        ]

    def __str__(self):
        return f"{self.doctor} - {self.get_day_of_week_display()}"
