# apps/doctors/services.py

import logging
from datetime import time

from django.db import IntegrityError, transaction

from core.constants import DayOfWeek
from core.exceptions import InvalidRequest, NotFound
from .models import DoctorSchedule

logger = logging.getLogger(__name__)


WEEKEND = (DayOfWeek.SATURDAY, DayOfWeek.SUNDAY)

DEFAULT_TIME_SLOTS = [
    {'start_time': '09:00', 'end_time': '12:00', 'is_available': True},
    {'start_time': '14:00', 'end_time': '17:00', 'is_available': True},
]

DEFAULT_BREAK = (time(12, 0), time(14, 0))

SCHEDULE_FIELDS = (
    'is_available', 'time_slots', 'break_start', 'break_end',
    'slot_duration_minutes', 'notes',
)


def normalize_day(day_of_week):
    """Lower-case and validate a weekday name"""
    day = (day_of_week or '').strip().lower()
    if day not in DayOfWeek.values:
        raise InvalidRequest(f"Invalid day of week: {day_of_week}")
    return day


class ScheduleStore:
    """Persistence for the weekly template, one row per doctor per weekday"""

    def get(self, doctor, day_of_week):
        return DoctorSchedule.objects.filter(
            doctor=doctor,
            day_of_week=normalize_day(day_of_week)
        ).first()

    def for_date(self, doctor, target_date):
        return self.get(doctor, DayOfWeek.for_date(target_date))

    def weekly(self, doctor, actor=None, seed=False):
        """Stored weekday rows, Monday first

        With seed=True, weekdays without a row get the default template, so
        all seven rows come back. Only the doctor or an admin should seed.
        """
        schedules = list(DoctorSchedule.objects.filter(doctor=doctor))
        if seed and len(schedules) < len(DayOfWeek.values):
            schedules = self._create_default_week(doctor, actor, schedules)

        order = {day: index for index, day in enumerate(DayOfWeek.values)}
        return sorted(schedules, key=lambda schedule: order[schedule.day_of_week])

    def upsert(self, doctor, day_of_week, fields, actor=None):
        """Create or replace the supplied fields of a weekday row

        Fields not supplied keep their stored value; last writer wins.
        """
        day = normalize_day(day_of_week)
        changes = {key: value for key, value in fields.items() if key in SCHEDULE_FIELDS}

        for attempt in range(2):
            try:
                with transaction.atomic():
                    schedule = DoctorSchedule.objects.select_for_update().filter(
                        doctor=doctor, day_of_week=day
                    ).first()
                    created = schedule is None
                    if created:
                        schedule = DoctorSchedule(doctor=doctor, day_of_week=day)

                    for key, value in changes.items():
                        setattr(schedule, key, value)
                    schedule.stamp(actor)
                    schedule.save()
                break
            except IntegrityError:
                # Lost a create race on (doctor, day_of_week); the second pass updates
                if attempt:
                    raise
                logger.warning(f"Concurrent schedule create for doctor {doctor.pk} on {day}, retrying as update")

        logger.info(
            f"Schedule {'created' if created else 'updated'} for doctor {doctor.pk} on {day} "
            f"by {getattr(actor, 'pk', None)}"
        )
        return schedule

    def toggle(self, doctor, day_of_week, actor=None):
        day = normalize_day(day_of_week)

        with transaction.atomic():
            schedule = DoctorSchedule.objects.select_for_update().filter(
                doctor=doctor, day_of_week=day
            ).first()
            if schedule is None:
                raise NotFound("Schedule not found for this day")

            schedule.is_available = not schedule.is_available
            schedule.stamp(actor)
            schedule.save(update_fields=['is_available', 'updated_by', 'updated_at'])

        logger.info(f"Day availability toggled for doctor {doctor.pk} on {day}: {schedule.is_available}")
        return schedule

    def _create_default_week(self, doctor, actor, existing):
        stored_days = {schedule.day_of_week for schedule in existing}
        defaults = []
        for day in DayOfWeek.values:
            if day in stored_days:
                continue
            schedule = DoctorSchedule(
                doctor=doctor,
                day_of_week=day,
                is_available=day not in WEEKEND,
                time_slots=[] if day in WEEKEND else [dict(slot) for slot in DEFAULT_TIME_SLOTS],
                break_start=None if day in WEEKEND else DEFAULT_BREAK[0],
                break_end=None if day in WEEKEND else DEFAULT_BREAK[1],
            )
            schedule.stamp(actor)
            defaults.append(schedule)

        # ignore_conflicts: a concurrent first read may have seeded the week already
        DoctorSchedule.objects.bulk_create(defaults, ignore_conflicts=True)
        logger.info(
            f"Default schedule created for doctor {doctor.pk}: "
            f"{', '.join(schedule.day_of_week for schedule in defaults)}"
        )
        return list(DoctorSchedule.objects.filter(doctor=doctor))
