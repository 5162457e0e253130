# apps/appointments/store.py

import logging

from django.db import IntegrityError, transaction
from django.db.models import Count
from django.utils import timezone

from core.constants import ACTIVE_STATUSES, AppointmentStatus, TIME_FORMAT, UserRoles
from core.exceptions import NotFound, SlotUnavailable
from .models import Appointment

logger = logging.getLogger(__name__)


class AppointmentStore:
    """Persistence for appointments

    create_if_absent is the only place a booking row is inserted; the
    conditional unique constraint on (doctor, date, time) for active
    statuses makes it atomic across processes.
    """

    def get(self, pk, for_update=False):
        queryset = Appointment.objects.select_related('patient', 'doctor')
        if for_update:
            queryset = queryset.select_for_update()
        try:
            return queryset.get(pk=pk)
        except (Appointment.DoesNotExist, ValueError):
            raise NotFound("Appointment not found")

    def list_active_slots(self, doctor, target_date):
        times = Appointment.objects.filter(
            doctor=doctor,
            appointment_date=target_date,
            status__in=ACTIVE_STATUSES,
        ).values_list('appointment_time', flat=True)
        return {value.strftime(TIME_FORMAT) for value in times}

    def create_if_absent(self, doctor, target_date, start_time, payload):
        """Insert an active appointment unless the slot is already held"""
        try:
            # Savepoint so a constraint violation leaves an outer transaction usable
            with transaction.atomic():
                return Appointment.objects.create(
                    doctor=doctor,
                    appointment_date=target_date,
                    appointment_time=start_time,
                    status=AppointmentStatus.SCHEDULED,
                    **payload
                )
        except IntegrityError as e:
            if not self._slot_taken(doctor, target_date, start_time):
                raise
            logger.warning(
                f"Booking race lost for doctor {doctor.pk} on {target_date} at "
                f"{start_time.strftime(TIME_FORMAT)}: {str(e)}"
            )
            raise SlotUnavailable("This time slot is already booked")

    def compare_and_set_status(self, appointment, expected_status, new_status, **changes):
        """Move to new_status only if the row still has expected_status

        Returns the number of rows updated (0 or 1).
        """
        changes['updated_at'] = timezone.now()
        updated = Appointment.objects.filter(
            pk=appointment.pk,
            status=expected_status,
        ).update(status=new_status, **changes)

        if updated:
            appointment.status = new_status
            for key, value in changes.items():
                setattr(appointment, key, value)
        return updated

    def update_fields(self, appointment, fields):
        """Write detail fields only while the appointment is still active"""
        fields = dict(fields, updated_at=timezone.now())
        updated = Appointment.objects.filter(
            pk=appointment.pk,
            status__in=ACTIVE_STATUSES,
        ).update(**fields)

        if updated:
            for key, value in fields.items():
                setattr(appointment, key, value)
        return updated

    def refresh(self, appointment):
        appointment.refresh_from_db()
        return appointment

    def scoped_for(self, user):
        """Appointments a user may list"""
        queryset = Appointment.objects.select_related('patient', 'doctor')
        if user.role == UserRoles.ADMIN:
            return queryset
        if user.role == UserRoles.DOCTOR:
            return queryset.filter(doctor=user)
        if user.role == UserRoles.PATIENT:
            return queryset.filter(patient=user)
        return queryset.none()

    def stats_for(self, user):
        counts = dict(
            self.scoped_for(user)
            .order_by()
            .values_list('status')
            .annotate(count=Count('id'))
        )

        stats = {'total': sum(counts.values())}
        for value in AppointmentStatus.values:
            stats[value] = counts.get(value, 0)
        return stats

    def _slot_taken(self, doctor, target_date, start_time):
        return Appointment.objects.filter(
            doctor=doctor,
            appointment_date=target_date,
            appointment_time=start_time,
            status__in=ACTIVE_STATUSES,
        ).exists()
