# apps/doctors/views.py

import logging

from django.contrib.auth import get_user_model
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from core.constants import DayOfWeek, UserRoles
from core.exceptions import Forbidden, InvalidRequest, NotFound
from core.permissions import IsAuthenticatedAndActive

from .permissions import DoctorSchedulePermissions
from .serializers import DoctorScheduleSerializer
from .services import ScheduleStore

logger = logging.getLogger(__name__)

User = get_user_model()


class DoctorScheduleViewSet(viewsets.ViewSet):
    """
    Weekly schedule of a doctor, addressed by weekday name.

    GET    /schedules/?doctor_id=          all seven days
    PUT    /schedules/<day_of_week>/       create or replace a day
    PATCH  /schedules/<day_of_week>/toggle/
    """

    permission_classes = [IsAuthenticatedAndActive, DoctorSchedulePermissions]
    lookup_field = 'day_of_week'
    lookup_value_regex = '|'.join(DayOfWeek.values)

    store = ScheduleStore()

    def list(self, request):
        doctor = self._resolve_doctor(request, request.query_params.get('doctor_id'), writing=False)

        # Only the doctor or an admin may create the default week; other
        # readers see what is stored, which may be nothing
        owner = request.user.pk == doctor.pk or request.user.role == UserRoles.ADMIN
        schedules = self.store.weekly(doctor, actor=request.user, seed=owner)

        return Response({
            'doctor_id': doctor.pk,
            'doctor_name': doctor.full_name,
            'schedules': DoctorScheduleSerializer(schedules, many=True).data
        })

    def update(self, request, day_of_week=None):
        """Upsert one weekday; fields not sent keep their stored value"""
        doctor = self._resolve_doctor(request, request.data.get('doctor_id'), writing=True)

        serializer = DoctorScheduleSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        schedule = self.store.upsert(doctor, day_of_week, serializer.validated_data, actor=request.user)
        return Response(DoctorScheduleSerializer(schedule).data)

    @action(detail=True, methods=['patch'])
    def toggle(self, request, day_of_week=None):
        """Flip a weekday between available and unavailable"""
        doctor = self._resolve_doctor(request, request.data.get('doctor_id'), writing=True)
        schedule = self.store.toggle(doctor, day_of_week, actor=request.user)

        return Response({
            'message': f"{schedule.get_day_of_week_display()} is now "
                       f"{'available' if schedule.is_available else 'unavailable'}",
            'schedule': DoctorScheduleSerializer(schedule).data
        })

    def _resolve_doctor(self, request, doctor_id, writing):
        """Doctors default to themselves; admins and readers name a doctor"""
        user = request.user

        if user.role == UserRoles.DOCTOR:
            if doctor_id in (None, '') or str(doctor_id) == str(user.pk):
                return user
            if writing:
                raise Forbidden("Doctors can only manage their own schedule")
        elif doctor_id in (None, ''):
            raise InvalidRequest("doctor_id is required")

        try:
            return User.objects.get(pk=doctor_id, role=UserRoles.DOCTOR)
        except (User.DoesNotExist, ValueError):
            raise NotFound("Doctor not found")
