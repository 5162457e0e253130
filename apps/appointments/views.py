# apps/appointments/views.py
import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from rest_framework import viewsets, status, filters
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from django_filters.rest_framework import DjangoFilterBackend

from core.constants import UserRoles
from core.exceptions import Forbidden, InvalidRequest, NotFound
from core.permissions import IsAuthenticatedAndActive, IsAdmin, IsPatient
from core.utils.notifications import NotificationConfig, NotificationService

from .filters import AppointmentFilter
from .serializers import (
    AppointmentSerializer, AppointmentCreateSerializer,
    AppointmentUpdateSerializer, AppointmentCancelSerializer,
    AppointmentStatusUpdateSerializer, SlotQuerySerializer
)
from .services import AppointmentBookingService, UPDATABLE_FIELDS
from .store import AppointmentStore

logger = logging.getLogger(__name__)

User = get_user_model()


# ===========================================
# PAGINATION CLASSES
# ===========================================

class AppointmentPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100

    def get_paginated_response(self, data):
        return Response({
            'count': self.page.paginator.count,
            'next': self.get_next_link(),
            'previous': self.get_previous_link(),
            'current_page': self.page.number,
            'total_pages': self.page.paginator.num_pages,
            'results': data
        })


def build_booking_service():
    """Wire the booking service from settings"""
    notifier = NotificationService(NotificationConfig.from_mapping(settings.NOTIFICATIONS))
    return AppointmentBookingService(notifier=notifier)


def get_user_with_role(pk, role, label):
    try:
        return User.objects.get(pk=pk, role=role, is_active=True)
    except (User.DoesNotExist, ValueError):
        raise NotFound(f"{label} not found")


# ===========================================
# APPOINTMENT VIEWSET
# ===========================================

class AppointmentViewSet(viewsets.ModelViewSet):
    """
    Appointments: booking, role-scoped listing, cancellation and status changes.

    Appointments are never deleted; DELETE is not routed.
    """

    serializer_class = AppointmentSerializer
    pagination_class = AppointmentPagination
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_class = AppointmentFilter
    ordering_fields = ['appointment_date', 'appointment_time', 'created_at']
    ordering = ['appointment_date', 'appointment_time']
    http_method_names = ['get', 'post', 'put', 'patch', 'head', 'options']

    store = AppointmentStore()

    def get_permissions(self):
        """Set permissions based on action"""
        if self.action == 'create':
            permission_classes = [IsAuthenticatedAndActive, IsPatient | IsAdmin]
        else:
            permission_classes = [IsAuthenticatedAndActive]
        return [permission() for permission in permission_classes]

    def get_queryset(self):
        """Patients and doctors see their own appointments, admins see all"""
        return self.store.scoped_for(self.request.user)

    def get_object(self):
        # Outsiders get Forbidden rather than the scoped queryset's 404
        return self.booking_service.get_for(self.request.user, self.kwargs['pk'])

    @property
    def booking_service(self):
        if not hasattr(self, '_booking_service'):
            self._booking_service = build_booking_service()
        return self._booking_service

    def create(self, request, *args, **kwargs):
        """Book an open slot"""
        serializer = AppointmentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        user = request.user
        if user.role == UserRoles.PATIENT:
            if data.get('patient_id') not in (None, user.pk):
                raise Forbidden("Patients can only book appointments for themselves")
            patient = user
        else:
            if not data.get('patient_id'):
                raise InvalidRequest("patient_id is required")
            patient = get_user_with_role(data['patient_id'], UserRoles.PATIENT, 'Patient')

        doctor = get_user_with_role(data['doctor_id'], UserRoles.DOCTOR, 'Doctor')

        appointment = self.booking_service.book(
            doctor=doctor,
            patient=patient,
            target_date=data['appointment_date'],
            start_time=data['appointment_time'],
            appointment_type=data['type'],
            metadata={
                key: data[key]
                for key in ('reason', 'chief_complaint', 'symptoms', 'notes')
                if key in data
            },
        )
        return Response(AppointmentSerializer(appointment).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        """Change the descriptive fields of an active appointment"""
        appointment = self.get_object()

        serializer = AppointmentUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        # Keys the serializer does not know are passed through so the
        # service can reject them by name
        fields = {key: request.data[key] for key in request.data if key not in UPDATABLE_FIELDS}
        fields.update(serializer.validated_data)

        appointment = self.booking_service.update(appointment, request.user, fields)
        return Response(AppointmentSerializer(appointment).data)

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """Cancel appointment"""
        appointment = self.get_object()

        serializer = AppointmentCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        appointment = self.booking_service.cancel(
            appointment,
            request.user,
            serializer.validated_data.get('cancel_reason', '')
        )
        return Response({
            'message': 'Appointment cancelled successfully',
            'appointment': AppointmentSerializer(appointment).data
        })

    @action(detail=True, methods=['patch'], url_path='status')
    def change_status(self, request, pk=None):
        """Move an appointment along its status lifecycle"""
        appointment = self.get_object()

        serializer = AppointmentStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        appointment = self.booking_service.transition_status(
            appointment,
            request.user,
            data['status'],
            data.get('cancel_reason', '')
        )
        return Response({
            'message': f'Appointment status updated to {appointment.status}',
            'appointment': AppointmentSerializer(appointment).data
        })

    @action(detail=False, methods=['get'], url_path=r'slots/(?P<doctor_id>\d+)')
    def slots(self, request, doctor_id=None):
        """Open slots for a doctor on ?date=YYYY-MM-DD"""
        serializer = SlotQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        target_date = serializer.validated_data['date']

        doctor = get_user_with_role(doctor_id, UserRoles.DOCTOR, 'Doctor')
        open_slots = self.booking_service.list_open_slots(doctor, target_date)

        return Response({
            'doctor_id': doctor.pk,
            'date': target_date,
            'available_slots': open_slots,
            'count': len(open_slots)
        })

    @action(detail=False, methods=['get'])
    def stats(self, request):
        """Appointment counts per status for the current user"""
        return Response(self.booking_service.stats(request.user))
