# apps/appointments/filters.py

from django_filters import rest_framework as filters

from core.constants import AppointmentStatus
from .models import Appointment


class AppointmentFilter(filters.FilterSet):
    """Filter for appointments"""

    status = filters.CharFilter(method='filter_status')
    date_from = filters.DateFilter(field_name='appointment_date', lookup_expr='gte')
    date_to = filters.DateFilter(field_name='appointment_date', lookup_expr='lte')
    doctor = filters.NumberFilter(field_name='doctor_id')
    patient = filters.NumberFilter(field_name='patient_id')
    type = filters.CharFilter(field_name='type')

    class Meta:
        model = Appointment
        fields = ['status', 'date_from', 'date_to', 'doctor', 'patient', 'type']

    def filter_status(self, queryset, name, value):
        """Comma separated list, e.g. ?status=scheduled,confirmed"""
        statuses = [
            status.strip() for status in value.split(',')
            if status.strip() in AppointmentStatus.values
        ]
        if not statuses:
            return queryset.none()
        return queryset.filter(status__in=statuses)
