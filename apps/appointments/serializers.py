# apps/appointments/serializers.py
from rest_framework import serializers
from django.contrib.auth import get_user_model

from core.constants import TIME_FORMAT
from .models import Appointment

User = get_user_model()


class MinimalUserSerializer(serializers.ModelSerializer):
    """Participant summary embedded in appointment payloads"""

    class Meta:
        model = User
        fields = ['id', 'full_name', 'email', 'phone', 'role']


class AppointmentSerializer(serializers.ModelSerializer):
    """Read representation of an appointment"""

    patient = MinimalUserSerializer(read_only=True)
    doctor = MinimalUserSerializer(read_only=True)
    appointment_time = serializers.TimeField(format=TIME_FORMAT, read_only=True)
    cancelled_by = serializers.PrimaryKeyRelatedField(read_only=True)
    status_changed_by = serializers.PrimaryKeyRelatedField(read_only=True)

    # Computed fields
    is_upcoming = serializers.BooleanField(read_only=True)
    is_today = serializers.BooleanField(read_only=True)

    class Meta:
        model = Appointment
        fields = [
            'id', 'appointment_id', 'patient', 'doctor', 'status', 'type',
            'appointment_date', 'appointment_time', 'duration_minutes',
            'reason', 'chief_complaint', 'symptoms', 'notes',
            'cancel_reason', 'cancelled_by', 'cancelled_at',
            'status_changed_by', 'status_changed_at',
            'is_upcoming', 'is_today', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class AppointmentCreateSerializer(serializers.Serializer):
    """Booking request

    Time and type stay plain strings here; the booking service owns
    their validation so every entry point reports them the same way.
    """

    doctor_id = serializers.IntegerField()
    patient_id = serializers.IntegerField(required=False)
    appointment_date = serializers.DateField()
    appointment_time = serializers.CharField(max_length=5)
    type = serializers.CharField(max_length=20)

    reason = serializers.CharField(max_length=500, required=False, allow_blank=True)
    chief_complaint = serializers.CharField(max_length=500, required=False, allow_blank=True)
    symptoms = serializers.ListField(
        child=serializers.CharField(max_length=200),
        required=False
    )
    notes = serializers.CharField(required=False, allow_blank=True)


class AppointmentUpdateSerializer(serializers.Serializer):
    """Fields an active appointment may change"""

    reason = serializers.CharField(max_length=500, required=False, allow_blank=True)
    chief_complaint = serializers.CharField(max_length=500, required=False, allow_blank=True)
    symptoms = serializers.ListField(
        child=serializers.CharField(max_length=200),
        required=False
    )
    notes = serializers.CharField(required=False, allow_blank=True)
    type = serializers.CharField(max_length=20, required=False)


class AppointmentCancelSerializer(serializers.Serializer):
    cancel_reason = serializers.CharField(max_length=500, required=False, allow_blank=True)


class AppointmentStatusUpdateSerializer(serializers.Serializer):
    """Serializer for updating appointment status"""

    status = serializers.CharField(max_length=20)
    cancel_reason = serializers.CharField(max_length=500, required=False, allow_blank=True)


class SlotQuerySerializer(serializers.Serializer):
    date = serializers.DateField()
