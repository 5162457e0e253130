# apps/doctors/serializers.py

import re

from django.conf import settings
from rest_framework import serializers

from core.constants import TIME_FORMAT, TIME_PATTERN
from .models import DoctorSchedule


class TimeSlotSerializer(serializers.Serializer):
    """One working interval, both ends as HH:MM

    is_available switches a single interval off without touching the rest
    of the day.
    """

    start_time = serializers.CharField(max_length=5)
    end_time = serializers.CharField(max_length=5)
    is_available = serializers.BooleanField(default=True)

    def validate(self, data):
        for field in ('start_time', 'end_time'):
            if not re.match(TIME_PATTERN, data.get(field) or ''):
                raise serializers.ValidationError({
                    field: 'Invalid time format. Use HH:MM'
                })

        if data['start_time'] >= data['end_time']:
            raise serializers.ValidationError({
                'end_time': 'End time must be after start time'
            })

        # Defaults are skipped on partial updates
        data.setdefault('is_available', True)
        return data


class DoctorScheduleSerializer(serializers.ModelSerializer):
    """Weekly schedule row for one weekday"""

    doctor_name = serializers.CharField(source='doctor.full_name', read_only=True)
    day_of_week_display = serializers.CharField(source='get_day_of_week_display', read_only=True)
    time_slots = TimeSlotSerializer(many=True, required=False)
    break_start = serializers.TimeField(format=TIME_FORMAT, required=False, allow_null=True)
    break_end = serializers.TimeField(format=TIME_FORMAT, required=False, allow_null=True)

    class Meta:
        model = DoctorSchedule
        fields = [
            'id', 'doctor', 'doctor_name', 'day_of_week', 'day_of_week_display',
            'is_available', 'time_slots', 'break_start', 'break_end',
            'slot_duration_minutes', 'notes',
            'created_at', 'updated_at', 'created_by', 'updated_by'
        ]
        read_only_fields = [
            'doctor', 'day_of_week', 'created_at', 'updated_at', 'created_by', 'updated_by'
        ]

    def validate_slot_duration_minutes(self, value):
        max_duration = settings.BOOKING['MAX_SLOT_DURATION_MINUTES']
        if value < 5 or value > max_duration:
            raise serializers.ValidationError(
                f'Slot duration must be between 5 and {max_duration} minutes'
            )
        return value

    def validate(self, data):
        """Validate break window"""
        break_start = data.get('break_start')
        break_end = data.get('break_end')

        if ('break_start' in data) != ('break_end' in data):
            raise serializers.ValidationError({
                'break_end': 'Break start and end must be set together'
            })

        if break_start and break_end and break_start >= break_end:
            raise serializers.ValidationError({
                'break_end': 'Break end must be after break start'
            })

        return data
