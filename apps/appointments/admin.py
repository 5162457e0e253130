# apps/appointments/admin.py

from django.contrib import admin
from .models import Appointment


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = (
        'appointment_id', 'patient', 'doctor', 'appointment_date',
        'appointment_time', 'type', 'status'
    )
    list_filter = ('status', 'type', 'appointment_date')
    search_fields = ('appointment_id', 'patient__full_name', 'doctor__full_name', 'reason')
    raw_id_fields = ('patient', 'doctor')
    date_hierarchy = 'appointment_date'

    # Status moves go through the booking service, not the admin form
    readonly_fields = (
        'appointment_id', 'status', 'cancel_reason', 'cancelled_by', 'cancelled_at',
        'status_changed_by', 'status_changed_at', 'created_at', 'updated_at'
    )

    fieldsets = (
        ('Basic Info', {
            'fields': ('appointment_id', 'patient', 'doctor', 'type', 'status')
        }),
        ('Timing', {
            'fields': ('appointment_date', 'appointment_time', 'duration_minutes')
        }),
        ('Details', {
            'fields': ('reason', 'chief_complaint', 'symptoms', 'notes')
        }),
        ('Status History', {
            'fields': (
                'cancel_reason', 'cancelled_by', 'cancelled_at',
                'status_changed_by', 'status_changed_at', 'created_at', 'updated_at'
            ),
            'classes': ('collapse',)
        }),
    )
