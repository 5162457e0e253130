# apps/doctors/admin.py

from django.contrib import admin
from .models import DoctorSchedule


@admin.register(DoctorSchedule)
class DoctorScheduleAdmin(admin.ModelAdmin):
    list_display = (
        'doctor', 'day_of_week', 'is_available', 'slot_duration_minutes',
        'break_start', 'break_end'
    )
    list_filter = ('day_of_week', 'is_available')
    search_fields = ('doctor__full_name', 'doctor__email')
    raw_id_fields = ('doctor',)
    readonly_fields = ('created_at', 'updated_at', 'created_by', 'updated_by')

    fieldsets = (
        ('Schedule', {
            'fields': ('doctor', 'day_of_week', 'is_available', 'time_slots', 'slot_duration_minutes')
        }),
        ('Break', {
            'fields': ('break_start', 'break_end')
        }),
        ('Notes', {
            'fields': ('notes',)
        }),
        ('Audit Information', {
            'fields': ('created_at', 'updated_at', 'created_by', 'updated_by'),
            'classes': ('collapse',)
        }),
    )

    def save_model(self, request, obj, form, change):
        obj.stamp(request.user)
        super().save_model(request, obj, form, change)
