"""
Django admin registrations for the bed management models.

Lifecycle fields are read-only here: status changes must go through the
services so that the state machines and notifications stay consistent.
"""

from django.contrib import admin

from .models import (
    User,
    Patient,
    Bed,
    BedRequest,
    WardTransfer,
    CleaningStaff,
    CleaningJob,
    Alert,
    SystemSettings,
    AuditEvent,
)


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'role', 'ward', 'is_staff', 'is_superuser')
    list_filter = ('role', 'ward')
    search_fields = ('username', 'first_name', 'last_name')


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('patient_id', 'name', 'department', 'status', 'bed', 'admission_date')
    list_filter = ('status', 'department')
    search_fields = ('patient_id', 'name', 'contact_number')


@admin.register(Bed)
class BedAdmin(admin.ModelAdmin):
    list_display = ('bed_number', 'ward', 'status', 'equipment_type', 'floor', 'patient', 'last_cleaned')
    list_filter = ('ward', 'status', 'equipment_type', 'floor')
    search_fields = ('bed_number', 'room_number')
    readonly_fields = ('status', 'patient', 'ever_occupied', 'last_cleaned')


@admin.register(BedRequest)
class BedRequestAdmin(admin.ModelAdmin):
    list_display = ('request_id', 'patient_name', 'triage_level', 'priority', 'status',
                    'assigned_bed_number', 'reservation_expires_at', 'is_deleted')
    list_filter = ('status', 'triage_level', 'is_deleted')
    search_fields = ('request_id', 'patient_name', 'created_by_name')
    readonly_fields = ('status', 'priority', 'assigned_bed', 'reservation_expires_at')


@admin.register(WardTransfer)
class WardTransferAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'current_ward', 'target_ward', 'status', 'created_at')
    list_filter = ('status', 'target_ward')
    search_fields = ('patient__patient_id', 'patient__name')


@admin.register(CleaningStaff)
class CleaningStaffAdmin(admin.ModelAdmin):
    list_display = ('staff_id', 'name', 'status', 'active_jobs_count', 'total_jobs_completed')
    list_filter = ('status',)
    search_fields = ('staff_id', 'name')


@admin.register(CleaningJob)
class CleaningJobAdmin(admin.ModelAdmin):
    list_display = ('id', 'bed_number', 'ward', 'floor', 'status', 'assigned_to_name', 'created_at')
    list_filter = ('status', 'ward', 'floor')
    search_fields = ('bed_number', 'assigned_to_name')


@admin.register(Alert)
class AlertAdmin(admin.ModelAdmin):
    list_display = ('id', 'severity', 'ward', 'priority', 'acknowledged', 'created_at')
    list_filter = ('severity', 'acknowledged', 'ward')
    search_fields = ('message',)


@admin.register(SystemSettings)
class SystemSettingsAdmin(admin.ModelAdmin):
    list_display = ('singleton', 'warning_threshold', 'critical_threshold', 'reservation_ttl_hours',
                    'auto_expire_reservations', 'updated_at')


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('action', 'object_type', 'object_id', 'user', 'created_at')
    list_filter = ('action', 'object_type')
    search_fields = ('object_id', 'user__username')
