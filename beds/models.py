"""
Database models for the bed management backend.

These models capture the bed inventory and the workflows that move beds
between states: ER bed requests, ward transfers and cleaning jobs.
Snapshots (bed number, ward, patient details) are stored alongside
foreign keys so that historical records stay readable after the
referenced rows change.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Staff account with a role and an optional home ward.

    Roles: 'admin', 'bed_manager' (approves requests across wards),
    'ward_staff' and 'er_staff'.
    """
    ROLE_ADMIN = 'admin'
    ROLE_BED_MANAGER = 'bed_manager'
    ROLE_WARD_STAFF = 'ward_staff'
    ROLE_ER_STAFF = 'er_staff'
    ROLE_CHOICES = [
        (ROLE_ADMIN, 'Administrator'),
        (ROLE_BED_MANAGER, 'Bed Manager'),
        (ROLE_WARD_STAFF, 'Ward Staff'),
        (ROLE_ER_STAFF, 'ER Staff'),
    ]
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_WARD_STAFF)
    ward = models.CharField(max_length=64, blank=True, default='')

    @property
    def display_name(self) -> str:
        return self.get_full_name() or self.username

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


EQUIPMENT_CHOICES = [
    ('Standard', 'Standard'),
    ('Ventilator', 'Ventilator'),
    ('ICU Monitor', 'ICU Monitor'),
    ('Cardiac Monitor', 'Cardiac Monitor'),
    ('Dialysis', 'Dialysis'),
    ('VAD', 'VAD'),
]

GENDER_CHOICES = [
    ('Male', 'Male'),
    ('Female', 'Female'),
    ('Other', 'Other'),
]


class Patient(models.Model):
    STATUS_ADMITTED = 'admitted'
    STATUS_CRITICAL = 'critical'
    STATUS_STABLE = 'stable'
    STATUS_RECOVERING = 'recovering'
    STATUS_DISCHARGED = 'discharged'
    STATUS_CHOICES = [
        (STATUS_ADMITTED, 'Admitted'),
        (STATUS_CRITICAL, 'Critical'),
        (STATUS_STABLE, 'Stable'),
        (STATUS_RECOVERING, 'Recovering'),
        (STATUS_DISCHARGED, 'Discharged'),
    ]

    patient_id = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=255)
    age = models.PositiveIntegerField(null=True, blank=True)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, blank=True)
    contact_number = models.CharField(max_length=32, blank=True)
    department = models.CharField(max_length=64)
    reason_for_admission = models.TextField(blank=True)
    estimated_stay = models.PositiveIntegerField(default=24, help_text="Expected stay in hours")
    admission_date = models.DateTimeField(auto_now_add=True)
    actual_discharge = models.DateTimeField(null=True, blank=True)
    bed = models.ForeignKey('Bed', null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ADMITTED, db_index=True)
    transfer_history = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.name} ({self.patient_id})"


class Bed(models.Model):
    STATUS_AVAILABLE = 'available'
    STATUS_OCCUPIED = 'occupied'
    STATUS_CLEANING = 'cleaning'
    STATUS_RESERVED = 'reserved'
    STATUS_MAINTENANCE = 'maintenance'
    STATUS_CHOICES = [
        (STATUS_AVAILABLE, 'Available'),
        (STATUS_OCCUPIED, 'Occupied'),
        (STATUS_CLEANING, 'Cleaning'),
        (STATUS_RESERVED, 'Reserved'),
        (STATUS_MAINTENANCE, 'Maintenance'),
    ]

    bed_number = models.CharField(max_length=32, unique=True)
    ward = models.CharField(max_length=64, db_index=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_AVAILABLE, db_index=True)
    equipment_type = models.CharField(max_length=32, choices=EQUIPMENT_CHOICES, default='Standard')
    patient = models.ForeignKey(Patient, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    floor = models.IntegerField(default=1)
    section = models.CharField(max_length=32, blank=True, default='')
    room_number = models.CharField(max_length=32, blank=True, default='')
    notes = models.TextField(blank=True, default='')
    last_cleaned = models.DateTimeField(null=True, blank=True)
    # Capacity reconciliation only removes beds that never held a patient.
    ever_occupied = models.BooleanField(default=False)
    last_updated = models.DateTimeField(auto_now=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['ward', 'status'], name='beds_bed_ward_e0c2f1_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.bed_number} [{self.ward}] {self.status}"


class BedRequest(models.Model):
    """An ER request for a bed, from creation through admission."""
    STATUS_PENDING = 'pending'
    STATUS_APPROVED = 'approved'
    STATUS_DENIED = 'denied'
    STATUS_FULFILLED = 'fulfilled'
    STATUS_CANCELLED = 'cancelled'
    STATUS_EXPIRED = 'expired'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_DENIED, 'Denied'),
        (STATUS_FULFILLED, 'Fulfilled'),
        (STATUS_CANCELLED, 'Cancelled'),
        (STATUS_EXPIRED, 'Expired'),
    ]
    TERMINAL_STATUSES = (STATUS_DENIED, STATUS_FULFILLED, STATUS_CANCELLED, STATUS_EXPIRED)

    TRIAGE_CHOICES = [
        ('Critical', 'Critical'),
        ('Urgent', 'Urgent'),
        ('Semi-Urgent', 'Semi-Urgent'),
        ('Non-Urgent', 'Non-Urgent'),
    ]

    request_id = models.CharField(max_length=20, unique=True)
    created_by = models.ForeignKey(User, null=True, on_delete=models.SET_NULL, related_name='bed_requests')
    created_by_name = models.CharField(max_length=255, blank=True, default='')

    patient_name = models.CharField(max_length=255)
    patient_age = models.PositiveIntegerField(null=True, blank=True)
    patient_gender = models.CharField(max_length=10, choices=GENDER_CHOICES, blank=True, default='')
    contact_number = models.CharField(max_length=32, blank=True, default='')
    triage_level = models.CharField(max_length=20, choices=TRIAGE_CHOICES, blank=True, default='')
    required_equipment = models.CharField(max_length=32, choices=EQUIPMENT_CHOICES, default='Standard')
    reason_for_admission = models.TextField(blank=True, default='')
    estimated_stay = models.PositiveIntegerField(null=True, blank=True)

    preferred_ward = models.CharField(max_length=64, blank=True, default='')
    eta = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    priority = models.PositiveSmallIntegerField(default=2, db_index=True)
    notes = models.TextField(blank=True, default='')

    assigned_bed = models.ForeignKey(Bed, null=True, blank=True, on_delete=models.SET_NULL, related_name='requests')
    assigned_bed_number = models.CharField(max_length=32, blank=True, default='')
    assigned_ward = models.CharField(max_length=64, blank=True, default='')
    reservation_expires_at = models.DateTimeField(null=True, blank=True, db_index=True)

    reviewed_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='reviewed_bed_requests')
    reviewed_at = models.DateTimeField(null=True, blank=True)
    denial_reason = models.TextField(blank=True, default='')

    patient = models.ForeignKey(Patient, null=True, blank=True, on_delete=models.SET_NULL, related_name='bed_requests')
    fulfilled_at = models.DateTimeField(null=True, blank=True)
    expired_at = models.DateTimeField(null=True, blank=True)

    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    cancel_reason = models.TextField(blank=True, default='')

    is_deleted = models.BooleanField(default=False, db_index=True)
    deleted_at = models.DateTimeField(null=True, blank=True)
    deleted_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['status', 'created_at'], name='beds_bedreq_status_3a1f0c_idx'),
            models.Index(fields=['status', 'reservation_expires_at'], name='beds_bedreq_status_8d2b47_idx'),
        ]

    @staticmethod
    def priority_for(triage_level: str | None) -> int:
        if triage_level == 'Critical':
            return 5
        if triage_level in ('Urgent', 'Semi-Urgent'):
            return 3
        return 2

    def save(self, *args, **kwargs):
        self.priority = self.priority_for(self.triage_level)
        update_fields = kwargs.get('update_fields')
        if update_fields is not None and 'priority' not in update_fields:
            kwargs['update_fields'] = list(update_fields) + ['priority']
        super().save(*args, **kwargs)

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES

    def __str__(self) -> str:
        return f"{self.request_id} {self.patient_name} ({self.status})"


class WardTransfer(models.Model):
    """Move of an admitted patient to a bed in another ward.

    Approval executes the move in the same operation, so there is no
    persisted 'approved' state: a transfer is pending, completed or denied.
    """
    STATUS_PENDING = 'pending'
    STATUS_COMPLETED = 'completed'
    STATUS_DENIED = 'denied'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_DENIED, 'Denied'),
    ]

    bed = models.ForeignKey(Bed, on_delete=models.PROTECT, related_name='outgoing_transfers')
    new_bed = models.ForeignKey(Bed, null=True, blank=True, on_delete=models.SET_NULL, related_name='incoming_transfers')
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='transfers')
    current_ward = models.CharField(max_length=64)
    target_ward = models.CharField(max_length=64, db_index=True)
    reason = models.TextField(blank=True, default='')
    notes = models.TextField(blank=True, default='')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    requested_by = models.ForeignKey(User, null=True, on_delete=models.SET_NULL, related_name='requested_transfers')
    reviewed_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='reviewed_transfers')
    reviewed_at = models.DateTimeField(null=True, blank=True)
    deny_reason = models.TextField(blank=True, default='')
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['patient', 'status'], name='beds_wardtr_patient_5c9e21_idx'),
            models.Index(fields=['created_at'], name='beds_wardtr_created_7b40d3_idx'),
        ]

    def __str__(self) -> str:
        return f"Transfer #{self.pk} {self.current_ward} → {self.target_ward} ({self.status})"


class CleaningStaff(models.Model):
    STATUS_AVAILABLE = 'available'
    STATUS_BUSY = 'busy'
    STATUS_CHOICES = [
        (STATUS_AVAILABLE, 'Available'),
        (STATUS_BUSY, 'Busy'),
    ]

    staff_id = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=255)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_AVAILABLE)
    active_jobs_count = models.PositiveIntegerField(default=0)
    total_jobs_completed = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.name} ({self.staff_id})"


class CleaningJob(models.Model):
    STATUS_PENDING = 'pending'
    STATUS_ACTIVE = 'active'
    STATUS_COMPLETED = 'completed'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_ACTIVE, 'Active'),
        (STATUS_COMPLETED, 'Completed'),
    ]
    OPEN_STATUSES = (STATUS_PENDING, STATUS_ACTIVE)

    bed = models.ForeignKey(Bed, on_delete=models.CASCADE, related_name='cleaning_jobs')
    bed_number = models.CharField(max_length=32)
    ward = models.CharField(max_length=64)
    floor = models.IntegerField(default=1)
    section = models.CharField(max_length=32, blank=True, default='')
    room_number = models.CharField(max_length=32, blank=True, default='')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    assigned_to = models.ForeignKey(CleaningStaff, null=True, blank=True, on_delete=models.SET_NULL, related_name='jobs')
    assigned_to_name = models.CharField(max_length=255, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=['status', 'created_at'], name='beds_cleani_status_1e6a90_idx'),
            models.Index(fields=['floor', 'status'], name='beds_cleani_floor_4b7c12_idx'),
            models.Index(fields=['ward', 'status'], name='beds_cleani_ward_9f3d58_idx'),
        ]

    def __str__(self) -> str:
        return f"Cleaning {self.bed_number} ({self.status})"


class Alert(models.Model):
    SEVERITY_CHOICES = [
        ('critical', 'critical'),
        ('warning', 'warning'),
        ('info', 'info'),
        ('success', 'success'),
        ('emergency', 'emergency'),
    ]

    severity = models.CharField(max_length=16, choices=SEVERITY_CHOICES)
    message = models.TextField()
    ward = models.CharField(max_length=64, blank=True, default='')
    bed = models.ForeignKey(Bed, null=True, blank=True, on_delete=models.SET_NULL, related_name='alerts')
    priority = models.PositiveSmallIntegerField(default=1)
    acknowledged = models.BooleanField(default=False, db_index=True)
    acknowledged_by = models.CharField(max_length=255, blank=True, default='')
    acknowledged_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['priority', 'created_at'], name='beds_alert_priorit_2c8e7a_idx'),
        ]

    def __str__(self) -> str:
        return f"[{self.severity}] {self.message[:40]}"


class Sequence(models.Model):
    """Named monotonically increasing counter (REQ-/PAT- identifiers)."""
    name = models.CharField(max_length=32, primary_key=True)
    value = models.PositiveBigIntegerField(default=0)

    def __str__(self) -> str:
        return f"{self.name}={self.value}"


class SystemSettings(models.Model):
    """Persisted policy values; read once into process state by ``services.config``."""
    singleton = models.CharField(max_length=16, unique=True, default='settings')
    warning_threshold = models.PositiveSmallIntegerField(default=80)
    critical_threshold = models.PositiveSmallIntegerField(default=90)
    reservation_ttl_hours = models.PositiveSmallIntegerField(default=2)
    auto_expire_reservations = models.BooleanField(default=True)
    default_period = models.CharField(max_length=8, default='24h')
    auto_refresh_interval = models.PositiveIntegerField(default=60)
    updated_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"settings (ttl={self.reservation_ttl_hours}h)"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.CharField(max_length=64, blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='beds_audite_action_6d1b3f_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='beds_audite_object__0a7e95_idx'),
        ]
