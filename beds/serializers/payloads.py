"""Plain-dict renderings of models for API responses and real-time events."""


def _iso(dt):
    return dt.isoformat() if dt else None


def bed_payload(bed):
    return {
        'id': bed.pk,
        'bedNumber': bed.bed_number,
        'ward': bed.ward,
        'status': bed.status,
        'equipmentType': bed.equipment_type,
        'patientId': bed.patient_id,
        'floor': bed.floor,
        'section': bed.section,
        'roomNumber': bed.room_number,
        'notes': bed.notes,
        'lastCleaned': _iso(bed.last_cleaned),
        'lastUpdated': _iso(bed.last_updated),
    }


def patient_payload(p):
    return {
        'id': p.pk,
        'patientId': p.patient_id,
        'name': p.name,
        'age': p.age,
        'gender': p.gender,
        'contactNumber': p.contact_number,
        'department': p.department,
        'status': p.status,
        'bedId': p.bed_id,
        'admissionDate': _iso(p.admission_date),
        'actualDischarge': _iso(p.actual_discharge),
        'transferHistory': p.transfer_history or [],
    }


def request_payload(r):
    return {
        'id': r.pk,
        'requestId': r.request_id,
        'status': r.status,
        'priority': r.priority,
        'createdBy': {'id': r.created_by_id, 'name': r.created_by_name},
        'patientDetails': {
            'name': r.patient_name,
            'age': r.patient_age,
            'gender': r.patient_gender,
            'contactNumber': r.contact_number,
            'triageLevel': r.triage_level,
            'requiredEquipment': r.required_equipment,
            'reasonForAdmission': r.reason_for_admission,
            'estimatedStay': r.estimated_stay,
        },
        'preferredWard': r.preferred_ward,
        'eta': _iso(r.eta),
        'notes': r.notes,
        'assignedBed': {
            'id': r.assigned_bed_id,
            'bedNumber': r.assigned_bed_number,
            'ward': r.assigned_ward,
        } if r.assigned_bed_id else None,
        'reservationExpiresAt': _iso(r.reservation_expires_at),
        'reviewedBy': r.reviewed_by_id,
        'reviewedAt': _iso(r.reviewed_at),
        'denialReason': r.denial_reason,
        'patientId': r.patient_id,
        'fulfilledAt': _iso(r.fulfilled_at),
        'expiredAt': _iso(r.expired_at),
        'cancelledAt': _iso(r.cancelled_at),
        'cancelReason': r.cancel_reason,
        'createdAt': _iso(r.created_at),
        'updatedAt': _iso(r.updated_at),
    }


def transfer_payload(t):
    return {
        'id': t.pk,
        'bedId': t.bed_id,
        'newBedId': t.new_bed_id,
        'patientId': t.patient_id,
        'currentWard': t.current_ward,
        'targetWard': t.target_ward,
        'reason': t.reason,
        'notes': t.notes,
        'status': t.status,
        'requestedBy': t.requested_by_id,
        'reviewedBy': t.reviewed_by_id,
        'reviewedAt': _iso(t.reviewed_at),
        'denyReason': t.deny_reason,
        'completedAt': _iso(t.completed_at),
        'createdAt': _iso(t.created_at),
    }


def job_payload(j):
    return {
        'id': j.pk,
        'bedId': j.bed_id,
        'bedNumber': j.bed_number,
        'ward': j.ward,
        'floor': j.floor,
        'section': j.section,
        'roomNumber': j.room_number,
        'status': j.status,
        'assignedTo': j.assigned_to_id,
        'assignedToName': j.assigned_to_name,
        'createdAt': _iso(j.created_at),
        'startedAt': _iso(j.started_at),
        'completedAt': _iso(j.completed_at),
    }


def staff_payload(s):
    return {
        'id': s.pk,
        'staffId': s.staff_id,
        'name': s.name,
        'status': s.status,
        'activeJobsCount': s.active_jobs_count,
        'totalJobsCompleted': s.total_jobs_completed,
    }


def alert_payload(a):
    return {
        'id': a.pk,
        'severity': a.severity,
        'message': a.message,
        'ward': a.ward,
        'bedId': a.bed_id,
        'priority': a.priority,
        'acknowledged': a.acknowledged,
        'acknowledgedBy': a.acknowledged_by,
        'acknowledgedAt': _iso(a.acknowledged_at),
        'createdAt': _iso(a.created_at),
    }
