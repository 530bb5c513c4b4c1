import logging
from typing import Optional

from django.db.models import Count
from django.utils import timezone

from beds.errors import NotFoundError, ValidationError
from beds.models import Alert, Bed
from beds.serializers.payloads import alert_payload
from beds.services import notify

logger = logging.getLogger(__name__)


def raise_alert(severity: str, message: str, *, ward: Optional[str] = None, priority: int = 1,
                bed: Optional[Bed] = None) -> Alert:
    """Record an alert and push it to observers of its ward."""
    alert = Alert.objects.create(
        severity=severity,
        message=message,
        ward=ward or '',
        priority=max(1, min(5, int(priority or 1))),
        bed=bed,
    )
    logger.info("Alert [%s] %s", severity, message)
    topics = [notify.ward_topic(ward)] if ward else []
    notify.publish('alert.created', alert_payload(alert), topics=topics)
    return alert


def list_alerts(*, severity=None, ward=None, acknowledged=None, limit: int = 50):
    qs = Alert.objects.select_related('bed')
    if severity:
        qs = qs.filter(severity=severity)
    if ward:
        qs = qs.filter(ward=ward)
    if acknowledged is not None:
        qs = qs.filter(acknowledged=acknowledged)
    return list(qs.order_by('-priority', '-created_at')[:limit])


def create_alert(*, severity: str, message: str, ward=None, bed_id=None, priority: int = 1) -> Alert:
    if not severity or not message:
        raise ValidationError('Severity and message are required')
    if severity not in dict(Alert.SEVERITY_CHOICES):
        raise ValidationError(f"Unknown alert severity '{severity}'")
    bed = None
    if bed_id:
        bed = Bed.objects.filter(pk=bed_id).first()
        if bed is None:
            raise NotFoundError('Bed not found')
    return raise_alert(severity, message, ward=ward, priority=priority, bed=bed)


def acknowledge_alert(alert_id, *, actor) -> Alert:
    alert = Alert.objects.filter(pk=alert_id).first()
    if alert is None:
        raise NotFoundError('Alert not found')
    if not alert.acknowledged:
        alert.acknowledged = True
        alert.acknowledged_by = actor.display_name if actor else ''
        alert.acknowledged_at = timezone.now()
        alert.save(update_fields=['acknowledged', 'acknowledged_by', 'acknowledged_at'])
        notify.publish('alert.acknowledged', alert_payload(alert))
    return alert


def alert_summary() -> dict:
    unacked = Alert.objects.filter(acknowledged=False)
    by_severity = {row['severity']: row['n'] for row in Alert.objects.values('severity').annotate(n=Count('id'))}
    return {
        'total': Alert.objects.count(),
        'unacknowledged': unacked.count(),
        'critical': unacked.filter(severity='critical').count(),
        'warning': unacked.filter(severity='warning').count(),
        'bySeverity': by_severity,
    }
