"""
Real-time fan-out over the Channels layer.

Every event is sent to the ``updates`` broadcast group; events that
concern a ward or a bed are also sent to ``ward.<slug>`` / ``bed.<id>``
groups so observers can subscribe narrowly (see
``beds.realtime.consumers.UpdatesConsumer``).
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.utils import timezone
from django.utils.text import slugify

logger = logging.getLogger(__name__)

BROADCAST_GROUP = "updates"


def ward_topic(ward: str) -> str:
    return f"ward.{slugify(ward) or 'unassigned'}"


def bed_topic(bed_id) -> str:
    return f"bed.{bed_id}"


def topics_for_bed(bed) -> list[str]:
    return [ward_topic(bed.ward), bed_topic(bed.pk)]


def publish(event: str, payload: dict, *, topics: Optional[Iterable[str]] = None) -> None:
    """Send ``event`` with ``payload`` to all observers and to ``topics``.

    Called after the state change has been written; a fan-out failure is
    logged and does not undo the change.
    """
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    message = {
        "type": "bed.event",
        "event": event,
        "ts": timezone.now().isoformat(),
        "data": payload,
    }
    groups = [BROADCAST_GROUP, *(topics or ())]
    for group in dict.fromkeys(groups):
        try:
            async_to_sync(channel_layer.group_send)(group, message)
        except Exception:
            logger.exception("Failed to publish %s to %s", event, group)
