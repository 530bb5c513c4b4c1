"""
Reservation expiry.

An approved request holds its bed only until ``reservation_expires_at``.
``sweep`` reclaims every lapsed reservation; ``ReservationExpirySweeper``
runs it once at start and then on a fixed interval, either inside the
ASGI process (``BEDS_SWEEPER_AUTOSTART``) or from the
``run_expiry_sweeper`` management command.
"""
from __future__ import annotations

import logging
import threading

from django.db import close_old_connections
from django.utils import timezone

from beds import metrics
from beds.models import BedRequest
from beds.services.bed_requests import expire_request
from beds.services.config import get_settings

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 60


def due_requests(now=None):
    now = now or timezone.now()
    return list(
        BedRequest.objects.filter(
            status=BedRequest.STATUS_APPROVED,
            is_deleted=False,
            reservation_expires_at__lte=now,
        ).order_by('reservation_expires_at').values_list('request_id', flat=True)
    )


def sweep(now=None) -> int:
    """Expire every lapsed reservation and return how many were expired.

    A failure on one request is logged and counted; the rest still run.
    """
    if not get_settings().auto_expire_reservations:
        logger.debug("Reservation auto-expiry disabled; skipping sweep")
        return 0
    now = now or timezone.now()
    expired = 0
    for request_id in due_requests(now):
        try:
            if expire_request(request_id, now=now) is not None:
                expired += 1
        except Exception:
            metrics.SWEEP_FAILURES.inc()
            logger.exception("Failed to expire reservation %s", request_id)
    if expired:
        logger.info("Expired %d reservation(s)", expired)
    return expired


class ReservationExpirySweeper:
    """Background thread calling :func:`sweep` every ``interval`` seconds."""

    def __init__(self, interval: int = DEFAULT_INTERVAL):
        if interval <= 0:
            raise ValueError('interval must be positive')
        self.interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def tick(self) -> int:
        close_old_connections()
        try:
            return sweep()
        except Exception:
            # database unavailable and the like; the next tick retries
            logger.exception("Reservation expiry sweep failed")
            return 0
        finally:
            close_old_connections()

    def _run(self):
        logger.info("Reservation expiry sweeper started (every %ss)", self.interval)
        self.tick()
        while not self._stop.wait(self.interval):
            self.tick()
        logger.info("Reservation expiry sweeper stopped")

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name='reservation-expiry', daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None and timeout is not None:
            self._thread.join(timeout)
        self._thread = None

    def run_forever(self) -> None:
        """Run in the calling thread until :meth:`stop` is called from elsewhere."""
        self._stop.clear()
        self._run()
