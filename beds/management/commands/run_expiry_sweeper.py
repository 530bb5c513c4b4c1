from django.conf import settings
from django.core.management.base import BaseCommand
from django.utils import timezone

from beds.services.expiry import ReservationExpirySweeper, sweep


class Command(BaseCommand):
    help = "Release beds held by approved requests whose reservation has lapsed."

    def add_arguments(self, parser):
        parser.add_argument("--once", action="store_true", help="Run a single sweep and exit.")
        parser.add_argument("--interval", type=int, default=settings.BEDS_EXPIRY_SWEEP_INTERVAL,
                            help="Seconds between sweeps (default: %(default)s).")

    def handle(self, *args, **options):
        if options["once"]:
            count = sweep()
            self.stdout.write(self.style.SUCCESS(f"Expired {count} reservation(s) at {timezone.now()}"))
            return
        sweeper = ReservationExpirySweeper(interval=options["interval"])
        self.stdout.write(f"Sweeping every {sweeper.interval}s; Ctrl+C to stop")
        try:
            sweeper.run_forever()
        except KeyboardInterrupt:
            sweeper.stop()
            self.stdout.write(self.style.SUCCESS("Sweeper stopped"))
