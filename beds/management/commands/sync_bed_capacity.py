import json

from django.core.management.base import BaseCommand, CommandError

from beds.errors import ValidationError
from beds.services.beds import sync_ward_capacity


class Command(BaseCommand):
    help = ("Reconcile beds per ward with a target count, e.g. "
            "`sync_bed_capacity ICU=10 \"General Ward\"=40` or `--file capacity.json`.")

    def add_arguments(self, parser):
        parser.add_argument("targets", nargs="*", help="WARD=COUNT pairs")
        parser.add_argument("--file", help="JSON object mapping ward to bed count")

    def _parse(self, options) -> dict:
        targets = {}
        if options["file"]:
            with open(options["file"], encoding="utf-8") as fh:
                targets.update(json.load(fh))
        for item in options["targets"]:
            ward, sep, count = item.rpartition("=")
            if not sep or not ward:
                raise CommandError(f"Expected WARD=COUNT, got {item!r}")
            try:
                targets[ward] = int(count)
            except ValueError:
                raise CommandError(f"Bed count for {ward!r} must be an integer") from None
        if not targets:
            raise CommandError("No capacity targets given")
        return targets

    def handle(self, *args, **options):
        try:
            report = sync_ward_capacity(self._parse(options))
        except ValidationError as e:
            raise CommandError(e.message) from e
        for ward, row in report.items():
            line = f"{ward}: {row['total']}/{row['target']} beds (+{row['created']} -{row['removed']})"
            if row["shortfall"]:
                self.stdout.write(self.style.WARNING(f"{line}; {row['shortfall']} in use, not removed"))
            else:
                self.stdout.write(self.style.SUCCESS(line))
