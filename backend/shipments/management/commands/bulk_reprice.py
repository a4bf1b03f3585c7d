from datetime import datetime, time

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from pricing.services.exceptions import PricingError
from shipments.services.reprice import bulk_reprice


def _parse_since(value):
    if not value:
        return None
    try:
        day = datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise CommandError(f"--since must be YYYY-MM-DD, got {value!r}")
    return timezone.make_aware(datetime.combine(day, time.min))


class Command(BaseCommand):
    help = "Reprice shipments flagged needs_reprice (dry run unless --apply)"

    def add_arguments(self, parser):
        parser.add_argument("--apply", action="store_true", help="Write the new charges (default is a dry run)")
        parser.add_argument("--limit", type=int, default=None, help="Max shipments to process")
        parser.add_argument("--since", default=None, help="Only shipments created on or after YYYY-MM-DD")
        parser.add_argument("--pricing-version", default=None, help="Pin a configuration by id or name")

    def handle(self, *args, **options):
        since = _parse_since(options["since"])
        try:
            report = bulk_reprice(
                limit=options["limit"],
                since=since,
                version=options["pricing_version"],
                apply=options["apply"],
            )
        except PricingError as e:
            raise CommandError(f"{e.code}: {e.message}")

        if not report.applied:
            self.stdout.write(self.style.WARNING(f"Dry run: {report.matched} shipment(s) would be repriced"))
            return
        for line in report.failures:
            self.stdout.write(self.style.WARNING(f"  failed {line}"))
        self.stdout.write(
            self.style.SUCCESS(f"Repriced {report.repriced} of {report.matched} shipment(s), {report.failed} failed")
        )
