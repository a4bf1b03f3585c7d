from django.core.management.base import BaseCommand

from invoices.services.dispatch import process_pending_dispatches


class Command(BaseCommand):
    help = "Render and deliver pending shipment invoices (email / WhatsApp)"

    def add_arguments(self, parser):
        parser.add_argument("--limit", type=int, default=50, help="Max outbox rows to process in this run")

    def handle(self, *args, **options):
        report = process_pending_dispatches(limit=options["limit"])
        summary = (
            f"Processed {report.processed}: {report.sent} sent, {report.skipped} skipped, "
            f"{report.retrying} will retry, {report.failed} failed"
        )
        if report.failed:
            self.stdout.write(self.style.WARNING(summary))
        else:
            self.stdout.write(self.style.SUCCESS(summary))
