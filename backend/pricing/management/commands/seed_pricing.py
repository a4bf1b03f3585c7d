import json
from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from pricing.models import PricingConfiguration
from pricing.services.configuration import activate_configuration, create_configuration
from pricing.services.exceptions import PricingError

DEFAULT_FIXTURE = Path(__file__).resolve().parents[2] / "fixtures" / "default_pricing.json"


class Command(BaseCommand):
    help = "Load a pricing configuration from JSON (validated like an admin create)"

    def add_arguments(self, parser):
        parser.add_argument("--file", default=str(DEFAULT_FIXTURE), help="Path to the configuration JSON")
        parser.add_argument("--activate", action="store_true", help="Make the loaded configuration active")

    def handle(self, *args, **options):
        path = Path(options["file"])
        if not path.exists():
            raise CommandError(f"Pricing file not found: {path}")
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise CommandError(f"Invalid JSON in {path}: {e}")

        existing = PricingConfiguration.objects.filter(name=payload.get("name")).first()
        try:
            if existing:
                self.stdout.write(self.style.WARNING(f"Pricing '{existing.name}' already exists (id={existing.pk})"))
                config = existing
                if options["activate"]:
                    config = activate_configuration(config.pk)
            else:
                config = create_configuration(payload, activate=options["activate"])
        except PricingError as e:
            raise CommandError(f"{e.code}: {e.message} {e.extra or ''}".strip())

        state = "active" if config.active else "inactive"
        self.stdout.write(self.style.SUCCESS(f"Pricing '{config.name}' ready (id={config.pk}, {state})"))
