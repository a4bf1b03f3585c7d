from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q

from .dataclasses import OtherCharge, PricingRates, ZoneRates

NON_NEGATIVE = [MinValueValidator(Decimal("0"))]
PERCENT = [MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))]


class PricingConfigurationQuerySet(models.QuerySet):
    def usable(self):
        return self.filter(archived=False)

    def find_active(self) -> Optional["PricingConfiguration"]:
        """Return the single active configuration, or None when nothing is active."""
        return (
            self.filter(active=True, archived=False)
            .prefetch_related("zones", "service_multipliers", "other_charges")
            .order_by("-updated_at")
            .first()
        )

    def get_version(self, ref) -> Optional["PricingConfiguration"]:
        """Look a configuration up by primary key or by its label."""
        if ref is None or ref == "":
            return None
        qs = self.prefetch_related("zones", "service_multipliers", "other_charges")
        text = str(ref).strip()
        if text.isdigit():
            found = qs.filter(pk=int(text)).first()
            if found:
                return found
        return qs.filter(name=text).first()


class PricingConfiguration(models.Model):
    MODE_WEIGHT = "WEIGHT"
    MODE_VOLUME = "VOLUME"
    MODE_CHOICES = [(MODE_WEIGHT, "By weight and pieces"), (MODE_VOLUME, "By volume")]

    name = models.CharField(max_length=120, unique=True, help_text="Version tag, e.g. 2025-Q3")
    mode = models.CharField(max_length=10, choices=MODE_CHOICES, default=MODE_WEIGHT)
    currency = models.CharField(max_length=6, default="AFN")

    base_fee = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"), validators=NON_NEGATIVE)
    # Rates left NULL are "not configured", which is different from a deliberate 0.
    per_kg_rate = models.DecimalField(max_digits=12, decimal_places=4, blank=True, null=True, validators=NON_NEGATIVE)
    per_piece_rate = models.DecimalField(max_digits=12, decimal_places=4, blank=True, null=True, validators=NON_NEGATIVE)
    price_per_cubic_cm = models.DecimalField(max_digits=14, decimal_places=6, blank=True, null=True, validators=NON_NEGATIVE)
    price_per_cubic_meter = models.DecimalField(max_digits=12, decimal_places=4, blank=True, null=True, validators=NON_NEGATIVE)
    min_charge = models.DecimalField(max_digits=12, decimal_places=2, blank=True, null=True, validators=NON_NEGATIVE)

    tax_percent = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0"), validators=PERCENT)
    fuel_surcharge_percent = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0"), validators=PERCENT)
    other_fixed_fees = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"), validators=NON_NEGATIVE)
    cod_fee_percent = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0"), validators=PERCENT)
    cod_fee_min = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"), validators=NON_NEGATIVE)

    volumetric_divisor = models.PositiveIntegerField(default=5000, validators=[MinValueValidator(1)], help_text="cm3 per kg")

    remote_area_fee = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"), validators=NON_NEGATIVE)
    remote_provinces = models.JSONField(default=list, blank=True, help_text="Provinces that attract the remote area fee")

    active = models.BooleanField(default=False, db_index=True)
    archived = models.BooleanField(default=False, db_index=True)

    notes = models.TextField(blank=True, default="")
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = PricingConfigurationQuerySet.as_manager()

    class Meta:
        db_table = "pricing_configurations"
        ordering = ["-active", "-updated_at"]
        constraints = [
            models.UniqueConstraint(fields=["active"], condition=Q(active=True), name="pricing_single_active"),
        ]

    def __str__(self):
        flag = " [active]" if self.active else (" [archived]" if self.archived else "")
        return f"{self.name} ({self.mode}){flag}"

    def to_rates(self) -> PricingRates:
        """Freeze this configuration (with zones and multipliers) for the calculator."""
        zones = {
            z.name.strip().upper(): ZoneRates(
                name=z.name,
                base_fee=z.base_fee,
                per_kg_rate=z.per_kg_rate,
                per_piece_rate=z.per_piece_rate,
                min_charge=z.min_charge,
            )
            for z in self.zones.all()
        }
        multipliers = {m.service_type.strip().upper(): m.multiplier for m in self.service_multipliers.all()}
        extras = tuple(OtherCharge(c.label, c.amount) for c in self.other_charges.all())
        return PricingRates(
            id=self.pk,
            label=self.name,
            mode=self.mode,
            currency=self.currency,
            base_fee=self.base_fee,
            per_kg_rate=self.per_kg_rate,
            per_piece_rate=self.per_piece_rate,
            price_per_cubic_cm=self.price_per_cubic_cm,
            price_per_cubic_meter=self.price_per_cubic_meter,
            min_charge=self.min_charge,
            tax_percent=self.tax_percent,
            fuel_surcharge_percent=self.fuel_surcharge_percent,
            other_fixed_fees=self.other_fixed_fees,
            cod_fee_percent=self.cod_fee_percent,
            cod_fee_min=self.cod_fee_min,
            volumetric_divisor=self.volumetric_divisor,
            remote_area_fee=self.remote_area_fee,
            remote_provinces=tuple(str(p) for p in self.remote_provinces or ()),
            other_charges=extras,
            zones=zones,
            service_multipliers=multipliers,
        )


class PricingZone(models.Model):
    configuration = models.ForeignKey(PricingConfiguration, on_delete=models.CASCADE, related_name="zones")
    name = models.CharField(max_length=60)
    base_fee = models.DecimalField(max_digits=12, decimal_places=2, blank=True, null=True, validators=NON_NEGATIVE)
    per_kg_rate = models.DecimalField(max_digits=12, decimal_places=4, blank=True, null=True, validators=NON_NEGATIVE)
    per_piece_rate = models.DecimalField(max_digits=12, decimal_places=4, blank=True, null=True, validators=NON_NEGATIVE)
    min_charge = models.DecimalField(max_digits=12, decimal_places=2, blank=True, null=True, validators=NON_NEGATIVE)

    class Meta:
        db_table = "pricing_zones"
        unique_together = (("configuration", "name"),)
        ordering = ["configuration", "name"]

    def __str__(self):
        return f"{self.configuration.name} / {self.name}"


class ServiceMultiplier(models.Model):
    configuration = models.ForeignKey(PricingConfiguration, on_delete=models.CASCADE, related_name="service_multipliers")
    service_type = models.CharField(max_length=30, help_text="e.g. EXPRESS, STANDARD, SAME_DAY")
    multiplier = models.DecimalField(max_digits=6, decimal_places=3, default=Decimal("1"), validators=NON_NEGATIVE)

    class Meta:
        db_table = "pricing_service_multipliers"
        unique_together = (("configuration", "service_type"),)
        ordering = ["configuration", "service_type"]

    def __str__(self):
        return f"{self.configuration.name} / {self.service_type} x{self.multiplier}"


class PricingOtherCharge(models.Model):
    """Flat itemised extra added to every quote priced with the configuration."""

    configuration = models.ForeignKey(PricingConfiguration, on_delete=models.CASCADE, related_name="other_charges")
    label = models.CharField(max_length=80, default="Other")
    amount = models.DecimalField(max_digits=12, decimal_places=2, validators=NON_NEGATIVE)

    class Meta:
        db_table = "pricing_other_charges"
        ordering = ["configuration", "id"]

    def __str__(self):
        return f"{self.configuration.name} / {self.label} {self.amount}"
