from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from payments.services.summary import PAYMENT_STATUS_CHOICES, PENDING, PaymentSummary
from pricing.dataclasses import (
    BOX_KIND_CUSTOM,
    BOX_KIND_PRESET,
    DEFAULT_SERVICE_TYPE,
    BoxSelection,
    Dimensions,
    OtherCharge,
    ParcelSpec,
    Quote,
    WeightResult,
)
from pricing.services.calculator import to_shipment_charges

from . import lifecycle
from .exceptions import ShipmentNotFound


class ShipmentQuerySet(models.QuerySet):
    def get_or_raise(self, shipment_id):
        shipment = self.filter(pk=shipment_id).first()
        if shipment is None:
            raise ShipmentNotFound(f"Shipment {shipment_id} not found", shipment_id=shipment_id)
        return shipment

    def lock(self, shipment_id):
        """Row-lock a shipment for the rest of the surrounding transaction."""
        return self.select_for_update().get_or_raise(shipment_id)

    def awaiting_reprice(self):
        return self.filter(needs_reprice=True).exclude(status=lifecycle.CANCELLED)


class Shipment(models.Model):
    BOX_KIND_CHOICES = [(BOX_KIND_PRESET, "Preset box"), (BOX_KIND_CUSTOM, "Custom box")]

    PAYMENT_MODE_PICKUP = "PICKUP"
    PAYMENT_MODE_DELIVERY = "DELIVERY"
    PAYMENT_MODE_CHOICES = [(PAYMENT_MODE_PICKUP, "Pay at pickup"), (PAYMENT_MODE_DELIVERY, "Pay on delivery")]
    PAYMENT_METHOD_CASH = "CASH"
    PAYMENT_METHOD_ONLINE = "ONLINE"
    PAYMENT_METHOD_CHOICES = [(PAYMENT_METHOD_CASH, "Cash"), (PAYMENT_METHOD_ONLINE, "Online")]

    tracking_id = models.CharField(max_length=32, unique=True)
    sender = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="shipments")
    pickup_agent = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="pickup_shipments"
    )
    delivery_agent = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="delivery_shipments"
    )
    status = models.CharField(max_length=24, choices=lifecycle.STATUS_CHOICES, default=lifecycle.CREATED, db_index=True)

    receiver_name = models.CharField(max_length=120, blank=True, default="")
    receiver_phone = models.CharField(max_length=32, blank=True, default="")
    pickup_address = models.TextField(blank=True, default="")
    delivery_address = models.TextField(blank=True, default="")
    pickup_province = models.CharField(max_length=80, blank=True, default="")
    delivery_province = models.CharField(max_length=80, blank=True, default="")

    # chargeable inputs
    service_type = models.CharField(max_length=30, default=DEFAULT_SERVICE_TYPE)
    zone_name = models.CharField(max_length=60, blank=True, default="")
    pieces = models.PositiveIntegerField(default=1)
    box_kind = models.CharField(max_length=10, choices=BOX_KIND_CHOICES, blank=True, default="")
    box_code = models.PositiveSmallIntegerField(null=True, blank=True)
    length_cm = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    width_cm = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    height_cm = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    weight_kg = models.DecimalField(max_digits=10, decimal_places=3, default=Decimal("0"))
    is_cod = models.BooleanField(default=False)
    cod_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    other_charges = models.JSONField(default=list, blank=True, help_text="Itemised extras: [{label, amount}]")

    # derived by the weight engine
    volumetric_divisor = models.PositiveIntegerField(default=5000)
    volumetric_weight_kg = models.DecimalField(max_digits=12, decimal_places=4, default=Decimal("0"))
    chargeable_weight_kg = models.DecimalField(max_digits=12, decimal_places=4, default=Decimal("0"))

    # derived by the calculator
    currency = models.CharField(max_length=6, default="AFN")
    base_charge = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    service_charge = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    fuel_surcharge = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    remote_surcharge = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    other_fees = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    cod_fee = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    charges_total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    tax = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    grand_total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    price_breakdown = models.JSONField(default=dict, blank=True)
    pricing_version = models.ForeignKey(
        "pricing.PricingConfiguration", null=True, blank=True, on_delete=models.PROTECT, related_name="shipments"
    )
    needs_reprice = models.BooleanField(default=False, db_index=True)
    last_priced_at = models.DateTimeField(null=True, blank=True)

    cancellation_reason = models.CharField(max_length=240, blank=True, default="")
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="+"
    )

    # payment preference and stored summary (recomputed from the ledger on every mutation)
    payment_mode = models.CharField(max_length=10, choices=PAYMENT_MODE_CHOICES, default=PAYMENT_MODE_PICKUP)
    payment_method = models.CharField(max_length=10, choices=PAYMENT_METHOD_CHOICES, default=PAYMENT_METHOD_CASH)
    total_due = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    total_paid = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    balance = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    payment_status = models.CharField(max_length=10, choices=PAYMENT_STATUS_CHOICES, default=PENDING)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ShipmentQuerySet.as_manager()

    class Meta:
        db_table = "shipments"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["sender", "-created_at"], name="shipment_sender_created_idx"),
            models.Index(fields=["needs_reprice", "status"], name="shipment_reprice_status_idx"),
        ]

    def __str__(self):
        return f"{self.tracking_id} [{self.status}]"

    @property
    def is_terminal(self) -> bool:
        return lifecycle.is_terminal(self.status)

    @property
    def is_cancelled(self) -> bool:
        return self.status == lifecycle.CANCELLED

    def box_selection(self):
        if self.box_kind == BOX_KIND_PRESET:
            return BoxSelection.preset(self.box_code)
        if self.box_kind == BOX_KIND_CUSTOM:
            return BoxSelection.custom(self.length_cm, self.width_cm, self.height_cm)
        return None

    def declared_dimensions(self):
        if self.length_cm and self.width_cm and self.height_cm:
            return Dimensions(self.length_cm, self.width_cm, self.height_cm)
        return None

    def parcel_spec(self) -> ParcelSpec:
        return ParcelSpec(
            weight_kg=self.weight_kg,
            pieces=self.pieces,
            box=self.box_selection(),
            dimensions=self.declared_dimensions(),
            service_type=self.service_type,
            zone_name=self.zone_name or None,
            is_cod=self.is_cod,
            cod_amount=self.cod_amount,
            pickup_province=self.pickup_province or None,
            delivery_province=self.delivery_province or None,
            other_charges=OtherCharge.from_dicts(self.other_charges),
        )

    def apply_weights(self, weights: WeightResult):
        if weights.dimensions is not None:
            self.length_cm = weights.dimensions.length_cm
            self.width_cm = weights.dimensions.width_cm
            self.height_cm = weights.dimensions.height_cm
        self.volumetric_divisor = weights.volumetric_divisor
        self.volumetric_weight_kg = weights.volumetric_weight_kg
        self.chargeable_weight_kg = weights.chargeable_weight_kg

    def apply_quote(self, quote: Quote, pricing_version):
        """Copy a quote onto the charge columns; the caller saves."""
        charges = to_shipment_charges(quote)
        self.currency = charges.currency
        self.base_charge = charges.base_charge
        self.service_charge = charges.service_charge
        self.fuel_surcharge = charges.fuel_surcharge
        self.remote_surcharge = charges.remote_surcharge
        self.other_fees = charges.other_fees
        self.cod_fee = charges.cod_fee
        self.charges_total = charges.charges_total
        self.tax = charges.tax
        self.grand_total = charges.grand_total
        self.total_due = charges.grand_total
        self.price_breakdown = {
            **quote.breakdown.as_dict(),
            "tax_percent": str(quote.tax_percent),
            "tax": str(charges.tax),
            "pricing_label": quote.pricing_label,
        }
        self.pricing_version = pricing_version
        self.needs_reprice = False
        self.last_priced_at = timezone.now()

    def apply_summary(self, summary: PaymentSummary):
        self.total_due = summary.total_due
        self.total_paid = summary.total_paid
        self.balance = summary.balance
        self.payment_status = summary.status

    def add_log(self, log_type, message, actor=None, **meta):
        return ShipmentLog.objects.create(
            shipment=self,
            type=log_type,
            message=message[:500],
            actor_id=getattr(actor, "id", None),
            meta=meta,
        )


class ShipmentLog(models.Model):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    STATUS = "STATUS"
    LOCATION = "LOCATION"
    ASSIGN = "ASSIGN"
    PRICING = "PRICING"
    PAYMENT = "PAYMENT"
    TYPE_CHOICES = [(t, t.title()) for t in (INFO, WARN, ERROR, STATUS, LOCATION, ASSIGN, PRICING, PAYMENT)]

    shipment = models.ForeignKey(Shipment, on_delete=models.CASCADE, related_name="logs")
    type = models.CharField(max_length=10, choices=TYPE_CHOICES, default=INFO)
    message = models.CharField(max_length=500)
    actor = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    meta = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "shipment_logs"
        ordering = ["created_at", "id"]

    def __str__(self):
        return f"{self.shipment_id} {self.type}: {self.message}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Shipment log entries are append-only and cannot be modified.")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Shipment log entries cannot be deleted.")
