from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional, Tuple

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from django.utils.crypto import get_random_string

from accounts.roles import Principal
from invoices.services.dispatch import enqueue_invoice
from payments.services.summary import compute_summary
from pricing.dataclasses import BOX_KIND_CUSTOM, BOX_KIND_PRESET, DEFAULT_SERVICE_TYPE, WeightResult
from pricing.models import PricingConfiguration
from pricing.services.boxes import get_preset
from pricing.services.calculator import compute_totals, pricing_input_for
from pricing.services.exceptions import PricingUnavailable
from pricing.services.weights import resolve_weights

from ..dataclasses import ChargeableUpdate, ShipmentIntake
from ..exceptions import InvalidShipmentInput, ShipmentDenied, ShipmentError
from ..models import Shipment, ShipmentLog
from .access import edit_denial

logger = logging.getLogger(__name__)

TRACKING_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
TRACKING_MAX_ATTEMPTS = 7


def generate_tracking_id(today=None) -> str:
    """PREFIX-YYYYMMDD-XXXXXXXX, retried a bounded number of times on collision."""
    day = (today or timezone.localdate()).strftime("%Y%m%d")
    prefix = getattr(settings, "COURIER_TRACKING_PREFIX", "REP")
    for _ in range(TRACKING_MAX_ATTEMPTS):
        candidate = f"{prefix}-{day}-{get_random_string(8, TRACKING_ALPHABET)}"
        if not Shipment.objects.filter(tracking_id=candidate).exists():
            return candidate
    raise ShipmentError(f"Could not allocate a unique tracking id after {TRACKING_MAX_ATTEMPTS} attempts")


def _check_counts(pieces, cod_amount) -> None:
    if pieces is not None:
        try:
            count = int(pieces)
        except (TypeError, ValueError):
            raise InvalidShipmentInput(f"Pieces must be a whole number, got {pieces!r}", field="pieces")
        if count < 1:
            raise InvalidShipmentInput("Pieces must be at least 1", field="pieces")
    if cod_amount is not None:
        try:
            amount = Decimal(str(cod_amount))
        except InvalidOperation:
            raise InvalidShipmentInput(f"COD amount must be a number, got {cod_amount!r}", field="cod_amount")
        if not amount.is_finite():
            raise InvalidShipmentInput(f"COD amount must be a number, got {cod_amount!r}", field="cod_amount")
        if amount < 0:
            raise InvalidShipmentInput("COD amount cannot be negative", field="cod_amount")


def _store_box(shipment: Shipment, box, dimensions) -> None:
    if box is not None:
        shipment.box_kind = box.kind.upper()
        shipment.box_code = box.code if shipment.box_kind == BOX_KIND_PRESET else None
        if shipment.box_kind == BOX_KIND_CUSTOM:
            shipment.length_cm, shipment.width_cm, shipment.height_cm = box.length_cm, box.width_cm, box.height_cm
    else:
        shipment.box_kind = ""
        shipment.box_code = None
        if dimensions is not None:
            shipment.length_cm = dimensions.length_cm
            shipment.width_cm = dimensions.width_cm
            shipment.height_cm = dimensions.height_cm


def _price(shipment: Shipment, config: Optional[PricingConfiguration]) -> Tuple[bool, WeightResult]:
    """Resolve weights and, when a configuration is usable, the charges. Returns (priced, weights)."""
    rates = config.to_rates() if config else None
    divisor = rates.volumetric_divisor if rates else settings.COURIER_DEFAULT_VOLUMETRIC_DIVISOR
    spec = shipment.parcel_spec()
    # input errors (bad box, bad weight) propagate before anything is saved
    weights = resolve_weights(spec.box, spec.weight_kg, divisor, spec.dimensions)
    shipment.apply_weights(weights)
    if rates is None:
        shipment.needs_reprice = True
        return False, weights

    try:
        quote = compute_totals(pricing_input_for(spec, weights), rates)
    except PricingUnavailable as exc:
        logger.warning("Shipment left unpriced: %s", exc.message)
        shipment.needs_reprice = True
        return False, weights
    shipment.apply_quote(quote, config)
    return True, weights


def _warn_over_limit(shipment: Shipment, weights: WeightResult, actor) -> None:
    if not weights.over_box_limit:
        return
    limit = get_preset(weights.box.code).max_weight_kg
    logger.warning(
        "Shipment %s: declared %s kg exceeds box %s limit of %s kg",
        shipment.tracking_id, shipment.weight_kg, weights.box.code, limit,
    )
    shipment.add_log(
        ShipmentLog.WARN,
        f"Declared weight {shipment.weight_kg} kg exceeds box {weights.box.code} limit of {limit} kg",
        actor=actor,
        box_code=weights.box.code,
        max_weight_kg=str(limit),
    )


def create_shipment(actor: Principal, intake: ShipmentIntake) -> Shipment:
    """
    Register a shipment, auto-pricing it against the active configuration.

    Without a usable active configuration the shipment is stored with
    needs_reprice set and zero charges.
    """
    if actor.is_elevated:
        sender_id = intake.sender_id or actor.id
    elif actor.is_agent:
        raise ShipmentDenied("Agents cannot register shipments")
    else:
        sender_id = actor.id
    if sender_id is None:
        raise ShipmentDenied("A sender is required")

    parcel = intake.parcel
    _check_counts(parcel.pieces, parcel.cod_amount)
    if intake.payment_mode not in {code for code, _ in Shipment.PAYMENT_MODE_CHOICES}:
        raise InvalidShipmentInput(f"Unknown payment mode {intake.payment_mode!r}", field="payment_mode")
    if intake.payment_method not in {code for code, _ in Shipment.PAYMENT_METHOD_CHOICES}:
        raise InvalidShipmentInput(f"Unknown payment method {intake.payment_method!r}", field="payment_method")
    shipment = Shipment(
        sender_id=sender_id,
        receiver_name=intake.receiver_name,
        receiver_phone=intake.receiver_phone,
        pickup_address=intake.pickup_address,
        delivery_address=intake.delivery_address,
        pickup_province=(parcel.pickup_province or "").strip(),
        delivery_province=(parcel.delivery_province or "").strip(),
        other_charges=[item.as_dict() for item in parcel.other_charges or ()],
        payment_mode=intake.payment_mode,
        payment_method=intake.payment_method,
        service_type=(parcel.service_type or "").strip().upper() or DEFAULT_SERVICE_TYPE,
        zone_name=(parcel.zone_name or "").strip(),
        pieces=parcel.pieces or 1,
        weight_kg=parcel.weight_kg or 0,
        is_cod=parcel.is_cod,
        cod_amount=parcel.cod_amount or 0,
        currency=settings.COURIER_DEFAULT_CURRENCY,
    )
    _store_box(shipment, parcel.box, parcel.dimensions)

    with transaction.atomic():
        config = PricingConfiguration.objects.find_active()
        priced, weights = _price(shipment, config)
        shipment.apply_summary(compute_summary(shipment.grand_total, []))
        shipment.tracking_id = generate_tracking_id()
        shipment.save()

        shipment.add_log(ShipmentLog.INFO, "Shipment created", actor=actor)
        _warn_over_limit(shipment, weights, actor)
        if priced:
            shipment.add_log(
                ShipmentLog.PRICING,
                f"Priced with {config.name}: grand total {shipment.grand_total} {shipment.currency}",
                actor=actor,
                pricing_id=config.pk,
                grand_total=str(shipment.grand_total),
            )
            enqueue_invoice(shipment, reason="CREATED")
        else:
            shipment.add_log(ShipmentLog.WARN, "No usable pricing configuration; reprice required", actor=actor)

    logger.info("Shipment %s created (priced=%s)", shipment.tracking_id, priced)
    return shipment


def update_chargeable_inputs(actor: Principal, shipment_id, update: ChargeableUpdate) -> Shipment:
    """Change chargeable inputs; charges are left for a reprice."""
    changed = update.changed_fields()
    _check_counts(update.pieces, update.cod_amount)
    with transaction.atomic():
        shipment = Shipment.objects.lock(shipment_id)
        denial = edit_denial(actor, shipment)
        if denial:
            raise ShipmentDenied(denial, shipment_id=shipment.pk)
        if not changed:
            return shipment

        if update.weight_kg is not None:
            shipment.weight_kg = update.weight_kg
        if update.pieces is not None:
            shipment.pieces = update.pieces
        if update.box is not None or update.dimensions is not None:
            _store_box(shipment, update.box, update.dimensions)
        if update.service_type is not None:
            shipment.service_type = update.service_type.strip().upper()
        if update.zone_name is not None:
            shipment.zone_name = update.zone_name.strip()
        if update.is_cod is not None:
            shipment.is_cod = update.is_cod
        if update.cod_amount is not None:
            shipment.cod_amount = update.cod_amount
        if update.pickup_province is not None:
            shipment.pickup_province = update.pickup_province.strip()
        if update.delivery_province is not None:
            shipment.delivery_province = update.delivery_province.strip()
        if update.other_charges is not None:
            shipment.other_charges = [item.as_dict() for item in update.other_charges]

        spec = shipment.parcel_spec()
        weights = resolve_weights(spec.box, spec.weight_kg, shipment.volumetric_divisor, spec.dimensions)
        shipment.apply_weights(weights)
        shipment.needs_reprice = True
        shipment.save()
        shipment.add_log(
            ShipmentLog.INFO,
            f"Chargeable inputs changed ({', '.join(changed)}); reprice required",
            actor=actor,
            fields=changed,
        )
        _warn_over_limit(shipment, weights, actor)
    return shipment
