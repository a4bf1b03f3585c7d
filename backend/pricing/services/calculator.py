from __future__ import annotations

from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from core.utils import ZERO, d, q2

from ..dataclasses import (
    DEFAULT_SERVICE_TYPE,
    ChargeBreakdown,
    OtherCharge,
    ParcelSpec,
    PricingInput,
    PricingRates,
    Quote,
    ShipmentCharges,
    WeightResult,
)
from .exceptions import PricingMisconfigured, PricingUnavailable
from .weights import resolve_weights

MODE_WEIGHT = "WEIGHT"
MODE_VOLUME = "VOLUME"
HUNDRED = Decimal("100")
ONE = Decimal("1")
DEFAULT_CHARGE_LABEL = "Other"


def _zone_or_default(rates: PricingRates, zone, attr: str) -> Optional[Decimal]:
    if zone is not None:
        value = getattr(zone, attr)
        if value is not None:
            return value
    return getattr(rates, attr)


def _service_key(service_type: Optional[str]) -> str:
    return (service_type or DEFAULT_SERVICE_TYPE).strip().upper() or DEFAULT_SERVICE_TYPE


def _itemise(*groups: Iterable[OtherCharge]) -> List[OtherCharge]:
    """Shipment and configuration extras, rounded to cents; non-positive items are dropped."""
    items = []
    for group in groups:
        for item in group or ():
            amount = q2(d(item.amount or ZERO))
            if amount > 0:
                items.append(OtherCharge((item.label or "").strip() or DEFAULT_CHARGE_LABEL, amount))
    return items


# --------------------- Charging strategies ---------------------

def _weight_subtotal(inputs: PricingInput, rates: PricingRates, zone, bd: ChargeBreakdown) -> Decimal:
    per_kg = _zone_or_default(rates, zone, "per_kg_rate")
    if per_kg is None:
        raise PricingMisconfigured(
            f"Pricing '{rates.label}' has no per-kg rate for weight mode", pricing_id=rates.id
        )
    per_piece = _zone_or_default(rates, zone, "per_piece_rate")

    bd.base_from_weight = q2(d(inputs.chargeable_weight_kg) * per_kg)
    bd.base_from_pieces = q2(Decimal(int(inputs.pieces or 0)) * per_piece) if per_piece is not None else ZERO
    bd.base_fee = q2(_zone_or_default(rates, zone, "base_fee") or ZERO)
    return bd.base_from_weight + bd.base_from_pieces + bd.base_fee


def _volume_subtotal(inputs: PricingInput, rates: PricingRates, zone, bd: ChargeBreakdown) -> Decimal:
    dims = inputs.dimensions
    if dims is not None and rates.price_per_cubic_meter is not None:
        bd.volume_charge = q2(dims.volume_m3() * rates.price_per_cubic_meter)
    elif dims is not None and rates.price_per_cubic_cm is not None:
        bd.volume_charge = q2(dims.volume_cm3() * rates.price_per_cubic_cm)
    else:
        bd.volume_charge = ZERO
    bd.base_fee = q2(_zone_or_default(rates, zone, "base_fee") or ZERO)
    return bd.volume_charge + bd.base_fee


# --------------------- Core engine functions ---------------------

def compute_totals(inputs: PricingInput, rates: Optional[PricingRates]) -> Quote:
    """
    Price one parcel against a frozen pricing configuration.

    Returns the pre-tax grand total with an itemised breakdown. Every
    intermediate money value is rounded to cents before it is summed.
    Raises PricingUnavailable when no configuration is given.
    """
    if rates is None:
        raise PricingUnavailable()

    service_type = _service_key(inputs.service_type)
    zone = rates.zone(inputs.zone_name)
    bd = ChargeBreakdown(
        mode=rates.mode,
        service_type=service_type,
        zone_name=zone.name if zone else None,
    )

    if rates.mode == MODE_VOLUME:
        raw = _volume_subtotal(inputs, rates, zone, bd)
    elif rates.mode == MODE_WEIGHT:
        raw = _weight_subtotal(inputs, rates, zone, bd)
    else:
        raise PricingMisconfigured(f"Unsupported pricing mode {rates.mode!r}", pricing_id=rates.id)

    min_charge = _zone_or_default(rates, zone, "min_charge")
    bd.min_charge = min_charge
    if min_charge is not None and min_charge > raw:
        bd.subtotal = q2(min_charge)
        bd.min_charge_applied = True
    else:
        bd.subtotal = q2(raw)

    multiplier = rates.service_multipliers.get(service_type, ONE)
    bd.service_multiplier = multiplier
    bd.service_amount = q2(bd.subtotal * (multiplier - ONE))
    bd.after_service = q2(bd.subtotal * multiplier)

    bd.fuel_surcharge_percent = rates.fuel_surcharge_percent
    bd.fuel_surcharge = q2(bd.after_service * rates.fuel_surcharge_percent / HUNDRED)
    bd.other_fixed_fees = q2(rates.other_fixed_fees)

    if rates.is_remote(inputs.pickup_province) or rates.is_remote(inputs.delivery_province):
        bd.remote_surcharge = q2(rates.remote_area_fee)
    bd.other_charges = tuple(_itemise(inputs.other_charges, rates.other_charges))
    bd.other_charges_total = q2(sum((item.amount for item in bd.other_charges), ZERO))
    bd.over_box_limit = inputs.over_box_limit

    cod_amount = d(inputs.cod_amount or ZERO)
    if inputs.is_cod and cod_amount > 0:
        bd.cod_fee = q2(max(rates.cod_fee_min, cod_amount * rates.cod_fee_percent / HUNDRED))

    grand_total = q2(
        bd.after_service
        + bd.fuel_surcharge
        + bd.other_fixed_fees
        + bd.remote_surcharge
        + bd.other_charges_total
        + bd.cod_fee
    )

    return Quote(
        chargeable_weight_kg=d(inputs.chargeable_weight_kg),
        breakdown=bd,
        grand_total=grand_total,
        currency=rates.currency,
        tax_percent=rates.tax_percent,
        pricing_id=rates.id,
        pricing_label=rates.label,
    )


def apply_tax(quote: Quote) -> Decimal:
    """Flat post-charge tax on the pre-tax grand total."""
    return q2(quote.grand_total * d(quote.tax_percent or ZERO) / HUNDRED)


def to_shipment_charges(quote: Quote) -> ShipmentCharges:
    bd = quote.breakdown
    tax = apply_tax(quote)
    return ShipmentCharges(
        base_charge=bd.subtotal,
        service_charge=bd.service_amount,
        fuel_surcharge=bd.fuel_surcharge,
        remote_surcharge=bd.remote_surcharge,
        other_fees=q2(bd.other_fixed_fees + bd.other_charges_total + bd.cod_fee),
        cod_fee=bd.cod_fee,
        charges_total=quote.grand_total,
        tax=tax,
        grand_total=q2(quote.grand_total + tax),
        currency=quote.currency,
    )


def pricing_input_for(spec: ParcelSpec, weights: WeightResult) -> PricingInput:
    return PricingInput(
        chargeable_weight_kg=weights.chargeable_weight_kg,
        pieces=spec.pieces,
        service_type=spec.service_type,
        zone_name=spec.zone_name,
        is_cod=spec.is_cod,
        cod_amount=spec.cod_amount,
        dimensions=weights.dimensions,
        pickup_province=spec.pickup_province,
        delivery_province=spec.delivery_province,
        other_charges=tuple(spec.other_charges or ()),
        over_box_limit=weights.over_box_limit,
    )


def price_parcel(spec: ParcelSpec, rates: Optional[PricingRates]) -> Tuple[WeightResult, Quote]:
    """Weight engine followed by the calculator, using the configuration's divisor."""
    if rates is None:
        raise PricingUnavailable()
    weights = resolve_weights(spec.box, spec.weight_kg, rates.volumetric_divisor, spec.dimensions)
    return weights, compute_totals(pricing_input_for(spec, weights), rates)
