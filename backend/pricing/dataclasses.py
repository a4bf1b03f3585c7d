from __future__ import annotations

from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, Optional, Tuple

from core.utils import ZERO

BOX_KIND_PRESET = "PRESET"
BOX_KIND_CUSTOM = "CUSTOM"

DEFAULT_SERVICE_TYPE = "EXPRESS"

CM3_PER_M3 = Decimal(1_000_000)


@dataclass(frozen=True)
class Dimensions:
    length_cm: Decimal
    width_cm: Decimal
    height_cm: Decimal

    def volume_cm3(self) -> Decimal:
        return self.length_cm * self.width_cm * self.height_cm

    def volume_m3(self) -> Decimal:
        return self.volume_cm3() / CM3_PER_M3


@dataclass(frozen=True)
class BoxPreset:
    code: int
    length_cm: Decimal
    width_cm: Decimal
    height_cm: Decimal
    max_weight_kg: Decimal

    def dimensions(self) -> Dimensions:
        return Dimensions(self.length_cm, self.width_cm, self.height_cm)


@dataclass
class BoxSelection:
    """Either a numbered preset box or caller supplied dimensions."""

    kind: str
    code: Optional[int] = None
    length_cm: Optional[Decimal] = None
    width_cm: Optional[Decimal] = None
    height_cm: Optional[Decimal] = None

    @classmethod
    def preset(cls, code) -> "BoxSelection":
        return cls(kind=BOX_KIND_PRESET, code=code)

    @classmethod
    def custom(cls, length_cm, width_cm, height_cm) -> "BoxSelection":
        return cls(kind=BOX_KIND_CUSTOM, length_cm=length_cm, width_cm=width_cm, height_cm=height_cm)


@dataclass
class WeightResult:
    dimensions: Optional[Dimensions]
    volumetric_weight_kg: Decimal
    chargeable_weight_kg: Decimal
    volumetric_divisor: int
    box: Optional[BoxSelection] = None
    over_box_limit: bool = False


@dataclass(frozen=True)
class OtherCharge:
    """One itemised extra charge, e.g. packaging or insurance."""

    label: str
    amount: Decimal

    def as_dict(self) -> Dict:
        return {"label": self.label, "amount": str(self.amount)}

    @classmethod
    def from_dicts(cls, items: Optional[Iterable[Dict]]) -> Tuple["OtherCharge", ...]:
        return tuple(cls(str(item.get("label") or ""), Decimal(str(item.get("amount") or 0))) for item in items or ())


@dataclass
class ParcelSpec:
    """Raw chargeable inputs for one shipment, before weights are resolved."""

    weight_kg: Decimal = ZERO
    pieces: int = 1
    box: Optional[BoxSelection] = None
    dimensions: Optional[Dimensions] = None
    service_type: str = DEFAULT_SERVICE_TYPE
    zone_name: Optional[str] = None
    is_cod: bool = False
    cod_amount: Decimal = ZERO
    pickup_province: Optional[str] = None
    delivery_province: Optional[str] = None
    other_charges: Tuple[OtherCharge, ...] = ()


@dataclass
class PricingInput:
    chargeable_weight_kg: Decimal
    pieces: int = 1
    service_type: str = DEFAULT_SERVICE_TYPE
    zone_name: Optional[str] = None
    is_cod: bool = False
    cod_amount: Decimal = ZERO
    dimensions: Optional[Dimensions] = None
    pickup_province: Optional[str] = None
    delivery_province: Optional[str] = None
    other_charges: Tuple[OtherCharge, ...] = ()
    over_box_limit: bool = False


@dataclass(frozen=True)
class ZoneRates:
    name: str
    base_fee: Optional[Decimal] = None
    per_kg_rate: Optional[Decimal] = None
    per_piece_rate: Optional[Decimal] = None
    min_charge: Optional[Decimal] = None


@dataclass
class PricingRates:
    """Detached copy of a pricing configuration; the calculator never touches the ORM."""

    id: Optional[int]
    label: str
    mode: str
    currency: str
    base_fee: Decimal = ZERO
    per_kg_rate: Optional[Decimal] = None
    per_piece_rate: Optional[Decimal] = None
    price_per_cubic_cm: Optional[Decimal] = None
    price_per_cubic_meter: Optional[Decimal] = None
    min_charge: Optional[Decimal] = None
    tax_percent: Decimal = ZERO
    fuel_surcharge_percent: Decimal = ZERO
    other_fixed_fees: Decimal = ZERO
    cod_fee_percent: Decimal = ZERO
    cod_fee_min: Decimal = ZERO
    volumetric_divisor: int = 5000
    remote_area_fee: Decimal = ZERO
    remote_provinces: Tuple[str, ...] = ()
    other_charges: Tuple[OtherCharge, ...] = ()
    zones: Dict[str, ZoneRates] = field(default_factory=dict)
    service_multipliers: Dict[str, Decimal] = field(default_factory=dict)

    def zone(self, name: Optional[str]) -> Optional[ZoneRates]:
        if not name:
            return None
        return self.zones.get(name.strip().upper())

    def is_remote(self, province: Optional[str]) -> bool:
        if not province or not province.strip():
            return False
        return province.strip().lower() in {p.strip().lower() for p in self.remote_provinces}


@dataclass
class ChargeBreakdown:
    mode: str
    service_type: str
    zone_name: Optional[str] = None
    base_from_weight: Decimal = ZERO
    base_from_pieces: Decimal = ZERO
    volume_charge: Decimal = ZERO
    base_fee: Decimal = ZERO
    min_charge: Optional[Decimal] = None
    min_charge_applied: bool = False
    subtotal: Decimal = ZERO
    service_multiplier: Decimal = Decimal("1")
    service_amount: Decimal = ZERO
    after_service: Decimal = ZERO
    fuel_surcharge_percent: Decimal = ZERO
    fuel_surcharge: Decimal = ZERO
    other_fixed_fees: Decimal = ZERO
    remote_surcharge: Decimal = ZERO
    other_charges: Tuple[OtherCharge, ...] = ()
    other_charges_total: Decimal = ZERO
    cod_fee: Decimal = ZERO
    over_box_limit: bool = False

    def as_dict(self) -> Dict:
        out = {k: (str(v) if isinstance(v, Decimal) else v) for k, v in asdict(self).items()}
        out["other_charges"] = [item.as_dict() for item in self.other_charges]
        return out


@dataclass
class Quote:
    chargeable_weight_kg: Decimal
    breakdown: ChargeBreakdown
    grand_total: Decimal
    currency: str
    tax_percent: Decimal
    pricing_id: Optional[int]
    pricing_label: str


@dataclass
class ShipmentCharges:
    """Quote mapped onto the stored charge columns of a shipment."""

    base_charge: Decimal
    service_charge: Decimal
    fuel_surcharge: Decimal
    remote_surcharge: Decimal
    other_fees: Decimal
    cod_fee: Decimal
    charges_total: Decimal
    tax: Decimal
    grand_total: Decimal
    currency: str
