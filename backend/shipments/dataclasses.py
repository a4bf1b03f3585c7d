from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Tuple

from pricing.dataclasses import BoxSelection, Dimensions, OtherCharge, ParcelSpec, Quote, ShipmentCharges, WeightResult


@dataclass
class ShipmentIntake:
    parcel: ParcelSpec
    sender_id: Optional[int] = None
    receiver_name: str = ""
    receiver_phone: str = ""
    pickup_address: str = ""
    delivery_address: str = ""
    payment_mode: str = "PICKUP"
    payment_method: str = "CASH"


# Fields left as None are not touched by the update.
@dataclass
class ChargeableUpdate:
    weight_kg: Optional[Decimal] = None
    pieces: Optional[int] = None
    box: Optional[BoxSelection] = None
    dimensions: Optional[Dimensions] = None
    service_type: Optional[str] = None
    zone_name: Optional[str] = None
    is_cod: Optional[bool] = None
    cod_amount: Optional[Decimal] = None
    pickup_province: Optional[str] = None
    delivery_province: Optional[str] = None
    other_charges: Optional[Tuple[OtherCharge, ...]] = None

    def changed_fields(self) -> List[str]:
        return [name for name in self.__dataclass_fields__ if getattr(self, name) is not None]


@dataclass
class RepricePreview:
    shipment_id: int
    weights: WeightResult
    quote: Quote
    charges: ShipmentCharges
    current_grand_total: Decimal


@dataclass
class BulkRepriceReport:
    matched: int = 0
    repriced: int = 0
    failed: int = 0
    applied: bool = False
    failures: List[str] = field(default_factory=list)
