from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Optional

from core.utils import ZERO, q4

from ..dataclasses import BOX_KIND_PRESET, BoxSelection, Dimensions, WeightResult
from .boxes import get_preset, resolve_box
from .exceptions import InvalidWeight


def volumetric_weight(dimensions: Optional[Dimensions], divisor) -> Decimal:
    """(L x W x H) / divisor to 4dp; zero when dimensions or divisor are unavailable."""
    if dimensions is None or not divisor:
        return ZERO
    divisor = Decimal(str(divisor))
    if divisor <= 0:
        return ZERO
    volume = dimensions.volume_cm3()
    if volume <= 0:
        return ZERO
    return q4(volume / divisor)


def _declared(weight) -> Decimal:
    if weight is None or weight == "":
        return ZERO
    try:
        value = Decimal(str(weight))
    except (InvalidOperation, ValueError):
        raise InvalidWeight(f"Declared weight {weight!r} is not a number")
    if not value.is_finite() or value < 0:
        raise InvalidWeight(f"Declared weight {weight} must be non-negative")
    return value


def resolve_weights(
    box: Optional[BoxSelection],
    declared_weight_kg,
    volumetric_divisor,
    declared_dimensions: Optional[Dimensions] = None,
) -> WeightResult:
    """Resolve the box and derive volumetric and chargeable weight."""
    declared = _declared(declared_weight_kg)
    dimensions = resolve_box(box, fallback=declared_dimensions)
    volumetric = volumetric_weight(dimensions, volumetric_divisor)
    chargeable = q4(max(declared, volumetric))

    over_limit = False
    if box is not None and (box.kind or "").upper() == BOX_KIND_PRESET:
        over_limit = declared > get_preset(box.code).max_weight_kg

    return WeightResult(
        dimensions=dimensions,
        volumetric_weight_kg=volumetric,
        chargeable_weight_kg=chargeable,
        volumetric_divisor=int(volumetric_divisor or 0),
        box=box,
        over_box_limit=over_limit,
    )
