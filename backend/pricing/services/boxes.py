from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Dict, Optional

from ..dataclasses import BOX_KIND_CUSTOM, BOX_KIND_PRESET, BoxPreset, BoxSelection, Dimensions
from .exceptions import InvalidBoxCode, InvalidDimensions

BOX_PRESETS: Dict[int, BoxPreset] = {
    3: BoxPreset(3, Decimal("34"), Decimal("33"), Decimal("16"), Decimal("3.5")),
    4: BoxPreset(4, Decimal("32"), Decimal("33"), Decimal("18"), Decimal("4.0")),
    5: BoxPreset(5, Decimal("34"), Decimal("34"), Decimal("32"), Decimal("8.0")),
    6: BoxPreset(6, Decimal("36"), Decimal("38"), Decimal("34"), Decimal("12.5")),
    7: BoxPreset(7, Decimal("38"), Decimal("40"), Decimal("48"), Decimal("15.5")),
    8: BoxPreset(8, Decimal("40"), Decimal("44"), Decimal("54"), Decimal("20.5")),
}


def get_preset(code) -> BoxPreset:
    try:
        key = int(str(code).strip())
    except (TypeError, ValueError):
        raise InvalidBoxCode(f"Box code {code!r} is not a number", box_code=code)
    preset = BOX_PRESETS.get(key)
    if preset is None:
        raise InvalidBoxCode(
            f"Unknown box code {key}; expected one of {sorted(BOX_PRESETS)}", box_code=key
        )
    return preset


def _positive(value, label: str) -> Decimal:
    if value is None or value == "":
        raise InvalidDimensions(f"{label} is required for a custom box", field=label)
    try:
        num = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidDimensions(f"{label} must be a number", field=label)
    if not num.is_finite() or num <= 0:
        raise InvalidDimensions(f"{label} must be greater than zero", field=label)
    return num


def dimensions_from(length_cm, width_cm, height_cm) -> Dimensions:
    return Dimensions(
        _positive(length_cm, "length_cm"),
        _positive(width_cm, "width_cm"),
        _positive(height_cm, "height_cm"),
    )


def resolve_box(selection: Optional[BoxSelection], fallback: Optional[Dimensions] = None) -> Optional[Dimensions]:
    """
    Map a box selection to canonical centimetre dimensions.

    Preset codes come from BOX_PRESETS. Custom boxes need all three sides
    positive. With no selection the declared dimensions (if any) are used.
    """
    if selection is None or not selection.kind:
        return fallback

    kind = selection.kind.strip().upper()
    if kind == BOX_KIND_PRESET:
        return get_preset(selection.code).dimensions()
    if kind == BOX_KIND_CUSTOM:
        return dimensions_from(selection.length_cm, selection.width_cm, selection.height_cm)
    raise InvalidBoxCode(f"Unknown box kind {selection.kind!r}", box_kind=selection.kind)
