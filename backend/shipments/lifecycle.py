"""
Shipment status state machine.

Pure rules only: no database access, no side effects. Every status change,
cancellation included, goes through assert_transition before anything is
written.
"""

from typing import FrozenSet

from .exceptions import IllegalTransition

CREATED = "CREATED"
PICKUP_SCHEDULED = "PICKUP_SCHEDULED"
PICKED_UP = "PICKED_UP"
AT_ORIGIN_HUB = "AT_ORIGIN_HUB"
IN_TRANSIT = "IN_TRANSIT"
AT_DESTINATION_HUB = "AT_DESTINATION_HUB"
OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
DELIVERED = "DELIVERED"
ON_HOLD = "ON_HOLD"
RETURN_TO_SENDER = "RETURN_TO_SENDER"
CANCELLED = "CANCELLED"

STATUS_CHOICES = [
    (CREATED, "Created"),
    (PICKUP_SCHEDULED, "Pickup scheduled"),
    (PICKED_UP, "Picked up"),
    (AT_ORIGIN_HUB, "At origin hub"),
    (IN_TRANSIT, "In transit"),
    (AT_DESTINATION_HUB, "At destination hub"),
    (OUT_FOR_DELIVERY, "Out for delivery"),
    (DELIVERED, "Delivered"),
    (ON_HOLD, "On hold"),
    (RETURN_TO_SENDER, "Return to sender"),
    (CANCELLED, "Cancelled"),
]

ALL_STATES = frozenset(code for code, _ in STATUS_CHOICES)

TERMINAL_STATES = frozenset({DELIVERED, CANCELLED})

ALLOWED_TRANSITIONS = {
    CREATED: frozenset({PICKUP_SCHEDULED, CANCELLED}),
    PICKUP_SCHEDULED: frozenset({PICKED_UP, ON_HOLD, CANCELLED}),
    PICKED_UP: frozenset({AT_ORIGIN_HUB, ON_HOLD, RETURN_TO_SENDER}),
    AT_ORIGIN_HUB: frozenset({IN_TRANSIT, ON_HOLD, RETURN_TO_SENDER}),
    IN_TRANSIT: frozenset({AT_DESTINATION_HUB, ON_HOLD, RETURN_TO_SENDER}),
    AT_DESTINATION_HUB: frozenset({OUT_FOR_DELIVERY, ON_HOLD, RETURN_TO_SENDER}),
    OUT_FOR_DELIVERY: frozenset({DELIVERED, ON_HOLD, RETURN_TO_SENDER}),
    ON_HOLD: frozenset(
        {PICKED_UP, AT_ORIGIN_HUB, IN_TRANSIT, AT_DESTINATION_HUB, OUT_FOR_DELIVERY, CANCELLED, RETURN_TO_SENDER}
    ),
    RETURN_TO_SENDER: frozenset({AT_ORIGIN_HUB, OUT_FOR_DELIVERY, DELIVERED}),
    DELIVERED: frozenset(),
    CANCELLED: frozenset(),
}


def normalize_status(status) -> str:
    return str(status or "").strip().upper()


def is_terminal(status: str) -> bool:
    return normalize_status(status) in TERMINAL_STATES


def allowed_next(current: str) -> FrozenSet[str]:
    return ALLOWED_TRANSITIONS.get(normalize_status(current), frozenset())


def can_transition(current: str, requested: str) -> bool:
    return normalize_status(requested) in allowed_next(current)


def assert_transition(current: str, requested: str) -> str:
    """Raise IllegalTransition unless requested is in the table for current."""
    current = normalize_status(current)
    requested = normalize_status(requested)
    if requested not in allowed_next(current):
        raise IllegalTransition(current, requested, allowed_next(current))
    return requested
