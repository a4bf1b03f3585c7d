from typing import Iterable

from core.exceptions import DomainError


class ShipmentError(DomainError):
    """Base exception for shipment intake, status and reprice operations."""

    code = "SHIPMENT_ERROR"


class ShipmentNotFound(ShipmentError):
    code = "SHIPMENT_NOT_FOUND"
    default_message = "Shipment not found."


class IllegalTransition(ShipmentError):
    """Requested status is not reachable from the current one."""

    code = "ILLEGAL_TRANSITION"

    def __init__(self, current: str, requested: str, allowed: Iterable[str]):
        self.current = current
        self.requested = requested
        self.allowed = sorted(allowed)
        if self.allowed:
            message = f"Cannot move from {current} to {requested}; allowed: {', '.join(self.allowed)}"
        else:
            message = f"Cannot move from {current} to {requested}; {current} is terminal"
        super().__init__(message, current=current, requested=requested, allowed=self.allowed)


class ShipmentDenied(ShipmentError):
    code = "SHIPMENT_DENIED"
    default_message = "Not allowed to perform this action on the shipment."


class RepriceDenied(ShipmentError):
    code = "REPRICE_DENIED"
    default_message = "Cancelled shipments cannot be repriced."


class InvalidAgentAssignment(ShipmentError):
    code = "INVALID_AGENT_ASSIGNMENT"
    default_message = "Agent assignment rejected."


class InvalidShipmentInput(ShipmentError):
    code = "INVALID_SHIPMENT_INPUT"
    default_message = "Shipment input failed validation."
