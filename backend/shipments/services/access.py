"""
Who may act on a shipment.

Decision helpers return None when the action is allowed, otherwise a short
reason. They read attributes only and never query the database.
"""

from typing import Optional

from accounts.roles import Principal

from .. import lifecycle


def is_owner(principal: Principal, shipment) -> bool:
    return principal.owns(shipment.sender_id)


def is_assigned_agent(principal: Principal, shipment) -> bool:
    if not principal.is_agent:
        return False
    return principal.owns(shipment.pickup_agent_id) or principal.owns(shipment.delivery_agent_id)


def can_view(principal: Principal, shipment) -> bool:
    return principal.is_elevated or is_owner(principal, shipment) or is_assigned_agent(principal, shipment)


def status_denial(principal: Principal, shipment, requested: str) -> Optional[str]:
    if principal.is_elevated:
        return None
    if lifecycle.normalize_status(requested) == lifecycle.CANCELLED:
        if is_owner(principal, shipment):
            return None
        return "Only the sender or an admin can cancel a shipment"
    if is_assigned_agent(principal, shipment):
        return None
    return "Only an admin or the assigned agent can change shipment status"


def edit_denial(principal: Principal, shipment) -> Optional[str]:
    if shipment.is_terminal:
        return f"Shipment is {shipment.status}; chargeable inputs are frozen"
    if principal.is_elevated:
        return None
    if is_owner(principal, shipment) and shipment.status == lifecycle.CREATED:
        return None
    return "Only an admin, or the sender before pickup is scheduled, can edit chargeable inputs"


def reprice_denial(principal: Principal) -> Optional[str]:
    if principal.is_elevated:
        return None
    return "Only admins can reprice shipments"


def assign_denial(principal: Principal, shipment) -> Optional[str]:
    if not principal.is_elevated:
        return "Only admins can assign agents"
    if shipment.is_terminal:
        return f"Shipment is {shipment.status}; agents can no longer be assigned"
    return None
