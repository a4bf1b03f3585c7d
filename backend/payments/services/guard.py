"""
Ledger authorization guard.

Each check returns None when the operation is allowed, or the reason it is
not. Checks read the shipment's attributes and the acting principal only;
the ledger refreshes the stored summary before asking.
"""

from __future__ import annotations

from typing import Optional

from accounts.roles import Principal
from shipments.services.access import can_view, is_assigned_agent, is_owner

from ..models import PaymentEntry
from .summary import PAID

OWNER_METHODS = frozenset({PaymentEntry.METHOD_ONLINE})
OWNER_CHANNELS = frozenset({PaymentEntry.CHANNEL_ONLINE, PaymentEntry.CHANNEL_OFFICE})


def _closed_reason(shipment) -> Optional[str]:
    if shipment.is_cancelled:
        return "Shipment is cancelled; its ledger is closed"
    return None


def view_denial(principal: Principal, shipment) -> Optional[str]:
    if can_view(principal, shipment):
        return None
    return "Only the sender, an admin or an assigned agent can view payments"


def add_denial(principal: Principal, shipment, method: str, channel: str) -> Optional[str]:
    """Applies to add_payment and settle_balance alike."""
    closed = _closed_reason(shipment)
    if closed:
        return closed
    if shipment.total_due is None or shipment.total_due <= 0:
        return "Shipment has not been priced yet"
    if principal.is_elevated or is_assigned_agent(principal, shipment):
        return None
    if is_owner(principal, shipment):
        if method not in OWNER_METHODS:
            return "Customers can only record ONLINE payments"
        if channel not in OWNER_CHANNELS:
            return "Customer payments must use the ONLINE or OFFICE channel"
        return None
    return "Only admins, assigned agents or the sender can record payments"


def void_denial(principal: Principal, shipment) -> Optional[str]:
    closed = _closed_reason(shipment)
    if closed:
        return closed
    if not principal.is_elevated:
        return "Only admins can void payments"
    return None


def change_method_denial(principal: Principal, shipment) -> Optional[str]:
    if shipment.payment_status == PAID:
        return "Shipment is already paid; payment method can no longer change"
    if principal.is_elevated or is_owner(principal, shipment):
        return None
    return "Only admins or the sender can change the payment method"


def collector_id(principal: Principal, shipment) -> Optional[int]:
    """Staff who physically take the money are recorded as collector."""
    if principal.is_elevated or is_assigned_agent(principal, shipment):
        return principal.id
    return None
