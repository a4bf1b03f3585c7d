from __future__ import annotations

import logging
from typing import Optional

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from accounts.roles import AGENT, Principal, normalize_role
from pricing.models import PricingConfiguration

from .. import lifecycle
from ..exceptions import InvalidAgentAssignment, ShipmentDenied
from ..models import Shipment, ShipmentLog
from .access import assign_denial, status_denial
from .reprice import reprice_locked

logger = logging.getLogger(__name__)

STAGE_PICKUP = "PICKUP"
STAGE_DELIVERY = "DELIVERY"
DEFAULT_CANCEL_REASON = "Cancelled"


def _cancel_locked(shipment: Shipment, actor: Principal, reason: Optional[str]) -> Shipment:
    previous = shipment.status
    lifecycle.assert_transition(previous, lifecycle.CANCELLED)
    reason = (reason or "").strip()[:240] or DEFAULT_CANCEL_REASON

    shipment.status = lifecycle.CANCELLED
    shipment.needs_reprice = False
    shipment.cancellation_reason = reason
    shipment.cancelled_at = timezone.now()
    shipment.cancelled_by_id = actor.id
    shipment.save()
    shipment.add_log(
        ShipmentLog.STATUS,
        f"Status changed {previous} -> {lifecycle.CANCELLED} ({reason})",
        actor=actor,
        previous=previous,
        status=lifecycle.CANCELLED,
    )
    logger.info("Shipment %s cancelled from %s", shipment.tracking_id, previous)
    return shipment


def cancel_shipment(actor: Principal, shipment_id, reason: Optional[str] = None) -> Shipment:
    """Cancel a shipment. Cancelling an already cancelled shipment returns it unchanged."""
    with transaction.atomic():
        shipment = Shipment.objects.lock(shipment_id)
        denial = status_denial(actor, shipment, lifecycle.CANCELLED)
        if denial:
            raise ShipmentDenied(denial, shipment_id=shipment.pk)
        if shipment.is_cancelled:
            return shipment
        return _cancel_locked(shipment, actor, reason)


def update_status(
    actor: Principal,
    shipment_id,
    requested: str,
    note: str = "",
    reprice_with_active: bool = False,
) -> Shipment:
    """
    Move a shipment along the state machine.

    With reprice_with_active the shipment is repriced against the active
    configuration in the same transaction; when nothing is active it is
    flagged needs_reprice instead.
    """
    requested = lifecycle.normalize_status(requested)
    if requested == lifecycle.CANCELLED:
        return cancel_shipment(actor, shipment_id, reason=note)

    with transaction.atomic():
        shipment = Shipment.objects.lock(shipment_id)
        denial = status_denial(actor, shipment, requested)
        if denial:
            raise ShipmentDenied(denial, shipment_id=shipment.pk)
        previous = shipment.status
        lifecycle.assert_transition(previous, requested)

        shipment.status = requested
        shipment.save(update_fields=["status", "updated_at"])
        message = f"Status changed {previous} -> {requested}"
        if note:
            message = f"{message} ({note.strip()[:200]})"
        shipment.add_log(ShipmentLog.STATUS, message, actor=actor, previous=previous, status=requested)

        if reprice_with_active:
            config = PricingConfiguration.objects.find_active()
            if config is not None:
                reprice_locked(shipment, config, actor)
            else:
                shipment.needs_reprice = True
                shipment.save(update_fields=["needs_reprice", "updated_at"])
                shipment.add_log(ShipmentLog.WARN, "No active pricing; reprice required", actor=actor)
                logger.warning("Shipment %s: status reprice skipped, no active pricing", shipment.tracking_id)
    return shipment


def assign_agent(actor: Principal, shipment_id, agent_id, stage: str, replace: bool = False) -> Shipment:
    stage = (stage or "").strip().upper()
    if stage not in (STAGE_PICKUP, STAGE_DELIVERY):
        raise InvalidAgentAssignment(f"Stage must be {STAGE_PICKUP} or {STAGE_DELIVERY}", stage=stage)

    agent = get_user_model().objects.filter(pk=agent_id).first()
    if agent is None or normalize_role(getattr(agent, "role", "")) != AGENT:
        raise InvalidAgentAssignment(f"User {agent_id} is not an agent", agent_id=agent_id)

    field = "pickup_agent" if stage == STAGE_PICKUP else "delivery_agent"
    with transaction.atomic():
        shipment = Shipment.objects.lock(shipment_id)
        denial = assign_denial(actor, shipment)
        if denial:
            raise ShipmentDenied(denial, shipment_id=shipment.pk)

        current_id = getattr(shipment, f"{field}_id")
        if current_id == agent.pk:
            return shipment
        if current_id is not None and not replace:
            raise InvalidAgentAssignment(
                f"{stage.title()} agent already assigned; pass replace to override",
                shipment_id=shipment.pk,
                current_agent_id=current_id,
            )

        setattr(shipment, f"{field}_id", agent.pk)
        shipment.save(update_fields=[field, "updated_at"])
        verb = "reassigned" if current_id else "assigned"
        shipment.add_log(
            ShipmentLog.ASSIGN,
            f"{stage.title()} agent {verb}: {agent.get_username()}",
            actor=actor,
            stage=stage,
            agent_id=agent.pk,
            previous_agent_id=current_id,
        )
    logger.info("Shipment %s: %s agent set to %s", shipment.tracking_id, stage, agent.pk)
    return shipment
