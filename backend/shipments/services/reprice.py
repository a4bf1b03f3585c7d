"""
Reprice orchestration.

preview_reprice is read-only. apply_reprice locks the shipment row, writes
the new charges, re-derives the payment summary from the ledger, appends an
audit entry and queues invoice regeneration in the same transaction.
"""

from __future__ import annotations

import logging
from typing import Optional

from django.db import transaction

from accounts.roles import Principal
from invoices.services.dispatch import enqueue_invoice
from payments.services.ledger import refresh_summary
from pricing.models import PricingConfiguration
from pricing.services.calculator import price_parcel, to_shipment_charges
from pricing.services.configuration import resolve_configuration
from pricing.services.exceptions import PricingError

from ..dataclasses import BulkRepriceReport, RepricePreview
from ..exceptions import RepriceDenied, ShipmentDenied, ShipmentError
from ..models import Shipment, ShipmentLog
from .access import reprice_denial

logger = logging.getLogger(__name__)


def preview_reprice(shipment_id, version=None) -> RepricePreview:
    shipment = Shipment.objects.get_or_raise(shipment_id)
    config = resolve_configuration(version)
    weights, quote = price_parcel(shipment.parcel_spec(), config.to_rates())
    return RepricePreview(
        shipment_id=shipment.pk,
        weights=weights,
        quote=quote,
        charges=to_shipment_charges(quote),
        current_grand_total=shipment.grand_total,
    )


def reprice_locked(shipment: Shipment, config: PricingConfiguration, actor: Optional[Principal] = None) -> Shipment:
    """Reprice a shipment the caller has already locked inside a transaction."""
    if shipment.is_cancelled:
        raise RepriceDenied(f"Shipment {shipment.tracking_id} is cancelled", shipment_id=shipment.pk)

    previous_total = shipment.grand_total
    weights, quote = price_parcel(shipment.parcel_spec(), config.to_rates())
    shipment.apply_weights(weights)
    shipment.apply_quote(quote, config)
    refresh_summary(shipment)
    shipment.save()

    shipment.add_log(
        ShipmentLog.PRICING,
        f"Repriced with {config.name} (#{config.pk}): grand total {shipment.grand_total} {shipment.currency}",
        actor=actor,
        pricing_id=config.pk,
        pricing_label=config.name,
        previous_grand_total=str(previous_total),
        grand_total=str(shipment.grand_total),
    )
    enqueue_invoice(shipment, reason="REPRICED")
    logger.info(
        "Shipment %s repriced with %s: %s -> %s",
        shipment.tracking_id, config.name, previous_total, shipment.grand_total,
    )
    return shipment


def apply_reprice(shipment_id, version=None, actor: Optional[Principal] = None) -> Shipment:
    """
    Reprice against a pinned version (id or label) or the active configuration.

    Raises ShipmentNotFound, PricingVersionNotFound, NoActivePricing, or
    RepriceDenied for cancelled shipments.
    """
    actor = actor or Principal.system()
    denial = reprice_denial(actor)
    if denial:
        raise ShipmentDenied(denial, shipment_id=shipment_id)

    with transaction.atomic():
        shipment = Shipment.objects.lock(shipment_id)
        if shipment.is_cancelled:
            raise RepriceDenied(f"Shipment {shipment.tracking_id} is cancelled", shipment_id=shipment.pk)
        config = resolve_configuration(version)
        return reprice_locked(shipment, config, actor)


def bulk_reprice(limit=None, since=None, version=None, apply=False) -> BulkRepriceReport:
    """Reprice shipments flagged needs_reprice; dry run unless apply is set."""
    qs = Shipment.objects.awaiting_reprice().order_by("created_at", "id")
    if since is not None:
        qs = qs.filter(created_at__gte=since)
    if limit:
        qs = qs[: int(limit)]
    ids = list(qs.values_list("pk", flat=True))

    report = BulkRepriceReport(matched=len(ids), applied=apply)
    if not apply:
        return report

    # fail fast when there is nothing to price against
    resolve_configuration(version)

    for shipment_id in ids:
        try:
            apply_reprice(shipment_id, version=version)
        except (PricingError, ShipmentError) as exc:
            report.failed += 1
            report.failures.append(f"{shipment_id}: {exc.code} {exc.message}")
            logger.warning("Bulk reprice failed for shipment %s: %s", shipment_id, exc.message)
        else:
            report.repriced += 1
    logger.info(
        "Bulk reprice finished (version=%s): %s matched, %s repriced, %s failed",
        version or "active", report.matched, report.repriced, report.failed,
    )
    return report
