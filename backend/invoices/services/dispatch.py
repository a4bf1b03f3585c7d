"""
Invoice outbox.

Shipment services call enqueue_invoice inside their own transaction; the
dispatch_invoices command drains the outbox later. Nothing here ever
raises into the caller's operation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

from ..models import InvoiceDispatch
from .delivery import load_notifiers
from .rendering import render_invoice

logger = logging.getLogger(__name__)


@dataclass
class DispatchReport:
    processed: int = 0
    sent: int = 0
    skipped: int = 0
    retrying: int = 0
    failed: int = 0


def enqueue_invoice(shipment, reason: str = InvoiceDispatch.REASON_CREATED) -> Optional[InvoiceDispatch]:
    """
    Queue invoice regeneration.

    A pending row for the shipment is reused and starts over with a fresh
    retry budget and no recorded channels.
    """
    try:
        with transaction.atomic():
            pending = (
                InvoiceDispatch.objects.select_for_update()
                .filter(shipment_id=shipment.pk, status=InvoiceDispatch.STATUS_PENDING)
                .first()
            )
            if pending is not None:
                pending.reason = reason
                pending.attempts = 0
                pending.last_error = ""
                pending.channels = []
                pending.save(update_fields=["reason", "attempts", "last_error", "channels", "updated_at"])
                return pending
            return InvoiceDispatch.objects.create(shipment_id=shipment.pk, reason=reason)
    except DatabaseError:
        logger.exception("Could not queue invoice for shipment %s", shipment.pk)
        return None


def _finish(dispatch: InvoiceDispatch, status: str, errors: List[str], delivered: List[str]) -> None:
    dispatch.status = status
    dispatch.last_error = "; ".join(errors)[:2000]
    recorded = list(dispatch.channels or [])
    dispatch.channels = recorded + [c for c in delivered if c not in recorded]
    if status == InvoiceDispatch.STATUS_SENT:
        dispatch.sent_at = timezone.now()
    dispatch.save(update_fields=["status", "attempts", "last_error", "channels", "sent_at", "updated_at"])


def process_dispatch(dispatch: InvoiceDispatch, notifiers=None) -> str:
    """
    One delivery attempt. Returns the resulting status.

    Channels recorded on the row by an earlier attempt are not sent to
    again; only the ones that failed are retried.
    """
    max_attempts = settings.INVOICE_DISPATCH_MAX_ATTEMPTS
    notifiers = load_notifiers() if notifiers is None else notifiers
    dispatch.attempts += 1
    shipment = dispatch.shipment
    done = set(dispatch.channels or [])

    errors: List[str] = []
    delivered: List[str] = []
    try:
        invoice = render_invoice(shipment, dispatch.reason)
        for notifier in notifiers:
            if notifier.channel in done:
                continue
            recipient = notifier.recipient_for(shipment)
            if not recipient:
                continue
            result = notifier.deliver(recipient, invoice)
            if result.ok:
                delivered.append(result.channel)
            else:
                errors.append(result.error or result.channel)
    except Exception as e:
        logger.exception("Invoice rendering failed for shipment %s", shipment.pk)
        errors.append(f"render: {e}")

    if errors:
        status = InvoiceDispatch.STATUS_FAILED if dispatch.attempts >= max_attempts else InvoiceDispatch.STATUS_PENDING
        if status == InvoiceDispatch.STATUS_FAILED:
            logger.error(
                "Invoice for %s failed after %s attempts: %s", shipment.tracking_id, dispatch.attempts, errors
            )
        else:
            logger.warning("Invoice for %s attempt %s failed: %s", shipment.tracking_id, dispatch.attempts, errors)
    elif delivered or done:
        status = InvoiceDispatch.STATUS_SENT
        logger.info("Invoice for %s sent via %s", shipment.tracking_id, ", ".join(sorted(done.union(delivered))))
    else:
        status = InvoiceDispatch.STATUS_SKIPPED
    _finish(dispatch, status, errors, delivered)
    return status


def process_pending_dispatches(limit: int = 50, notifiers=None) -> DispatchReport:
    report = DispatchReport()
    notifiers = load_notifiers() if notifiers is None else notifiers
    pending = (
        InvoiceDispatch.objects.filter(status=InvoiceDispatch.STATUS_PENDING)
        .select_related("shipment", "shipment__sender", "shipment__pricing_version")
        .order_by("created_at", "id")[:limit]
    )
    for dispatch in pending:
        status = process_dispatch(dispatch, notifiers)
        report.processed += 1
        if status == InvoiceDispatch.STATUS_SENT:
            report.sent += 1
        elif status == InvoiceDispatch.STATUS_SKIPPED:
            report.skipped += 1
        elif status == InvoiceDispatch.STATUS_PENDING:
            report.retrying += 1
        else:
            report.failed += 1
    return report
