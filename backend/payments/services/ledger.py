"""
Payment ledger operations.

Every mutation runs in one transaction holding the shipment row lock:
refresh the summary from the ledger table, ask the guard, write the entry,
refresh the summary again and append an audit line. Entries are only ever
inserted or flagged voided.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional, Tuple

from django.db import transaction
from django.utils import timezone

from accounts.roles import Principal
from core.utils import q2
from shipments.models import Shipment, ShipmentLog

from ..dataclasses import LedgerView, PaymentEntryInput, PaymentPreference
from ..exceptions import AlreadyVoided, InvalidPaymentInput, LedgerDenied, NothingToSettle, PaymentEntryNotFound
from ..models import PaymentEntry
from . import guard
from .summary import PaymentSummary, compute_summary

logger = logging.getLogger(__name__)

MIN_AMOUNT = Decimal("0.01")
SUMMARY_FIELDS = ["total_due", "total_paid", "balance", "payment_status", "updated_at"]
DEFAULT_SETTLE_NOTE = "Auto-settle remaining balance"
DEFAULT_VOID_REASON = "Voided"
NOTE_LIMIT = 240

METHODS = frozenset(code for code, _ in PaymentEntry.METHOD_CHOICES)
CHANNELS = frozenset(code for code, _ in PaymentEntry.CHANNEL_CHOICES)


def refresh_summary(shipment: Shipment) -> PaymentSummary:
    """Recompute the summary from the ledger table and copy it onto the shipment (unsaved)."""
    entries = PaymentEntry.objects.filter(shipment_id=shipment.pk).only("amount", "voided")
    summary = compute_summary(shipment.grand_total, entries)
    shipment.apply_summary(summary)
    return summary


def _clean_method_channel(method, channel) -> Tuple[str, str]:
    method = str(method or "").strip().upper()
    channel = str(channel or "").strip().upper()
    if method not in METHODS:
        raise InvalidPaymentInput(f"Unknown payment method {method!r}", field="method")
    if channel not in CHANNELS:
        raise InvalidPaymentInput(f"Unknown payment channel {channel!r}", field="channel")
    return method, channel


def _requested_amount(amount) -> Decimal:
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidPaymentInput(f"Amount {amount!r} is not a number", field="amount")
    if not value.is_finite() or value <= 0:
        raise InvalidPaymentInput("Amount must be greater than zero", field="amount")
    return q2(value)


def _deny(reason: Optional[str], shipment: Shipment):
    if reason:
        logger.warning("Ledger denied on %s: %s", shipment.tracking_id, reason)
        raise LedgerDenied(reason, shipment_id=shipment.pk)


def _record(actor, shipment, amount, method, channel, txn_ref, note) -> Tuple[PaymentEntry, PaymentSummary]:
    entry = PaymentEntry.objects.create(
        shipment=shipment,
        amount=amount,
        method=method,
        channel=channel,
        txn_ref=(txn_ref or "").strip()[:120],
        note=(note or "").strip()[:NOTE_LIMIT],
        collected_by_id=guard.collector_id(actor, shipment),
        recorded_by_id=actor.id,
    )
    summary = refresh_summary(shipment)
    shipment.save(update_fields=SUMMARY_FIELDS)
    return entry, summary


def _txn_suffix(txn_ref: str) -> str:
    return f" (#{txn_ref})" if txn_ref else ""


# --------------------- Ledger operations ---------------------

def add_payment(actor: Principal, shipment_id, payment: PaymentEntryInput) -> Tuple[PaymentEntry, PaymentSummary]:
    """
    Append a payment. Requests above the balance are clamped to the balance;
    the ledger never records an overpayment.
    """
    requested = _requested_amount(payment.amount)
    method, channel = _clean_method_channel(payment.method, payment.channel)

    with transaction.atomic():
        shipment = Shipment.objects.lock(shipment_id)
        summary = refresh_summary(shipment)
        _deny(guard.add_denial(actor, shipment, method, channel), shipment)
        if summary.balance <= 0:
            _deny("Shipment is already fully paid", shipment)

        amount = min(max(requested, MIN_AMOUNT), summary.balance)
        entry, summary = _record(actor, shipment, amount, method, channel, payment.txn_ref, payment.note)
        shipment.add_log(
            ShipmentLog.PAYMENT,
            f"Payment added: {method} {amount} at {channel}{_txn_suffix(entry.txn_ref)}",
            actor=actor,
            entry_id=entry.pk,
            requested=str(requested),
            amount=str(amount),
        )
    logger.info("Payment %s recorded on %s: %s (balance %s)", entry.pk, shipment.tracking_id, amount, summary.balance)
    return entry, summary


def void_payment(actor: Principal, shipment_id, entry_id, reason: Optional[str] = None) -> PaymentSummary:
    with transaction.atomic():
        shipment = Shipment.objects.lock(shipment_id)
        _deny(guard.void_denial(actor, shipment), shipment)

        entry = PaymentEntry.objects.select_for_update().filter(pk=entry_id, shipment_id=shipment.pk).first()
        if entry is None:
            raise PaymentEntryNotFound(f"Payment {entry_id} not found on {shipment.tracking_id}", entry_id=entry_id)
        if entry.voided:
            raise AlreadyVoided(f"Payment {entry_id} is already voided", entry_id=entry_id)

        reason = (reason or "").strip() or DEFAULT_VOID_REASON
        entry.voided = True
        entry.voided_at = timezone.now()
        entry.voided_by_id = actor.id
        entry.note = (f"{reason} | {entry.note}" if entry.note else reason)[:NOTE_LIMIT]
        entry.save(update_fields=["voided", "voided_at", "voided_by", "note"])

        summary = refresh_summary(shipment)
        shipment.save(update_fields=SUMMARY_FIELDS)
        shipment.add_log(
            ShipmentLog.PAYMENT,
            f"Payment voided: {entry.method} {entry.amount} ({reason})",
            actor=actor,
            entry_id=entry.pk,
        )
    logger.info("Payment %s voided on %s (balance %s)", entry.pk, shipment.tracking_id, summary.balance)
    return summary


def settle_balance(
    actor: Principal,
    shipment_id,
    method,
    channel,
    txn_ref: str = "",
    note: Optional[str] = None,
) -> Tuple[PaymentEntry, PaymentSummary]:
    """Record exactly the outstanding balance as one entry."""
    method, channel = _clean_method_channel(method, channel)
    with transaction.atomic():
        shipment = Shipment.objects.lock(shipment_id)
        summary = refresh_summary(shipment)
        _deny(guard.add_denial(actor, shipment, method, channel), shipment)
        if summary.balance <= 0:
            raise NothingToSettle(f"{shipment.tracking_id} has no outstanding balance", shipment_id=shipment.pk)

        amount = summary.balance
        entry, summary = _record(actor, shipment, amount, method, channel, txn_ref, note or DEFAULT_SETTLE_NOTE)
        shipment.add_log(
            ShipmentLog.PAYMENT,
            f"Balance settled: {method} {amount} at {channel}{_txn_suffix(entry.txn_ref)}",
            actor=actor,
            entry_id=entry.pk,
            amount=str(amount),
        )
    logger.info("Balance settled on %s: %s", shipment.tracking_id, amount)
    return entry, summary


def change_payment_method(actor: Principal, shipment_id, mode=None, method=None) -> PaymentPreference:
    """Update the preferred payment mode and/or method. Ledger and summary are untouched."""
    modes = {code for code, _ in Shipment.PAYMENT_MODE_CHOICES}
    methods = {code for code, _ in Shipment.PAYMENT_METHOD_CHOICES}
    mode = str(mode).strip().upper() if mode else None
    method = str(method).strip().upper() if method else None
    if mode is not None and mode not in modes:
        raise InvalidPaymentInput(f"Unknown payment mode {mode!r}", field="mode")
    if method is not None and method not in methods:
        raise InvalidPaymentInput(f"Unknown preferred method {method!r}", field="method")

    with transaction.atomic():
        shipment = Shipment.objects.lock(shipment_id)
        refresh_summary(shipment)
        _deny(guard.change_method_denial(actor, shipment), shipment)
        if mode:
            shipment.payment_mode = mode
        if method:
            shipment.payment_method = method
        if mode or method:
            shipment.save(update_fields=["payment_mode", "payment_method", "updated_at"])
            shipment.add_log(
                ShipmentLog.INFO,
                f"Payment preference changed: mode {shipment.payment_mode}, method {shipment.payment_method}",
                actor=actor,
            )
    return PaymentPreference(mode=shipment.payment_mode, method=shipment.payment_method)


def get_ledger(actor: Principal, shipment_id) -> LedgerView:
    """Entries (voided included) with a summary recomputed on read."""
    shipment = Shipment.objects.get_or_raise(shipment_id)
    _deny(guard.view_denial(actor, shipment), shipment)

    entries = list(PaymentEntry.objects.filter(shipment_id=shipment.pk).select_related("collected_by"))
    summary = compute_summary(shipment.grand_total, entries)
    stored = (shipment.total_due, shipment.total_paid, shipment.balance, shipment.payment_status)
    if stored != (summary.total_due, summary.total_paid, summary.balance, summary.status):
        logger.warning("Stored payment summary drifted on %s; rewriting from ledger", shipment.tracking_id)
        Shipment.objects.filter(pk=shipment.pk).update(
            total_due=summary.total_due,
            total_paid=summary.total_paid,
            balance=summary.balance,
            payment_status=summary.status,
        )
    return LedgerView(
        shipment_id=shipment.pk,
        summary=summary,
        preference=PaymentPreference(mode=shipment.payment_mode, method=shipment.payment_method),
        entries=entries,
        currency=shipment.currency,
    )
