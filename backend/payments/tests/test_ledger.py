from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from shipments.exceptions import RepriceDenied, ShipmentNotFound
from shipments.models import Shipment, ShipmentLog
from shipments.services.reprice import apply_reprice
from shipments.services.status import cancel_shipment
from shipments.tests.helpers import make_pricing, make_shipment, make_user, principal

from ..dataclasses import PaymentEntryInput
from ..exceptions import AlreadyVoided, InvalidPaymentInput, LedgerDenied, NothingToSettle, PaymentEntryNotFound
from ..models import PaymentEntry
from ..serializers import PaymentEntryInputSerializer, ledger_payload
from ..services.ledger import add_payment, change_payment_method, get_ledger, settle_balance, void_payment
from ..services.summary import PAID, PARTIAL, PENDING


def cash(amount, channel="PICKUP", **extra):
    return PaymentEntryInput(amount=Decimal(amount), method="CASH", channel=channel, **extra)


class LedgerTestBase(TestCase):
    def setUp(self):
        make_pricing()
        self.customer = make_user("alice")
        self.admin = make_user("boss", role="admin")
        self.agent = make_user("rider", role="agent")
        self.shipment = make_shipment(self.customer, weight_kg="1")  # total due 150.00
        self.boss = principal(self.admin)

    def paid_sum(self):
        return sum(
            (e.amount for e in PaymentEntry.objects.filter(shipment=self.shipment, voided=False)), Decimal("0")
        )


class AddPaymentTests(LedgerTestBase):
    def test_partial_then_clamped_to_balance(self):
        first, summary = add_payment(self.boss, self.shipment.pk, cash("100"))
        self.assertEqual(first.amount, Decimal("100.00"))
        self.assertEqual(summary.balance, Decimal("50.00"))
        self.assertEqual(summary.status, PARTIAL)

        second, summary = add_payment(self.boss, self.shipment.pk, cash("200"))
        self.assertEqual(second.amount, Decimal("50.00"))
        self.assertEqual(summary.balance, Decimal("0.00"))
        self.assertEqual(summary.status, PAID)

        self.shipment.refresh_from_db()
        self.assertEqual(self.shipment.total_paid, Decimal("150.00"))
        self.assertEqual(self.shipment.payment_status, PAID)
        clamp_log = self.shipment.logs.filter(type=ShipmentLog.PAYMENT).order_by("-id").first()
        self.assertEqual(clamp_log.meta["requested"], "200.00")
        self.assertEqual(clamp_log.meta["amount"], "50.00")

    def test_audit_line_and_collector(self):
        entry, _ = add_payment(self.boss, self.shipment.pk, cash("20", txn_ref="R-1"))
        self.assertEqual(entry.collected_by_id, self.admin.pk)
        self.assertEqual(entry.recorded_by_id, self.admin.pk)
        log = self.shipment.logs.filter(type=ShipmentLog.PAYMENT).get()
        self.assertEqual(log.message, "Payment added: CASH 20.00 at PICKUP (#R-1)")

    def test_tiny_amounts_become_one_cent(self):
        entry, _ = add_payment(self.boss, self.shipment.pk, cash("0.001"))
        self.assertEqual(entry.amount, Decimal("0.01"))

    def test_fully_paid_shipment_rejects_more(self):
        add_payment(self.boss, self.shipment.pk, cash("150"))
        with self.assertRaises(LedgerDenied):
            add_payment(self.boss, self.shipment.pk, cash("1"))

    def test_invalid_input(self):
        for bad in (cash("0"), cash("-5"), PaymentEntryInput(Decimal("1"), "CHEQUE", "PICKUP")):
            with self.assertRaises(InvalidPaymentInput):
                add_payment(self.boss, self.shipment.pk, bad)
        self.assertFalse(PaymentEntry.objects.exists())

    def test_unpriced_shipment(self):
        Shipment.objects.filter(pk=self.shipment.pk).update(grand_total=0, total_due=0)
        with self.assertRaises(LedgerDenied) as ctx:
            add_payment(self.boss, self.shipment.pk, cash("10"))
        self.assertIn("priced", ctx.exception.message)

    def test_customer_pays_online(self):
        online = PaymentEntryInput(Decimal("30"), "online", "online", txn_ref="PSP-77")
        entry, summary = add_payment(principal(self.customer), self.shipment.pk, online)
        self.assertEqual(entry.method, "ONLINE")
        self.assertIsNone(entry.collected_by_id)
        self.assertEqual(summary.total_paid, Decimal("30.00"))
        with self.assertRaises(LedgerDenied):
            add_payment(principal(self.customer), self.shipment.pk, cash("30"))

    def test_unknown_shipment(self):
        with self.assertRaises(ShipmentNotFound):
            add_payment(self.boss, 999999, cash("1"))

    def test_total_paid_tracks_the_ledger(self):
        amounts = ["10", "25.50", "7.25"]
        entries = [add_payment(self.boss, self.shipment.pk, cash(a))[0] for a in amounts]
        summary = void_payment(self.boss, self.shipment.pk, entries[1].pk)
        self.assertEqual(summary.total_paid, self.paid_sum())
        _, summary = settle_balance(self.boss, self.shipment.pk, "CARD", "OFFICE")
        self.assertEqual(summary.total_paid, self.paid_sum())
        self.assertEqual(summary.total_paid, Decimal("150.00"))


class VoidPaymentTests(LedgerTestBase):
    def test_void_reopens_balance(self):
        first, _ = add_payment(self.boss, self.shipment.pk, cash("100"))
        add_payment(self.boss, self.shipment.pk, cash("200"))

        summary = void_payment(self.boss, self.shipment.pk, first.pk)
        self.assertEqual(summary.total_paid, Decimal("50.00"))
        self.assertEqual(summary.balance, Decimal("100.00"))
        self.assertEqual(summary.status, PARTIAL)
        first.refresh_from_db()
        self.assertTrue(first.voided)
        self.assertEqual(first.voided_by_id, self.admin.pk)
        self.assertEqual(first.note, "Voided")

    def test_reason_is_prepended_to_note(self):
        entry, _ = add_payment(self.boss, self.shipment.pk, cash("40", note="front desk"))
        void_payment(self.boss, self.shipment.pk, entry.pk, reason="Counterfeit note")
        entry.refresh_from_db()
        self.assertEqual(entry.note, "Counterfeit note | front desk")

    def test_second_void_is_an_error_and_changes_nothing(self):
        entry, _ = add_payment(self.boss, self.shipment.pk, cash("40"))
        summary = void_payment(self.boss, self.shipment.pk, entry.pk)
        with self.assertRaises(AlreadyVoided):
            void_payment(self.boss, self.shipment.pk, entry.pk)
        self.shipment.refresh_from_db()
        self.assertEqual(self.shipment.total_paid, summary.total_paid)

    def test_only_admins_void(self):
        entry, _ = add_payment(self.boss, self.shipment.pk, cash("40"))
        with self.assertRaises(LedgerDenied):
            void_payment(principal(self.customer), self.shipment.pk, entry.pk)

    def test_entry_must_belong_to_shipment(self):
        other = make_shipment(self.customer)
        entry, _ = add_payment(self.boss, other.pk, cash("10"))
        with self.assertRaises(PaymentEntryNotFound):
            void_payment(self.boss, self.shipment.pk, entry.pk)

    def test_entries_are_never_rewritten_or_deleted(self):
        entry, _ = add_payment(self.boss, self.shipment.pk, cash("40"))
        entry.amount = Decimal("1")
        with self.assertRaises(ValidationError):
            entry.save()
        entry.refresh_from_db()
        with self.assertRaises(ValidationError):
            entry.delete()
        self.assertTrue(PaymentEntry.objects.filter(pk=entry.pk).exists())


class SettleBalanceTests(LedgerTestBase):
    def test_settles_exact_balance(self):
        add_payment(self.boss, self.shipment.pk, cash("60"))
        entry, summary = settle_balance(self.boss, self.shipment.pk, "cash", "delivery")
        self.assertEqual(entry.amount, Decimal("90.00"))
        self.assertEqual(entry.note, "Auto-settle remaining balance")
        self.assertEqual(summary.status, PAID)
        with self.assertRaises(NothingToSettle):
            settle_balance(self.boss, self.shipment.pk, "CASH", "DELIVERY")

    def test_guard_applies_like_add(self):
        with self.assertRaises(LedgerDenied):
            settle_balance(principal(self.agent), self.shipment.pk, "CASH", "DELIVERY")


class CancellationFenceTests(LedgerTestBase):
    def test_everything_fails_after_cancel(self):
        entry, _ = add_payment(self.boss, self.shipment.pk, cash("40"))
        cancel_shipment(self.boss, self.shipment.pk)

        with self.assertRaises(LedgerDenied):
            add_payment(self.boss, self.shipment.pk, cash("10"))
        with self.assertRaises(LedgerDenied):
            void_payment(self.boss, self.shipment.pk, entry.pk)
        with self.assertRaises(LedgerDenied):
            settle_balance(self.boss, self.shipment.pk, "CASH", "OFFICE")
        with self.assertRaises(RepriceDenied):
            apply_reprice(self.shipment.pk)
        self.assertEqual(PaymentEntry.objects.filter(shipment=self.shipment).count(), 1)


class PaymentPreferenceTests(LedgerTestBase):
    def test_change_mode_and_method(self):
        pref = change_payment_method(principal(self.customer), self.shipment.pk, mode="delivery", method="online")
        self.assertEqual((pref.mode, pref.method), ("DELIVERY", "ONLINE"))
        self.shipment.refresh_from_db()
        self.assertEqual(self.shipment.payment_mode, "DELIVERY")
        self.assertEqual(self.shipment.total_paid, Decimal("0.00"))

    def test_frozen_once_paid(self):
        settle_balance(self.boss, self.shipment.pk, "CASH", "OFFICE")
        with self.assertRaises(LedgerDenied):
            change_payment_method(self.boss, self.shipment.pk, method="ONLINE")

    def test_unknown_values(self):
        with self.assertRaises(InvalidPaymentInput):
            change_payment_method(self.boss, self.shipment.pk, mode="LATER")


class LedgerViewTests(LedgerTestBase):
    def test_read_recomputes_and_heals_stored_summary(self):
        add_payment(self.boss, self.shipment.pk, cash("100"))
        Shipment.objects.filter(pk=self.shipment.pk).update(total_paid=Decimal("999"), payment_status=PENDING)

        view = get_ledger(principal(self.customer), self.shipment.pk)
        self.assertEqual(view.summary.total_paid, Decimal("100.00"))
        self.assertEqual(view.summary.status, PARTIAL)
        self.shipment.refresh_from_db()
        self.assertEqual(self.shipment.total_paid, Decimal("100.00"))
        self.assertEqual(self.shipment.payment_status, PARTIAL)

    def test_voided_entries_are_listed(self):
        entry, _ = add_payment(self.boss, self.shipment.pk, cash("100"))
        void_payment(self.boss, self.shipment.pk, entry.pk)
        payload = ledger_payload(get_ledger(self.boss, self.shipment.pk))
        self.assertEqual(len(payload["payments"]), 1)
        self.assertTrue(payload["payments"][0]["voided"])
        self.assertEqual(payload["payments"][0]["collected_by"], "boss")
        self.assertEqual(payload["summary"]["balance"], "150.00")
        self.assertEqual(payload["preference"], {"mode": "PICKUP", "method": "CASH"})

    def test_strangers_cannot_read(self):
        stranger = make_user("mallory")
        with self.assertRaises(LedgerDenied):
            get_ledger(principal(stranger), self.shipment.pk)


def test_entry_input_serializer():
    ser = PaymentEntryInputSerializer(data={"amount": "12.5", "method": "CASH", "channel": "PICKUP"})
    assert ser.is_valid(), ser.errors
    payment = ser.to_input()
    assert payment.amount == Decimal("12.50")
    assert payment.txn_ref == ""
