from decimal import Decimal
from io import StringIO

from django.core.management import CommandError, call_command
from django.test import TestCase

from invoices.models import InvoiceDispatch
from payments.dataclasses import PaymentEntryInput
from payments.services.ledger import add_payment
from pricing.services.configuration import deactivate_configuration
from pricing.services.exceptions import NoActivePricing, PricingVersionNotFound

from ..exceptions import RepriceDenied, ShipmentDenied, ShipmentNotFound
from ..models import Shipment, ShipmentLog
from ..services.reprice import apply_reprice, bulk_reprice, preview_reprice
from ..services.status import cancel_shipment
from .helpers import make_pricing, make_shipment, make_user, principal


class RepriceTests(TestCase):
    def setUp(self):
        self.v1 = make_pricing("v1")
        self.customer = make_user("alice")
        self.admin = make_user("boss", role="admin")
        self.shipment = make_shipment(self.customer, weight_kg="1")

    def pricing_logs(self):
        return self.shipment.logs.filter(type=ShipmentLog.PRICING)

    def test_apply_uses_newly_activated_version(self):
        self.assertEqual(self.shipment.pricing_version_id, self.v1.pk)
        v2 = make_pricing("v2", per_kg_rate="200", min_charge="0")
        before = self.pricing_logs().count()

        shipment = apply_reprice(self.shipment.pk)

        self.assertEqual(shipment.pricing_version_id, v2.pk)
        self.assertEqual(shipment.grand_total, Decimal("200.00"))
        self.assertFalse(shipment.needs_reprice)
        new_logs = list(self.pricing_logs().order_by("id")[before:])
        self.assertEqual(len(new_logs), 1)
        self.assertIn("v2", new_logs[0].message)
        self.assertIn("200.00", new_logs[0].message)
        self.assertEqual(new_logs[0].meta["previous_grand_total"], "150.00")

    def test_pinned_version_by_label_or_id(self):
        make_pricing("v2", per_kg_rate="200", min_charge="0")
        self.assertEqual(apply_reprice(self.shipment.pk, version="v2").grand_total, Decimal("200.00"))
        shipment = apply_reprice(self.shipment.pk, version=str(self.v1.pk))
        self.assertEqual(shipment.pricing_version_id, self.v1.pk)
        self.assertEqual(shipment.grand_total, Decimal("150.00"))

    def test_tax_is_added_on_top_of_charges(self):
        make_pricing("taxed", tax_percent="10")
        shipment = apply_reprice(self.shipment.pk)
        self.assertEqual(shipment.charges_total, Decimal("150.00"))
        self.assertEqual(shipment.tax, Decimal("15.00"))
        self.assertEqual(shipment.grand_total, Decimal("165.00"))
        self.assertEqual(shipment.total_due, Decimal("165.00"))

    def test_errors(self):
        with self.assertRaises(ShipmentNotFound):
            apply_reprice(999999)
        with self.assertRaises(PricingVersionNotFound):
            apply_reprice(self.shipment.pk, version="nope")
        deactivate_configuration(self.v1.pk)
        with self.assertRaises(NoActivePricing):
            apply_reprice(self.shipment.pk)

    def test_cancelled_shipment_cannot_be_repriced(self):
        cancel_shipment(principal(self.admin), self.shipment.pk)
        with self.assertRaises(RepriceDenied):
            apply_reprice(self.shipment.pk)

    def test_only_admins_reprice(self):
        with self.assertRaises(ShipmentDenied):
            apply_reprice(self.shipment.pk, actor=principal(self.customer))

    def test_preview_does_not_persist(self):
        make_pricing("v2", per_kg_rate="200", min_charge="0")
        logs = self.shipment.logs.count()
        preview = preview_reprice(self.shipment.pk)
        self.assertEqual(preview.charges.grand_total, Decimal("200.00"))
        self.assertEqual(preview.current_grand_total, Decimal("150.00"))
        self.shipment.refresh_from_db()
        self.assertEqual(self.shipment.grand_total, Decimal("150.00"))
        self.assertEqual(self.shipment.pricing_version_id, self.v1.pk)
        self.assertEqual(self.shipment.logs.count(), logs)

    def test_summary_follows_the_new_total(self):
        add_payment(principal(self.admin), self.shipment.pk, PaymentEntryInput(Decimal("100"), "CASH", "OFFICE"))
        make_pricing("v2", per_kg_rate="200", min_charge="0")
        shipment = apply_reprice(self.shipment.pk)
        self.assertEqual(shipment.total_paid, Decimal("100.00"))
        self.assertEqual(shipment.balance, Decimal("100.00"))
        self.assertEqual(shipment.payment_status, "PARTIAL")

    def test_reprice_reuses_pending_invoice(self):
        apply_reprice(self.shipment.pk)
        dispatch = InvoiceDispatch.objects.get(shipment=self.shipment)
        self.assertEqual(dispatch.reason, InvoiceDispatch.REASON_REPRICED)
        self.assertEqual(dispatch.status, InvoiceDispatch.STATUS_PENDING)


class BulkRepriceTests(TestCase):
    def setUp(self):
        self.customer = make_user("alice")
        self.admin = make_user("boss", role="admin")
        # created before any pricing exists, so all are flagged
        self.first = make_shipment(self.customer, weight_kg="1")
        self.second = make_shipment(self.customer, weight_kg="2")
        self.cancelled = make_shipment(self.customer, weight_kg="3")
        cancel_shipment(principal(self.admin), self.cancelled.pk)

    def test_dry_run_changes_nothing(self):
        make_pricing("v1")
        report = bulk_reprice()
        self.assertEqual(report.matched, 2)
        self.assertFalse(report.applied)
        self.assertEqual(Shipment.objects.filter(needs_reprice=True).count(), 2)

    def test_apply(self):
        make_pricing("v1")
        report = bulk_reprice(apply=True)
        self.assertEqual((report.matched, report.repriced, report.failed), (2, 2, 0))
        self.second.refresh_from_db()
        self.assertEqual(self.second.grand_total, Decimal("240.00"))
        self.assertFalse(Shipment.objects.filter(needs_reprice=True).exists())

    def test_limit(self):
        make_pricing("v1")
        report = bulk_reprice(limit=1, apply=True)
        self.assertEqual(report.repriced, 1)
        self.first.refresh_from_db()
        self.assertFalse(self.first.needs_reprice)

    def test_command(self):
        make_pricing("v1")
        out = StringIO()
        call_command("bulk_reprice", stdout=out)
        self.assertIn("Dry run: 2 shipment(s)", out.getvalue())

        out = StringIO()
        call_command("bulk_reprice", "--apply", "--pricing-version", "v1", stdout=out)
        self.assertIn("Repriced 2 of 2 shipment(s), 0 failed", out.getvalue())

    def test_command_without_pricing(self):
        with self.assertRaises(CommandError):
            call_command("bulk_reprice", "--apply", stdout=StringIO())

    def test_command_rejects_bad_date(self):
        with self.assertRaises(CommandError):
            call_command("bulk_reprice", "--since", "yesterday", stdout=StringIO())
