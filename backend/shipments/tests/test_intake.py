import re
from datetime import date
from decimal import Decimal
from unittest import mock

from django.test import TestCase, override_settings

from invoices.models import InvoiceDispatch
from pricing.dataclasses import BoxSelection, OtherCharge, ParcelSpec
from pricing.services.exceptions import InvalidBoxCode

from ..dataclasses import ChargeableUpdate, ShipmentIntake
from ..exceptions import InvalidShipmentInput, ShipmentDenied, ShipmentError
from ..models import Shipment, ShipmentLog
from ..serializers import ChargeableUpdateSerializer, ShipmentIntakeSerializer
from ..services.intake import create_shipment, generate_tracking_id, update_chargeable_inputs
from ..services.status import update_status
from .helpers import make_pricing, make_shipment, make_user, principal


class TrackingIdTests(TestCase):
    @override_settings(COURIER_TRACKING_PREFIX="KBL")
    def test_format(self):
        tracking = generate_tracking_id(today=date(2024, 3, 9))
        self.assertRegex(tracking, r"^KBL-20240309-[A-Z2-9]{8}$")

    def test_gives_up_after_repeated_collisions(self):
        sender = make_user("alice")
        Shipment.objects.create(tracking_id="REP-20240309-AAAAAAAA", sender=sender)
        with mock.patch("shipments.services.intake.get_random_string", return_value="AAAAAAAA") as rnd:
            with self.assertRaises(ShipmentError):
                generate_tracking_id(today=date(2024, 3, 9))
        self.assertEqual(rnd.call_count, 7)


class CreateShipmentTests(TestCase):
    def setUp(self):
        self.customer = make_user("alice")
        self.admin = make_user("boss", role="admin")
        self.agent = make_user("rider", role="agent")

    def test_auto_priced_against_active_configuration(self):
        config = make_pricing()
        shipment = make_shipment(self.customer, weight_kg="1")

        self.assertTrue(re.match(r"^REP-\d{8}-", shipment.tracking_id))
        self.assertEqual(shipment.pricing_version_id, config.pk)
        self.assertFalse(shipment.needs_reprice)
        self.assertIsNotNone(shipment.last_priced_at)
        self.assertEqual(shipment.grand_total, Decimal("150.00"))
        self.assertEqual(shipment.total_due, Decimal("150.00"))
        self.assertEqual(shipment.balance, Decimal("150.00"))
        self.assertEqual(shipment.payment_status, "PENDING")
        self.assertTrue(shipment.price_breakdown["min_charge_applied"])

        types = list(shipment.logs.values_list("type", flat=True))
        self.assertEqual(types, [ShipmentLog.INFO, ShipmentLog.PRICING])
        dispatch = InvoiceDispatch.objects.get(shipment=shipment)
        self.assertEqual(dispatch.reason, InvoiceDispatch.REASON_CREATED)

    def test_preset_box_drives_chargeable_weight(self):
        make_pricing()
        shipment = make_shipment(self.customer, weight_kg="2", box=BoxSelection.preset(5))
        self.assertEqual(shipment.box_code, 5)
        self.assertEqual(shipment.volumetric_weight_kg, Decimal("7.3984"))
        self.assertEqual(shipment.chargeable_weight_kg, Decimal("7.3984"))
        self.assertEqual(shipment.grand_total, Decimal("887.81"))

    def test_without_active_pricing_flags_needs_reprice(self):
        shipment = make_shipment(self.customer)
        self.assertTrue(shipment.needs_reprice)
        self.assertIsNone(shipment.pricing_version)
        self.assertEqual(shipment.grand_total, Decimal("0"))
        self.assertEqual(shipment.chargeable_weight_kg, Decimal("1"))
        self.assertTrue(shipment.logs.filter(type=ShipmentLog.WARN).exists())
        self.assertFalse(InvoiceDispatch.objects.exists())

    def test_overweight_preset_box_is_flagged(self):
        make_pricing()
        shipment = make_shipment(self.customer, weight_kg="10", box=BoxSelection.preset(3))
        self.assertEqual(shipment.chargeable_weight_kg, Decimal("10"))
        self.assertIs(shipment.price_breakdown["over_box_limit"], True)
        warning = shipment.logs.get(type=ShipmentLog.WARN)
        self.assertIn("exceeds box 3 limit of 3.5 kg", warning.message)
        self.assertEqual(warning.meta["box_code"], 3)

    def test_box_within_limit_is_not_flagged(self):
        make_pricing()
        shipment = make_shipment(self.customer, weight_kg="3", box=BoxSelection.preset(3))
        self.assertIs(shipment.price_breakdown["over_box_limit"], False)
        self.assertFalse(shipment.logs.filter(type=ShipmentLog.WARN).exists())

    def test_remote_province_and_itemised_extras_are_charged(self):
        make_pricing(
            remote_area_fee="50",
            remote_provinces=["Badakhshan"],
            other_charges=[{"label": "Insurance", "amount": "10"}],
        )
        shipment = make_shipment(
            self.customer,
            weight_kg="2",
            delivery_province=" badakhshan ",
            other_charges=(OtherCharge("Packaging", Decimal("5")),),
        )
        shipment.refresh_from_db()
        self.assertEqual(shipment.delivery_province, "badakhshan")
        self.assertEqual(shipment.other_charges, [{"label": "Packaging", "amount": "5"}])
        self.assertEqual(shipment.remote_surcharge, Decimal("50.00"))
        self.assertEqual(shipment.other_fees, Decimal("15.00"))
        self.assertEqual(shipment.grand_total, Decimal("305.00"))
        self.assertEqual(
            shipment.price_breakdown["other_charges"],
            [{"label": "Packaging", "amount": "5.00"}, {"label": "Insurance", "amount": "10.00"}],
        )

    def test_bad_box_code_saves_nothing(self):
        make_pricing()
        with self.assertRaises(InvalidBoxCode):
            make_shipment(self.customer, box=BoxSelection.preset(42))
        self.assertEqual(Shipment.objects.count(), 0)

    def test_agents_cannot_register(self):
        with self.assertRaises(ShipmentDenied):
            make_shipment(self.agent)

    def test_admin_registers_on_behalf_of_sender(self):
        intake = ShipmentIntake(parcel=ParcelSpec(weight_kg=Decimal("1")), sender_id=self.customer.pk)
        shipment = create_shipment(principal(self.admin), intake)
        self.assertEqual(shipment.sender_id, self.customer.pk)

    def test_customer_cannot_register_for_someone_else(self):
        intake = ShipmentIntake(parcel=ParcelSpec(weight_kg=Decimal("1")), sender_id=self.admin.pk)
        shipment = create_shipment(principal(self.customer), intake)
        self.assertEqual(shipment.sender_id, self.customer.pk)

    def test_rejects_zero_pieces_and_unknown_payment_mode(self):
        with self.assertRaises(InvalidShipmentInput):
            make_shipment(self.customer, pieces=0)
        intake = ShipmentIntake(parcel=ParcelSpec(weight_kg=Decimal("1")), payment_mode="LATER")
        with self.assertRaises(InvalidShipmentInput):
            create_shipment(principal(self.customer), intake)

    def test_non_numeric_counts_are_input_errors(self):
        for parcel in (
            ParcelSpec(weight_kg=Decimal("1"), pieces="abc"),
            ParcelSpec(weight_kg=Decimal("1"), is_cod=True, cod_amount="x"),
            ParcelSpec(weight_kg=Decimal("1"), is_cod=True, cod_amount="NaN"),
        ):
            with self.assertRaises(InvalidShipmentInput):
                create_shipment(principal(self.customer), ShipmentIntake(parcel=parcel))
        self.assertFalse(Shipment.objects.exists())

    def test_intake_serializer(self):
        ser = ShipmentIntakeSerializer(
            data={"weight_kg": "2.5", "box_kind": "PRESET", "box_code": 4, "service_type": "same_day", "receiver_name": "Bob"}
        )
        self.assertTrue(ser.is_valid(), ser.errors)
        intake = ser.to_intake()
        self.assertEqual(intake.parcel.box, BoxSelection.preset(4))
        self.assertEqual(intake.parcel.service_type, "SAME_DAY")
        self.assertEqual(intake.payment_mode, "PICKUP")


class UpdateChargeableInputsTests(TestCase):
    def setUp(self):
        make_pricing()
        self.customer = make_user("alice")
        self.admin = make_user("boss", role="admin")
        self.shipment = make_shipment(self.customer, weight_kg="1")

    def test_owner_edits_before_pickup_and_charges_wait_for_reprice(self):
        updated = update_chargeable_inputs(
            principal(self.customer), self.shipment.pk, ChargeableUpdate(weight_kg=Decimal("3"))
        )
        self.assertEqual(updated.chargeable_weight_kg, Decimal("3"))
        self.assertTrue(updated.needs_reprice)
        self.assertEqual(updated.grand_total, Decimal("150.00"))
        log = updated.logs.order_by("-id").first()
        self.assertIn("weight_kg", log.message)

    def test_owner_locked_out_once_pickup_scheduled(self):
        update_status(principal(self.admin), self.shipment.pk, "PICKUP_SCHEDULED")
        with self.assertRaises(ShipmentDenied):
            update_chargeable_inputs(principal(self.customer), self.shipment.pk, ChargeableUpdate(pieces=2))
        # admins may still correct it
        updated = update_chargeable_inputs(principal(self.admin), self.shipment.pk, ChargeableUpdate(pieces=2))
        self.assertEqual(updated.pieces, 2)

    def test_empty_update_is_a_no_op(self):
        before = self.shipment.logs.count()
        updated = update_chargeable_inputs(principal(self.admin), self.shipment.pk, ChargeableUpdate())
        self.assertFalse(updated.needs_reprice)
        self.assertEqual(updated.logs.count(), before)

    def test_zero_pieces_rejected(self):
        with self.assertRaises(InvalidShipmentInput):
            update_chargeable_inputs(principal(self.admin), self.shipment.pk, ChargeableUpdate(pieces=0))

    def test_garbled_cod_amount_rejected(self):
        with self.assertRaises(InvalidShipmentInput) as ctx:
            update_chargeable_inputs(principal(self.admin), self.shipment.pk, ChargeableUpdate(cod_amount="12,5"))
        self.assertEqual(ctx.exception.extra["field"], "cod_amount")

    def test_province_and_extras_are_chargeable_inputs(self):
        updated = update_chargeable_inputs(
            principal(self.customer),
            self.shipment.pk,
            ChargeableUpdate(pickup_province="Nuristan ", other_charges=(OtherCharge("Fragile", Decimal("7")),)),
        )
        self.assertTrue(updated.needs_reprice)
        self.assertEqual(updated.pickup_province, "Nuristan")
        self.assertEqual(updated.parcel_spec().other_charges, (OtherCharge("Fragile", Decimal("7")),))
        log = updated.logs.order_by("-id").first()
        self.assertEqual(log.meta["fields"], ["pickup_province", "other_charges"])

    def test_overweight_box_on_update_logs_a_warning(self):
        updated = update_chargeable_inputs(
            principal(self.admin),
            self.shipment.pk,
            ChargeableUpdate(weight_kg=Decimal("5"), box=BoxSelection.preset(3)),
        )
        self.assertTrue(updated.logs.filter(type=ShipmentLog.WARN, message__contains="exceeds box 3").exists())

    def test_update_serializer_only_reports_sent_keys(self):
        ser = ChargeableUpdateSerializer(data={"weight_kg": "4"})
        self.assertTrue(ser.is_valid(), ser.errors)
        self.assertEqual(ser.to_update().changed_fields(), ["weight_kg"])
