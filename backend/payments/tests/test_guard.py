import pytest
from decimal import Decimal
from types import SimpleNamespace

from accounts.roles import Principal

from ..services import guard

OWNER = Principal(id=1, role="customer")
ADMIN = Principal(id=2, role="ADMIN")
AGENT = Principal(id=3, role="agent")
OTHER_AGENT = Principal(id=4, role="agent")
STRANGER = Principal(id=5, role="customer")


def shipment(**overrides):
    values = dict(
        sender_id=1,
        pickup_agent_id=3,
        delivery_agent_id=None,
        is_cancelled=False,
        total_due=Decimal("150.00"),
        payment_status="PENDING",
    )
    values.update(overrides)
    return SimpleNamespace(**values)


class TestView:
    @pytest.mark.parametrize("who", [OWNER, ADMIN, AGENT])
    def test_allowed(self, who):
        assert guard.view_denial(who, shipment()) is None

    @pytest.mark.parametrize("who", [OTHER_AGENT, STRANGER])
    def test_denied(self, who):
        assert guard.view_denial(who, shipment())


class TestAdd:
    def test_cancelled_closes_the_ledger_for_everyone(self):
        reason = guard.add_denial(ADMIN, shipment(is_cancelled=True), "CASH", "OFFICE")
        assert "cancelled" in reason

    def test_unpriced(self):
        assert "priced" in guard.add_denial(ADMIN, shipment(total_due=Decimal("0")), "CASH", "OFFICE")

    def test_staff_may_record_anything(self):
        assert guard.add_denial(ADMIN, shipment(), "CASH", "PICKUP") is None
        assert guard.add_denial(AGENT, shipment(), "CARD", "DELIVERY") is None

    def test_unassigned_agent_denied(self):
        assert guard.add_denial(OTHER_AGENT, shipment(), "CASH", "PICKUP")

    def test_owner_only_online(self):
        assert guard.add_denial(OWNER, shipment(), "ONLINE", "ONLINE") is None
        assert guard.add_denial(OWNER, shipment(), "ONLINE", "OFFICE") is None
        assert "ONLINE" in guard.add_denial(OWNER, shipment(), "CASH", "ONLINE")
        assert guard.add_denial(OWNER, shipment(), "ONLINE", "PICKUP")

    def test_stranger_denied(self):
        assert guard.add_denial(STRANGER, shipment(), "ONLINE", "ONLINE")


class TestVoid:
    def test_admins_only(self):
        assert guard.void_denial(ADMIN, shipment()) is None
        assert guard.void_denial(Principal(id=9, role="Super_Admin"), shipment()) is None
        assert guard.void_denial(AGENT, shipment())
        assert guard.void_denial(OWNER, shipment())

    def test_cancelled(self):
        assert guard.void_denial(ADMIN, shipment(is_cancelled=True))


class TestChangeMethod:
    def test_owner_and_admin(self):
        assert guard.change_method_denial(OWNER, shipment()) is None
        assert guard.change_method_denial(ADMIN, shipment(payment_status="PARTIAL")) is None
        assert guard.change_method_denial(AGENT, shipment())

    def test_frozen_once_paid(self):
        assert guard.change_method_denial(ADMIN, shipment(payment_status="PAID"))


def test_collector_is_staff_only():
    assert guard.collector_id(ADMIN, shipment()) == 2
    assert guard.collector_id(AGENT, shipment()) == 3
    assert guard.collector_id(OWNER, shipment()) is None
