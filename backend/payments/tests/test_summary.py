import pytest
from decimal import Decimal
from types import SimpleNamespace

from ..services.summary import PAID, PARTIAL, PENDING, compute_summary


def entry(amount, voided=False):
    return SimpleNamespace(amount=Decimal(amount), voided=voided)


class TestComputeSummary:
    def test_nothing_paid(self):
        summary = compute_summary(Decimal("150"), [])
        assert summary.total_due == Decimal("150.00")
        assert summary.total_paid == Decimal("0.00")
        assert summary.balance == Decimal("150.00")
        assert summary.status == PENDING

    def test_partial_then_paid(self):
        assert compute_summary("150", [entry("100")]).status == PARTIAL
        summary = compute_summary("150", [entry("100"), entry("50")])
        assert summary.balance == Decimal("0.00")
        assert summary.status == PAID

    def test_voided_entries_never_count(self):
        summary = compute_summary("150", [entry("100", voided=True), entry("50")])
        assert summary.total_paid == Decimal("50.00")
        assert summary.balance == Decimal("100.00")
        assert summary.status == PARTIAL

    def test_balance_never_negative(self):
        # total shrank after a reprice
        summary = compute_summary("100", [entry("150")])
        assert summary.balance == Decimal("0.00")
        assert summary.status == PAID

    @pytest.mark.parametrize("due", [None, "0"])
    def test_unpriced_shipment_is_never_paid(self, due):
        summary = compute_summary(due, [])
        assert summary.balance == Decimal("0.00")
        assert summary.status == PENDING

    def test_as_dict(self):
        assert compute_summary("10", [entry("2.5")]).as_dict() == {
            "total_due": "10.00",
            "total_paid": "2.50",
            "balance": "7.50",
            "status": PARTIAL,
        }
