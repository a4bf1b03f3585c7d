import pytest
from decimal import Decimal

from core.exceptions import DomainError
from core.utils import d, d_or_none, q2, q4


class TestMoneyHelpers:
    @pytest.mark.parametrize(
        "raw, expected",
        [("1.005", "1.01"), ("2.675", "2.68"), ("-1.005", "-1.01"), (7, "7.00"), (Decimal("0.004"), "0.00")],
    )
    def test_q2_rounds_half_up(self, raw, expected):
        assert q2(raw) == Decimal(expected)

    def test_q4(self):
        assert q4("7.39845") == Decimal("7.3985")

    def test_d_goes_through_str(self):
        assert d(0.1) == Decimal("0.1")
        assert d_or_none("") is None
        assert d_or_none(None) is None
        assert d_or_none("0") == Decimal("0")


class TestDomainError:
    def test_default_message_and_extra(self):
        class Boom(DomainError):
            code = "BOOM"
            default_message = "It went boom."

        err = Boom(shipment_id=4)
        assert str(err) == "It went boom."
        assert err.as_dict() == {"code": "BOOM", "message": "It went boom.", "shipment_id": 4}
