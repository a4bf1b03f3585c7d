from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from core.utils import ZERO, d, q2

PENDING = "PENDING"
PARTIAL = "PARTIAL"
PAID = "PAID"

PAYMENT_STATUS_CHOICES = [(PENDING, "Pending"), (PARTIAL, "Partially paid"), (PAID, "Paid")]


@dataclass(frozen=True)
class PaymentSummary:
    total_due: Decimal
    total_paid: Decimal
    balance: Decimal
    status: str

    def as_dict(self):
        return {
            "total_due": str(self.total_due),
            "total_paid": str(self.total_paid),
            "balance": str(self.balance),
            "status": self.status,
        }


def compute_summary(total_due, entries: Iterable) -> PaymentSummary:
    """Derive the summary from ledger entries; voided entries never count."""
    due = q2(d(total_due or ZERO))
    paid = q2(sum((d(e.amount) for e in entries if not e.voided), ZERO))
    balance = q2(max(ZERO, due - paid))
    if balance == 0 and due > 0:
        status = PAID
    elif paid > 0:
        status = PARTIAL
    else:
        status = PENDING
    return PaymentSummary(total_due=due, total_paid=paid, balance=balance, status=status)
