from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from .services.summary import PaymentSummary


@dataclass
class PaymentEntryInput:
    amount: Decimal
    method: str
    channel: str
    txn_ref: str = ""
    note: str = ""


@dataclass
class PaymentPreference:
    mode: str
    method: str


@dataclass
class LedgerView:
    shipment_id: int
    summary: PaymentSummary
    preference: PaymentPreference
    entries: List = field(default_factory=list)
    currency: Optional[str] = None
