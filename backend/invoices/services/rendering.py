from __future__ import annotations

from dataclasses import dataclass

from django.template.loader import render_to_string
from django.utils import timezone


@dataclass
class RenderedInvoice:
    subject: str
    filename: str
    body: str
    short_message: str

    @property
    def content(self) -> bytes:
        return self.body.encode("utf-8")


def render_invoice(shipment, reason: str = "CREATED") -> RenderedInvoice:
    """Render the shipment's current charges and payment summary."""
    sender = shipment.sender
    context = {
        "shipment": shipment,
        "reason": reason,
        "issued_at": timezone.now(),
        "pricing_label": shipment.pricing_version.name if shipment.pricing_version_id else "",
        "sender_name": sender.get_full_name() or sender.get_username(),
        "extra_items": (shipment.price_breakdown or {}).get("other_charges") or [],
    }
    return RenderedInvoice(
        subject=f"Invoice {shipment.tracking_id}",
        filename=f"invoice-{shipment.tracking_id}.txt",
        body=render_to_string("invoices/invoice.txt", context),
        short_message=render_to_string("invoices/whatsapp.txt", context).strip(),
    )
