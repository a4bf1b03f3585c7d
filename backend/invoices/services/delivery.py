"""
Invoice notifiers.

A notifier delivers one rendered invoice to one recipient and reports the
outcome instead of raising, so the dispatch worker can record it.
"""

from __future__ import annotations

import smtplib
from dataclasses import dataclass
from typing import List, Optional

import requests
from django.conf import settings
from django.core.mail import EmailMessage

from .rendering import RenderedInvoice


@dataclass
class DeliveryResult:
    channel: str
    ok: bool
    error: Optional[str] = None


class EmailNotifier:
    channel = "email"

    def recipient_for(self, shipment) -> Optional[str]:
        return (shipment.sender.email or "").strip() or None

    def deliver(self, recipient: str, invoice: RenderedInvoice) -> DeliveryResult:
        message = EmailMessage(
            subject=invoice.subject,
            body=invoice.short_message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            to=[recipient],
        )
        message.attach(invoice.filename, invoice.content, "text/plain")
        try:
            message.send(fail_silently=False)
        except (smtplib.SMTPException, OSError) as e:
            return DeliveryResult(self.channel, False, f"email: {e}")
        return DeliveryResult(self.channel, True)


class WhatsAppNotifier:
    channel = "whatsapp"

    def __init__(
        self,
        api_url: Optional[str] = None,
        phone_number_id: Optional[str] = None,
        access_token: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.api_url = (api_url or settings.WHATSAPP_API_URL).rstrip("/")
        self.phone_number_id = phone_number_id or settings.WHATSAPP_PHONE_NUMBER_ID
        self.access_token = access_token or settings.WHATSAPP_ACCESS_TOKEN
        self.timeout = timeout or settings.INVOICE_DISPATCH_TIMEOUT_SECONDS

    @property
    def configured(self) -> bool:
        return bool(self.phone_number_id and self.access_token)

    def recipient_for(self, shipment) -> Optional[str]:
        phone = (getattr(shipment.sender, "phone", "") or "").strip()
        return phone.lstrip("+") or None

    def deliver(self, recipient: str, invoice: RenderedInvoice) -> DeliveryResult:
        url = f"{self.api_url}/{self.phone_number_id}/messages"
        payload = {
            "messaging_product": "whatsapp",
            "to": recipient,
            "type": "text",
            "text": {"body": invoice.short_message},
        }
        headers = {"Authorization": f"Bearer {self.access_token}", "Content-Type": "application/json"}
        try:
            resp = requests.post(url, json=payload, headers=headers, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            return DeliveryResult(self.channel, False, f"whatsapp: {e}")
        return DeliveryResult(self.channel, True)


def load_notifiers() -> List:
    notifiers: List = []
    if settings.INVOICE_EMAIL_ENABLED:
        notifiers.append(EmailNotifier())
    whatsapp = WhatsAppNotifier()
    if whatsapp.configured:
        notifiers.append(whatsapp)
    return notifiers
