from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models


class PaymentEntry(models.Model):
    METHOD_CASH = "CASH"
    METHOD_CARD = "CARD"
    METHOD_ONLINE = "ONLINE"
    METHOD_BANK = "BANK"
    METHOD_CHOICES = [(METHOD_CASH, "Cash"), (METHOD_CARD, "Card"), (METHOD_ONLINE, "Online"), (METHOD_BANK, "Bank transfer")]

    CHANNEL_PICKUP = "PICKUP"
    CHANNEL_DELIVERY = "DELIVERY"
    CHANNEL_OFFICE = "OFFICE"
    CHANNEL_ONLINE = "ONLINE"
    CHANNEL_CHOICES = [
        (CHANNEL_PICKUP, "At pickup"),
        (CHANNEL_DELIVERY, "At delivery"),
        (CHANNEL_OFFICE, "At office"),
        (CHANNEL_ONLINE, "Online"),
    ]

    shipment = models.ForeignKey("shipments.Shipment", on_delete=models.PROTECT, related_name="payments")
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    method = models.CharField(max_length=10, choices=METHOD_CHOICES)
    channel = models.CharField(max_length=10, choices=CHANNEL_CHOICES)
    txn_ref = models.CharField(max_length=120, blank=True, default="")
    note = models.CharField(max_length=240, blank=True, default="")
    collected_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="collected_payments"
    )
    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="+"
    )
    voided = models.BooleanField(default=False)
    voided_at = models.DateTimeField(null=True, blank=True)
    voided_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "payment_entries"
        ordering = ["created_at", "id"]
        indexes = [models.Index(fields=["shipment", "voided"], name="payment_shipment_voided_idx")]

    def __str__(self):
        flag = " (void)" if self.voided else ""
        return f"{self.method} {self.amount} via {self.channel}{flag}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            stored = PaymentEntry.objects.filter(pk=self.pk).values("amount", "voided").first()
            if stored is not None:
                if stored["amount"] != self.amount:
                    raise ValidationError("Payment amounts are immutable; void the entry and record a new one.")
                if stored["voided"] and not self.voided:
                    raise ValidationError("A voided payment cannot be restored.")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Payment entries are never deleted; void them instead.")
