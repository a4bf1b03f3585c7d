from django.db import models


class InvoiceDispatch(models.Model):
    """Outbox row: one request to (re)render and deliver a shipment invoice."""

    REASON_CREATED = "CREATED"
    REASON_REPRICED = "REPRICED"
    REASON_MANUAL = "MANUAL"
    REASON_CHOICES = [(REASON_CREATED, "Shipment created"), (REASON_REPRICED, "Shipment repriced"), (REASON_MANUAL, "Manual resend")]

    STATUS_PENDING = "PENDING"
    STATUS_SENT = "SENT"
    STATUS_SKIPPED = "SKIPPED"
    STATUS_FAILED = "FAILED"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_SENT, "Sent"),
        (STATUS_SKIPPED, "Skipped (no recipient)"),
        (STATUS_FAILED, "Failed"),
    ]

    shipment = models.ForeignKey("shipments.Shipment", on_delete=models.CASCADE, related_name="invoice_dispatches")
    reason = models.CharField(max_length=10, choices=REASON_CHOICES, default=REASON_CREATED)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    attempts = models.PositiveSmallIntegerField(default=0)
    channels = models.JSONField(default=list, blank=True)
    last_error = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    sent_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "invoice_dispatches"
        ordering = ["created_at", "id"]
        indexes = [models.Index(fields=["status", "created_at"], name="invoice_dispatch_status_idx")]

    def __str__(self):
        return f"Invoice for {self.shipment_id} ({self.reason}, {self.status})"
