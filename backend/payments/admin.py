from django.contrib import admin

from payments.models import PaymentEntry


@admin.register(PaymentEntry)
class PaymentEntryAdmin(admin.ModelAdmin):
    list_display = ("id", "shipment", "amount", "method", "channel", "voided", "collected_by", "created_at")
    list_filter = ("method", "channel", "voided")
    search_fields = ("shipment__tracking_id", "txn_ref")
    readonly_fields = (
        "shipment",
        "amount",
        "method",
        "channel",
        "txn_ref",
        "note",
        "collected_by",
        "recorded_by",
        "voided",
        "voided_at",
        "voided_by",
        "created_at",
    )

    # entries are written through the ledger services only
    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
