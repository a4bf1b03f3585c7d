from django.contrib import admin, messages

from invoices.models import InvoiceDispatch
from invoices.services.dispatch import process_dispatch


@admin.register(InvoiceDispatch)
class InvoiceDispatchAdmin(admin.ModelAdmin):
    list_display = ("id", "shipment", "reason", "status", "attempts", "created_at", "sent_at")
    list_filter = ("status", "reason")
    search_fields = ("shipment__tracking_id",)
    readonly_fields = ("shipment", "reason", "status", "attempts", "channels", "last_error", "created_at", "updated_at", "sent_at")
    actions = ["retry_now"]

    def retry_now(self, request, queryset):
        for dispatch in queryset.select_related("shipment", "shipment__sender"):
            status = process_dispatch(dispatch)
            messages.info(request, f"Dispatch {dispatch.pk}: {status}")

    retry_now.short_description = "Retry delivery now"
