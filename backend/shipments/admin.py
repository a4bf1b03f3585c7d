from django.contrib import admin, messages

from accounts.roles import Principal
from core.exceptions import DomainError
from payments.models import PaymentEntry
from shipments.models import Shipment, ShipmentLog
from shipments.services.reprice import apply_reprice


class ShipmentLogInline(admin.TabularInline):
    model = ShipmentLog
    extra = 0
    can_delete = False
    fields = ("created_at", "type", "message", "actor")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


class PaymentEntryInline(admin.TabularInline):
    model = PaymentEntry
    extra = 0
    can_delete = False
    fields = ("created_at", "amount", "method", "channel", "txn_ref", "voided", "note")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Shipment)
class ShipmentAdmin(admin.ModelAdmin):
    list_display = (
        "tracking_id",
        "sender",
        "status",
        "chargeable_weight_kg",
        "grand_total",
        "balance",
        "payment_status",
        "needs_reprice",
        "created_at",
    )
    list_filter = ("status", "payment_status", "needs_reprice", "service_type")
    search_fields = ("tracking_id", "receiver_name", "receiver_phone", "sender__username")
    readonly_fields = (
        "tracking_id",
        "status",
        "volumetric_weight_kg",
        "chargeable_weight_kg",
        "base_charge",
        "service_charge",
        "fuel_surcharge",
        "remote_surcharge",
        "other_fees",
        "cod_fee",
        "charges_total",
        "tax",
        "grand_total",
        "price_breakdown",
        "pricing_version",
        "last_priced_at",
        "total_due",
        "total_paid",
        "balance",
        "payment_status",
        "cancellation_reason",
        "cancelled_at",
        "cancelled_by",
    )
    inlines = [PaymentEntryInline, ShipmentLogInline]
    actions = ["reprice_with_active"]

    def reprice_with_active(self, request, queryset):
        actor = Principal.from_user(request.user)
        repriced = 0
        for shipment in queryset:
            try:
                apply_reprice(shipment.pk, actor=actor)
            except DomainError as exc:
                messages.warning(request, f"{shipment.tracking_id}: {exc.message}")
            else:
                repriced += 1
        messages.info(request, f"Repriced {repriced} shipment(s).")

    reprice_with_active.short_description = "Reprice with active configuration"
