from django.contrib import admin, messages

from pricing.models import PricingConfiguration, PricingOtherCharge, PricingZone, ServiceMultiplier
from pricing.services.configuration import activate_configuration, archive_configuration
from pricing.services.exceptions import PricingError


class PricingZoneInline(admin.TabularInline):
    model = PricingZone
    extra = 0


class ServiceMultiplierInline(admin.TabularInline):
    model = ServiceMultiplier
    extra = 0


class PricingOtherChargeInline(admin.TabularInline):
    model = PricingOtherCharge
    extra = 0


@admin.register(PricingConfiguration)
class PricingConfigurationAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "name",
        "mode",
        "currency",
        "per_kg_rate",
        "min_charge",
        "volumetric_divisor",
        "active",
        "archived",
        "updated_at",
    )
    list_filter = ("mode", "active", "archived", "currency")
    search_fields = ("name",)
    readonly_fields = ("active", "archived", "created_by", "created_at", "updated_at")
    inlines = [PricingZoneInline, ServiceMultiplierInline, PricingOtherChargeInline]
    actions = ["activate_selected", "archive_selected"]

    def save_model(self, request, obj, form, change):
        if not change and obj.created_by_id is None:
            obj.created_by = request.user
        super().save_model(request, obj, form, change)

    def activate_selected(self, request, queryset):
        if queryset.count() != 1:
            messages.error(request, "Select exactly one configuration to activate.")
            return
        config = queryset.first()
        try:
            activate_configuration(config.pk)
        except PricingError as exc:
            messages.error(request, f"{config.name}: {exc.message}")
            return
        messages.info(request, f"{config.name} is now the active pricing.")

    activate_selected.short_description = "Activate configuration"

    def archive_selected(self, request, queryset):
        for config in queryset:
            archive_configuration(config.pk)
        messages.info(request, f"Archived {queryset.count()} configuration(s).")

    archive_selected.short_description = "Archive configurations"
