from __future__ import annotations

from django.db import transaction
from rest_framework import serializers

from .dataclasses import (
    BOX_KIND_CUSTOM,
    BOX_KIND_PRESET,
    DEFAULT_SERVICE_TYPE,
    BoxSelection,
    Dimensions,
    OtherCharge,
    ParcelSpec,
)
from .models import PricingConfiguration, PricingOtherCharge, PricingZone, ServiceMultiplier


# ---------- NESTED OVERRIDES ----------
class PricingZoneSerializer(serializers.ModelSerializer):
    class Meta:
        model = PricingZone
        fields = ["id", "name", "base_fee", "per_kg_rate", "per_piece_rate", "min_charge"]
        read_only_fields = ("id",)


class ServiceMultiplierSerializer(serializers.ModelSerializer):
    class Meta:
        model = ServiceMultiplier
        fields = ["id", "service_type", "multiplier"]
        read_only_fields = ("id",)

    def validate_service_type(self, value):
        return value.strip().upper()


class PricingOtherChargeSerializer(serializers.ModelSerializer):
    label = serializers.CharField(max_length=80, required=False, allow_blank=True, default="Other")

    class Meta:
        model = PricingOtherCharge
        fields = ["id", "label", "amount"]
        read_only_fields = ("id",)

    def validate_label(self, value):
        return value.strip() or "Other"


def _assert_unique(items, key, label):
    seen = set()
    for item in items:
        norm = str(item[key]).strip().upper()
        if norm in seen:
            raise serializers.ValidationError(f"Duplicate {label} '{item[key]}'")
        seen.add(norm)


# ---------- CONFIGURATION (write nested, read nested) ----------
class PricingConfigurationSerializer(serializers.ModelSerializer):
    zones = PricingZoneSerializer(many=True, required=False)
    service_multipliers = ServiceMultiplierSerializer(many=True, required=False)
    other_charges = PricingOtherChargeSerializer(many=True, required=False)
    remote_provinces = serializers.ListField(
        child=serializers.CharField(max_length=80, allow_blank=True), required=False, allow_empty=True
    )

    class Meta:
        model = PricingConfiguration
        fields = [
            "id", "name", "mode", "currency",
            "base_fee", "per_kg_rate", "per_piece_rate",
            "price_per_cubic_cm", "price_per_cubic_meter", "min_charge",
            "tax_percent", "fuel_surcharge_percent", "other_fixed_fees",
            "cod_fee_percent", "cod_fee_min", "volumetric_divisor",
            "remote_area_fee", "remote_provinces",
            "active", "archived", "notes",
            "zones", "service_multipliers", "other_charges",
            "created_at", "updated_at",
        ]
        # activation and archival go through the configuration service so the
        # single-active rule is enforced in one place
        read_only_fields = ("active", "archived", "created_at", "updated_at")

    def validate_zones(self, value):
        _assert_unique(value, "name", "zone")
        return value

    def validate_service_multipliers(self, value):
        _assert_unique(value, "service_type", "service type")
        return value

    def validate_remote_provinces(self, value):
        cleaned = [p.strip() for p in value if p.strip()]
        if len({p.lower() for p in cleaned}) != len(cleaned):
            raise serializers.ValidationError("Duplicate remote province")
        return cleaned

    def validate_currency(self, value):
        return value.strip().upper()

    @transaction.atomic
    def create(self, validated_data):
        zones = validated_data.pop("zones", [])
        multipliers = validated_data.pop("service_multipliers", [])
        extras = validated_data.pop("other_charges", [])
        config = PricingConfiguration.objects.create(**validated_data)
        self._write_children(config, zones, multipliers, extras)
        return config

    @transaction.atomic
    def update(self, instance, validated_data):
        zones = validated_data.pop("zones", None)
        multipliers = validated_data.pop("service_multipliers", None)
        extras = validated_data.pop("other_charges", None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.save()
        if zones is not None:
            instance.zones.all().delete()
            self._write_children(instance, zones, [], [])
        if multipliers is not None:
            instance.service_multipliers.all().delete()
            self._write_children(instance, [], multipliers, [])
        if extras is not None:
            instance.other_charges.all().delete()
            self._write_children(instance, [], [], extras)
        return instance

    @staticmethod
    def _write_children(config, zones, multipliers, extras):
        PricingZone.objects.bulk_create([PricingZone(configuration=config, **z) for z in zones])
        ServiceMultiplier.objects.bulk_create(
            [ServiceMultiplier(configuration=config, **m) for m in multipliers]
        )
        PricingOtherCharge.objects.bulk_create([PricingOtherCharge(configuration=config, **c) for c in extras])


# ---------- PARCEL INPUT (quote without a shipment) ----------
class OtherChargeInputSerializer(serializers.Serializer):
    label = serializers.CharField(max_length=80, required=False, allow_blank=True, default="Other")
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)


class ParcelSpecSerializer(serializers.Serializer):
    weight_kg = serializers.DecimalField(max_digits=10, decimal_places=3, min_value=0, default=0)
    pieces = serializers.IntegerField(min_value=1, default=1)
    box_kind = serializers.ChoiceField(choices=[BOX_KIND_PRESET, BOX_KIND_CUSTOM], required=False, allow_null=True)
    box_code = serializers.IntegerField(required=False, allow_null=True)
    length_cm = serializers.DecimalField(max_digits=8, decimal_places=2, required=False, allow_null=True)
    width_cm = serializers.DecimalField(max_digits=8, decimal_places=2, required=False, allow_null=True)
    height_cm = serializers.DecimalField(max_digits=8, decimal_places=2, required=False, allow_null=True)
    service_type = serializers.CharField(max_length=30, default=DEFAULT_SERVICE_TYPE)
    zone_name = serializers.CharField(max_length=60, required=False, allow_null=True, allow_blank=True)
    is_cod = serializers.BooleanField(default=False)
    cod_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, default=0)
    pickup_province = serializers.CharField(max_length=80, required=False, allow_null=True, allow_blank=True)
    delivery_province = serializers.CharField(max_length=80, required=False, allow_null=True, allow_blank=True)
    other_charges = OtherChargeInputSerializer(many=True, required=False)

    def to_parcel_spec(self) -> ParcelSpec:
        data = self.validated_data
        kind = data.get("box_kind")
        box = None
        dims = None
        if kind == BOX_KIND_PRESET:
            box = BoxSelection.preset(data.get("box_code"))
        elif kind == BOX_KIND_CUSTOM:
            box = BoxSelection.custom(data.get("length_cm"), data.get("width_cm"), data.get("height_cm"))
        elif all(data.get(k) for k in ("length_cm", "width_cm", "height_cm")):
            dims = Dimensions(data["length_cm"], data["width_cm"], data["height_cm"])
        return ParcelSpec(
            weight_kg=data["weight_kg"],
            pieces=data["pieces"],
            box=box,
            dimensions=dims,
            service_type=data["service_type"].strip().upper() or DEFAULT_SERVICE_TYPE,
            zone_name=data.get("zone_name") or None,
            is_cod=data["is_cod"],
            cod_amount=data["cod_amount"],
            pickup_province=(data.get("pickup_province") or "").strip() or None,
            delivery_province=(data.get("delivery_province") or "").strip() or None,
            other_charges=tuple(OtherCharge(c["label"], c["amount"]) for c in data.get("other_charges") or ()),
        )
