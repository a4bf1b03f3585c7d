from __future__ import annotations

from rest_framework import serializers

from pricing.serializers import ParcelSpecSerializer

from .dataclasses import ChargeableUpdate, ShipmentIntake
from .models import Shipment


# ---------- INPUT STRUCTS ----------
class ShipmentIntakeSerializer(ParcelSpecSerializer):
    sender_id = serializers.IntegerField(required=False, allow_null=True)
    receiver_name = serializers.CharField(max_length=120, required=False, allow_blank=True, default="")
    receiver_phone = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    pickup_address = serializers.CharField(required=False, allow_blank=True, default="")
    delivery_address = serializers.CharField(required=False, allow_blank=True, default="")
    payment_mode = serializers.ChoiceField(choices=Shipment.PAYMENT_MODE_CHOICES, default=Shipment.PAYMENT_MODE_PICKUP)
    payment_method = serializers.ChoiceField(choices=Shipment.PAYMENT_METHOD_CHOICES, default=Shipment.PAYMENT_METHOD_CASH)

    def to_intake(self) -> ShipmentIntake:
        data = self.validated_data
        return ShipmentIntake(
            parcel=self.to_parcel_spec(),
            sender_id=data.get("sender_id"),
            receiver_name=data["receiver_name"],
            receiver_phone=data["receiver_phone"],
            pickup_address=data["pickup_address"],
            delivery_address=data["delivery_address"],
            payment_mode=data["payment_mode"],
            payment_method=data["payment_method"],
        )


class ChargeableUpdateSerializer(ParcelSpecSerializer):
    """Partial update of chargeable inputs; only keys present in the payload change."""

    def to_update(self) -> ChargeableUpdate:
        data = self.validated_data
        spec = self.to_parcel_spec()
        has_box = "box_kind" in data or any(k in data for k in ("length_cm", "width_cm", "height_cm"))
        return ChargeableUpdate(
            weight_kg=spec.weight_kg if "weight_kg" in self.initial_data else None,
            pieces=spec.pieces if "pieces" in self.initial_data else None,
            box=spec.box if has_box else None,
            dimensions=spec.dimensions if has_box else None,
            service_type=spec.service_type if "service_type" in self.initial_data else None,
            zone_name=(data.get("zone_name") or "") if "zone_name" in self.initial_data else None,
            is_cod=spec.is_cod if "is_cod" in self.initial_data else None,
            cod_amount=spec.cod_amount if "cod_amount" in self.initial_data else None,
            pickup_province=(data.get("pickup_province") or "") if "pickup_province" in self.initial_data else None,
            delivery_province=(data.get("delivery_province") or "") if "delivery_province" in self.initial_data else None,
            other_charges=spec.other_charges if "other_charges" in self.initial_data else None,
        )

