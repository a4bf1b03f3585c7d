from __future__ import annotations

from rest_framework import serializers

from shipments.models import Shipment

from .dataclasses import LedgerView, PaymentEntryInput
from .models import PaymentEntry


# ---------- INPUT STRUCTS ----------
class PaymentEntryInputSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    method = serializers.ChoiceField(choices=PaymentEntry.METHOD_CHOICES)
    channel = serializers.ChoiceField(choices=PaymentEntry.CHANNEL_CHOICES)
    txn_ref = serializers.CharField(max_length=120, required=False, allow_blank=True, default="")
    note = serializers.CharField(max_length=240, required=False, allow_blank=True, default="")

    def to_input(self) -> PaymentEntryInput:
        return PaymentEntryInput(**self.validated_data)


class PaymentPreferenceInputSerializer(serializers.Serializer):
    mode = serializers.ChoiceField(choices=Shipment.PAYMENT_MODE_CHOICES, required=False)
    method = serializers.ChoiceField(choices=Shipment.PAYMENT_METHOD_CHOICES, required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("Provide a mode, a method, or both")
        return attrs


# ---------- LEDGER READ ----------
class PaymentEntrySerializer(serializers.ModelSerializer):
    collected_by = serializers.CharField(source="collected_by.username", read_only=True, default=None)

    class Meta:
        model = PaymentEntry
        fields = [
            "id", "amount", "method", "channel", "txn_ref", "note",
            "collected_by", "voided", "voided_at", "created_at",
        ]
        read_only_fields = fields


class PaymentSummarySerializer(serializers.Serializer):
    total_due = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_paid = serializers.DecimalField(max_digits=12, decimal_places=2)
    balance = serializers.DecimalField(max_digits=12, decimal_places=2)
    status = serializers.CharField()


def ledger_payload(view: LedgerView) -> dict:
    return {
        "shipment_id": view.shipment_id,
        "currency": view.currency,
        "summary": PaymentSummarySerializer(view.summary).data,
        "preference": {"mode": view.preference.mode, "method": view.preference.method},
        "payments": PaymentEntrySerializer(view.entries, many=True).data,
    }
