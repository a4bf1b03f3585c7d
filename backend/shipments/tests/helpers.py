from decimal import Decimal

from django.contrib.auth import get_user_model

from accounts.roles import Principal
from pricing.dataclasses import ParcelSpec
from pricing.services.configuration import create_configuration

from ..dataclasses import ShipmentIntake
from ..services.intake import create_shipment


def make_user(username, role="customer", **extra):
    return get_user_model().objects.create_user(username=username, password="pw", role=role, **extra)


def principal(user):
    return Principal.from_user(user)


def make_pricing(name="v1", activate=True, **overrides):
    data = {
        "name": name,
        "mode": "WEIGHT",
        "currency": "AFN",
        "per_kg_rate": "120",
        "per_piece_rate": "0",
        "min_charge": "150",
        "tax_percent": "0",
    }
    data.update(overrides)
    return create_configuration(data, activate=activate)


def make_shipment(sender, weight_kg="1", **parcel):
    intake = ShipmentIntake(parcel=ParcelSpec(weight_kg=Decimal(weight_kg), **parcel), receiver_name="Receiver")
    return create_shipment(principal(sender), intake)
