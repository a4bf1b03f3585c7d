"""
Pricing configuration repository and administration.

The active configuration is always read from the database at the point of
use; nothing here caches it between calls.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from django.db import transaction

from ..dataclasses import ParcelSpec, Quote, WeightResult
from ..models import PricingConfiguration
from ..serializers import PricingConfigurationSerializer
from .calculator import price_parcel
from .exceptions import (
    InvalidPricingConfiguration,
    NoActivePricing,
    PricingConfigurationLocked,
    PricingVersionNotFound,
)

logger = logging.getLogger(__name__)


# --------------------- Lookups ---------------------

def find_active() -> Optional[PricingConfiguration]:
    return PricingConfiguration.objects.find_active()


def resolve_configuration(version=None) -> PricingConfiguration:
    """
    Pinned version (id or label) if given, otherwise the active configuration.

    Archived configurations stay resolvable by version so historical
    shipments can be repriced against them.
    """
    if version not in (None, ""):
        config = PricingConfiguration.objects.get_version(version)
        if config is None:
            raise PricingVersionNotFound(f"Pricing version '{version}' not found", version=str(version))
        return config
    config = find_active()
    if config is None:
        raise NoActivePricing()
    return config


def list_configurations() -> List[PricingConfiguration]:
    return list(
        PricingConfiguration.objects.prefetch_related("zones", "service_multipliers", "other_charges").order_by(
            "-active", "-created_at", "-id"
        )
    )


def quote_active(spec: ParcelSpec, version=None) -> Tuple[WeightResult, Quote]:
    """Price a parcel without a shipment (public estimate, admin preview)."""
    config = resolve_configuration(version)
    return price_parcel(spec, config.to_rates())


# --------------------- Administration ---------------------

def _validated(serializer):
    if not serializer.is_valid():
        raise InvalidPricingConfiguration(errors=serializer.errors)
    return serializer


def _lock(config_id) -> PricingConfiguration:
    config = PricingConfiguration.objects.select_for_update().filter(pk=config_id).first()
    if config is None:
        raise PricingVersionNotFound(f"Pricing configuration {config_id} not found", version=str(config_id))
    return config


def create_configuration(data: dict, actor=None, activate: bool = False) -> PricingConfiguration:
    serializer = _validated(PricingConfigurationSerializer(data=data))
    with transaction.atomic():
        config = serializer.save(created_by=actor)
        logger.info("Pricing configuration created: %s (id=%s, mode=%s)", config.name, config.pk, config.mode)
        if activate:
            config = activate_configuration(config.pk)
    return config


def update_configuration(config_id, data: dict, partial: bool = True) -> PricingConfiguration:
    with transaction.atomic():
        config = _lock(config_id)
        if config.archived:
            raise PricingConfigurationLocked(f"Pricing '{config.name}' is archived", pricing_id=config.pk)
        serializer = _validated(PricingConfigurationSerializer(config, data=data, partial=partial))
        config = serializer.save()
    logger.info("Pricing configuration updated: %s (id=%s)", config.name, config.pk)
    return config


def activate_configuration(config_id) -> PricingConfiguration:
    with transaction.atomic():
        config = _lock(config_id)
        if config.archived:
            raise PricingConfigurationLocked(f"Pricing '{config.name}' is archived", pricing_id=config.pk)
        if not config.active:
            # clear the old active row first so the partial unique index never sees two
            PricingConfiguration.objects.filter(active=True).exclude(pk=config.pk).update(active=False)
            config.active = True
            config.save(update_fields=["active", "updated_at"])
    logger.info("Pricing configuration activated: %s (id=%s)", config.name, config.pk)
    return config


def deactivate_configuration(config_id) -> PricingConfiguration:
    with transaction.atomic():
        config = _lock(config_id)
        if config.active:
            config.active = False
            config.save(update_fields=["active", "updated_at"])
    logger.info("Pricing configuration deactivated: %s (id=%s)", config.name, config.pk)
    return config


def archive_configuration(config_id) -> PricingConfiguration:
    with transaction.atomic():
        config = _lock(config_id)
        if not config.archived or config.active:
            config.active = False
            config.archived = True
            config.save(update_fields=["active", "archived", "updated_at"])
    logger.info("Pricing configuration archived: %s (id=%s)", config.name, config.pk)
    return config
