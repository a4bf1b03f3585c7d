"""
Pricing error hierarchy.

Input errors (bad box code, bad dimensions, bad weight) are raised before any
computation. Configuration errors are kept apart so callers can ask an admin
to configure pricing instead of retrying.
"""

from core.exceptions import DomainError


class PricingError(DomainError):
    """Base exception for box resolution, weights and price computation."""

    code = "PRICING_ERROR"


class InvalidBoxCode(PricingError):
    code = "INVALID_BOX_CODE"
    default_message = "Unknown box preset code."


class InvalidDimensions(PricingError):
    code = "INVALID_DIMENSIONS"
    default_message = "Length, width and height must all be positive numbers."


class InvalidWeight(PricingError):
    code = "INVALID_WEIGHT"
    default_message = "Declared weight must be a non-negative number."


class PricingUnavailable(PricingError):
    code = "PRICING_UNAVAILABLE"
    default_message = "No pricing configuration was supplied."


class PricingMisconfigured(PricingUnavailable):
    """A rate the selected mode needs is not configured (missing, not zero)."""

    code = "PRICING_MISCONFIGURED"
    default_message = "Pricing configuration is missing a required rate."


class NoActivePricing(PricingUnavailable):
    code = "NO_ACTIVE_PRICING"
    default_message = "No active pricing configuration."


class PricingVersionNotFound(PricingUnavailable):
    code = "PRICING_VERSION_NOT_FOUND"
    default_message = "Requested pricing version does not exist."


class PricingConfigurationLocked(PricingError):
    code = "PRICING_CONFIGURATION_LOCKED"
    default_message = "Archived pricing configurations cannot be changed or activated."


class InvalidPricingConfiguration(PricingError):
    code = "INVALID_PRICING_CONFIGURATION"
    default_message = "Pricing configuration failed validation."
