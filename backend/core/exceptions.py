"""
Base error type shared by the pricing, shipment and payment services.

Every service error carries a stable ``code`` (the error kind) and a human
readable message. Callers render them however they like; the services never
know about HTTP.
"""

from __future__ import annotations

from typing import Any, Dict


class DomainError(Exception):
    """Base exception for all courier domain failures."""

    code = "DOMAIN_ERROR"
    default_message = "Operation failed."

    def __init__(self, message: str = None, **extra: Any):
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def as_dict(self) -> Dict[str, Any]:
        payload = {"code": self.code, "message": self.message}
        payload.update(self.extra)
        return payload
