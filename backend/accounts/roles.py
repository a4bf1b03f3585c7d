"""
Acting identity as seen by the services.

The identity layer hands the services an id and a role string; roles are
compared case-insensitively against a small fixed set and ownership is an id
match. Nothing here touches the database.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

SUPER_ADMIN = "super_admin"
ADMIN = "admin"
AGENT = "agent"
CUSTOMER = "customer"

ELEVATED_ROLES = frozenset({ADMIN, SUPER_ADMIN})


def normalize_role(role: Optional[str]) -> str:
    return str(role or "").strip().lower()


@dataclass(frozen=True)
class Principal:
    id: Optional[int]
    role: str = CUSTOMER

    @classmethod
    def from_user(cls, user) -> "Principal":
        role = SUPER_ADMIN if getattr(user, "is_superuser", False) else normalize_role(getattr(user, "role", ""))
        return cls(id=getattr(user, "pk", None), role=role)

    @classmethod
    def system(cls) -> "Principal":
        """Principal used by management commands and background jobs."""
        return cls(id=None, role=SUPER_ADMIN)

    @property
    def normalized_role(self) -> str:
        return normalize_role(self.role)

    @property
    def is_elevated(self) -> bool:
        return self.normalized_role in ELEVATED_ROLES

    @property
    def is_agent(self) -> bool:
        return self.normalized_role == AGENT

    def owns(self, owner_id) -> bool:
        return self.id is not None and owner_id is not None and str(self.id) == str(owner_id)
