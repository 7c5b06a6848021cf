# workflow/context.py

"""
ACTOR CONTEXT

Who is acting, resolved from the authenticated user only.
Tenant (dealership / manufacturer) never comes from request data.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from core.exceptions import ForbiddenTransition
from permissions.roles import (
    DEALER_ROLES,
    ROLE_ADMIN,
    ROLE_DEALER_MANAGER,
    ROLE_EVM_STAFF,
    capabilities_for_user,
)
from vehicles.models import StockEntry


@dataclass(frozen=True)
class ActorContext:
    user: object
    role: str
    dealership_id: Optional[object] = None
    manufacturer_id: Optional[object] = None
    capabilities: frozenset = field(default_factory=frozenset)

    @classmethod
    def from_user(cls, user) -> "ActorContext":
        if user is None or not getattr(user, "is_authenticated", False):
            raise ForbiddenTransition("Authentication required.")

        role = ROLE_ADMIN if getattr(user, "is_superuser", False) else str(getattr(user, "role", "") or "")
        return cls(
            user=user,
            role=role,
            dealership_id=getattr(user, "dealership_id", None),
            manufacturer_id=getattr(user, "manufacturer_id", None),
            capabilities=frozenset(capabilities_for_user(user)),
        )

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_dealer(self) -> bool:
        return self.role in DEALER_ROLES

    @property
    def is_dealer_manager(self) -> bool:
        return self.role == ROLE_DEALER_MANAGER

    @property
    def is_manufacturer_staff(self) -> bool:
        return self.role == ROLE_EVM_STAFF

    def can(self, capability: str) -> bool:
        return capability in self.capabilities

    def require(self, capability: str) -> None:
        if not self.can(capability):
            raise ForbiddenTransition(
                f"Role '{self.role or 'unknown'}' is not allowed to perform this action.",
                details={"required_capability": capability},
            )

    def require_dealership(self):
        if not self.dealership_id:
            raise ForbiddenTransition("This action requires a dealership account.")
        return self.dealership_id

    def stock_scope(self) -> dict:
        """Filter kwargs for StockEntry rows this actor may see."""
        if self.is_admin:
            return {}
        if self.is_dealer and self.dealership_id:
            return {"owner_type": StockEntry.OwnerType.DEALER, "owner_id": self.dealership_id}
        if self.is_manufacturer_staff and self.manufacturer_id:
            return {"owner_type": StockEntry.OwnerType.MANUFACTURER, "owner_id": self.manufacturer_id}
        raise ForbiddenTransition("Account is not linked to a dealership or manufacturer.")
