# permissions/roles.py

from __future__ import annotations

from typing import Optional

from rest_framework.permissions import BasePermission


# =========================================================
# ROLE CONSTANTS
# =========================================================
ROLE_ADMIN = "admin"
ROLE_EVM_STAFF = "evm_staff"              # manufacturer-side staff
ROLE_DEALER_MANAGER = "dealer_manager"
ROLE_DEALER_STAFF = "dealer_staff"

DEALER_ROLES = {ROLE_DEALER_MANAGER, ROLE_DEALER_STAFF}


# =========================================================
# CAPABILITIES (THE REAL PERMISSION LANGUAGE)
# =========================================================
# Views and the orchestrator protect capabilities, not raw roles.
CAP_ORDERS_VIEW = "orders.view"
CAP_ORDERS_MANAGE = "orders.manage"       # create, contract, payments, delivery
CAP_ORDERS_CANCEL = "orders.cancel"

CAP_REQUESTS_VIEW = "requests.view"
CAP_REQUESTS_SUBMIT = "requests.submit"
CAP_REQUESTS_APPROVE = "requests.approve"  # dealer-side approve / reject
CAP_REQUESTS_FULFIL = "requests.fulfil"    # manufacturer-side in_progress / delivered

CAP_STOCK_VIEW = "stock.view"
CAP_STOCK_MANAGE = "stock.manage"          # receive, adjust totals

CAP_DEBTS_VIEW = "debts.view"
CAP_DEBTS_PAY = "debts.pay"

ALL_CAPABILITIES = {
    CAP_ORDERS_VIEW,
    CAP_ORDERS_MANAGE,
    CAP_ORDERS_CANCEL,
    CAP_REQUESTS_VIEW,
    CAP_REQUESTS_SUBMIT,
    CAP_REQUESTS_APPROVE,
    CAP_REQUESTS_FULFIL,
    CAP_STOCK_VIEW,
    CAP_STOCK_MANAGE,
    CAP_DEBTS_VIEW,
    CAP_DEBTS_PAY,
}


# =========================================================
# ROLE → CAPABILITY MAP
# =========================================================
ROLE_CAPABILITIES: dict[str, set[str]] = {
    ROLE_ADMIN: {
        *ALL_CAPABILITIES,
    },
    ROLE_EVM_STAFF: {
        CAP_REQUESTS_VIEW,
        CAP_REQUESTS_FULFIL,
        CAP_STOCK_VIEW,
        CAP_STOCK_MANAGE,
        CAP_DEBTS_VIEW,
    },
    ROLE_DEALER_MANAGER: {
        CAP_ORDERS_VIEW,
        CAP_ORDERS_MANAGE,
        CAP_ORDERS_CANCEL,
        CAP_REQUESTS_VIEW,
        CAP_REQUESTS_SUBMIT,
        CAP_REQUESTS_APPROVE,
        CAP_STOCK_VIEW,
        CAP_DEBTS_VIEW,
        CAP_DEBTS_PAY,
    },
    ROLE_DEALER_STAFF: {
        CAP_ORDERS_VIEW,
        CAP_ORDERS_MANAGE,
        CAP_REQUESTS_VIEW,
        CAP_REQUESTS_SUBMIT,
        CAP_STOCK_VIEW,
        # no cancel, approve or debt payments
    },
}


def get_user_role(user) -> Optional[str]:
    return getattr(user, "role", None)


def capabilities_for_user(user) -> set[str]:
    if getattr(user, "is_superuser", False):
        return set(ALL_CAPABILITIES)
    return set(ROLE_CAPABILITIES.get(get_user_role(user), set()))


def effective_capabilities_for(request, user) -> set[str]:
    """
    Capabilities for the authenticated user of a request.
    """
    return capabilities_for_user(user)


# =========================================================
# Capability Permissions
# =========================================================
class HasCapability(BasePermission):
    """
    Require a specific capability.

    Usage:
        permission_classes = [IsAuthenticated, HasCapability]
        view.required_capability = CAP_ORDERS_MANAGE
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_capability", None)
        if not required:
            # deny-by-default
            return False

        caps = effective_capabilities_for(request, user)
        return required in caps


class HasAnyCapability(BasePermission):
    """
    Require ANY capability from a set.

    Usage:
        view.required_any_capabilities = {CAP_STOCK_VIEW, CAP_STOCK_MANAGE}
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_any_capabilities", None)
        if not required:
            return False

        caps = effective_capabilities_for(request, user)
        return any(cap in caps for cap in set(required))
