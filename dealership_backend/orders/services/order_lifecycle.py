"""
ORDER LIFECYCLE DOMAIN RULES

This module defines the ONLY allowed lifecycle transitions
for Order entities.

DESIGN PRINCIPLES:
- No database writes
- No stock mutation
- No side effects
- Single source of truth (also used to replay history)
"""

from core.exceptions import InvalidTransition
from orders.models import Order

S = Order.Status

# ============================================================
# STATE DEFINITIONS
# ============================================================

INITIAL_STATUS = S.PENDING

TERMINAL_STATES = {
    S.COMPLETED,
    S.CANCELLED,
}

ALLOWED_TRANSITIONS = {
    S.PENDING: {S.CONFIRMED, S.HALF_PAYMENT, S.CANCELLED},
    S.CONFIRMED: {S.HALF_PAYMENT, S.CANCELLED},
    S.HALF_PAYMENT: {S.FULLY_PAYMENT, S.CANCELLED},
    S.FULLY_PAYMENT: {S.DELIVERED, S.CANCELLED},
    S.DELIVERED: {S.COMPLETED, S.CANCELLED},
}

# states in which a signed contract may be uploaded
CONTRACT_UPLOAD_STATES = {S.PENDING, S.CONFIRMED}

# states in which stock may be soft-held / delivery scheduled
PAID_STATES = {S.HALF_PAYMENT, S.FULLY_PAYMENT}

STATUS_LABELS = {value: label for value, label in S.choices}


# ============================================================
# DOMAIN RULES
# ============================================================


def can_transition(*, from_status: str, to_status: str) -> bool:
    if from_status in TERMINAL_STATES:
        return False

    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def validate_transition(*, order: Order, target_status: str):
    if not can_transition(from_status=order.status, to_status=target_status):
        raise InvalidTransition(
            f"Order {order.code} cannot transition from "
            f"'{order.status}' to '{target_status}'.",
            current=order.status,
            requested=target_status,
        )


def require_status(*, order: Order, allowed, action: str):
    """Guard for operations that do not change status (contract, delivery scheduling)."""
    if order.status not in allowed:
        raise InvalidTransition(
            f"Cannot {action} while order {order.code} is '{order.status}'.",
            current=order.status,
            requested=action,
        )
