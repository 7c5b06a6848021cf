"""
DEALER VEHICLE REQUEST LIFECYCLE RULES

No database writes, no side effects. Single source of truth for
transitions and history replay.
"""

from core.exceptions import InvalidTransition
from vehicle_requests.models import DealerVehicleRequest

S = DealerVehicleRequest.Status

INITIAL_STATUS = S.PENDING

TERMINAL_STATES = {
    S.REJECTED,
    S.COMPLETED,
    S.CANCELED,
}

ALLOWED_TRANSITIONS = {
    S.PENDING: {S.APPROVED, S.REJECTED, S.CANCELED},
    S.APPROVED: {S.IN_PROGRESS, S.CANCELED},
    S.IN_PROGRESS: {S.DELIVERED},
    S.DELIVERED: {S.COMPLETED},
}

# lifecycle stamp written on entering each state
STATUS_TIMESTAMP_FIELD = {
    S.APPROVED: "approved_at",
    S.REJECTED: "rejected_at",
    S.IN_PROGRESS: "in_progress_at",
    S.DELIVERED: "delivered_at",
    S.COMPLETED: "completed_at",
    S.CANCELED: "canceled_at",
}


def can_transition(*, from_status: str, to_status: str) -> bool:
    if from_status in TERMINAL_STATES:
        return False
    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def validate_transition(*, vehicle_request: DealerVehicleRequest, target_status: str):
    if not can_transition(from_status=vehicle_request.status, to_status=target_status):
        raise InvalidTransition(
            f"Request {vehicle_request.code} cannot transition from "
            f"'{vehicle_request.status}' to '{target_status}'.",
            current=vehicle_request.status,
            requested=target_status,
        )
