# core/exceptions.py

"""
WORKFLOW DOMAIN ERRORS

Centralized, typed errors for every workflow component.

Each error carries:
- code:        stable machine-readable kind (API contract)
- http_status: status used by the API layer
- message:     human-readable text (surfaced verbatim)
- details:     optional structured context (current/requested state, wait time, ...)

No error here implies a partial state change: services raise before writing,
or inside transaction.atomic() so the whole operation rolls back.
"""

from __future__ import annotations


class WorkflowError(Exception):
    """Base exception for all workflow failures."""

    code = "workflow_error"
    http_status = 400

    def __init__(self, message: str = "", *, details: dict | None = None):
        self.message = message or self.__class__.__doc__ or self.code
        self.details = dict(details or {})
        super().__init__(self.message)

    def as_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(WorkflowError):
    """Malformed or missing input."""

    code = "validation_error"
    http_status = 400


class InvalidTransition(WorkflowError):
    """Requested state change is not legal from the current state."""

    code = "invalid_transition"
    http_status = 409

    def __init__(self, message: str = "", *, current: str = "", requested: str = "", details=None):
        self.current = current
        self.requested = requested
        merged = {"current_status": current, "requested_status": requested}
        merged.update(details or {})
        super().__init__(
            message or f"Cannot transition from '{current}' to '{requested}'.",
            details=merged,
        )


class ForbiddenTransition(WorkflowError):
    """Actor lacks the required role or ownership."""

    code = "forbidden_transition"
    http_status = 403


class TooEarlyError(WorkflowError):
    """A time guard is not yet satisfied."""

    code = "too_early"
    http_status = 409

    def __init__(self, message: str = "", *, remaining_seconds: int = 0, details=None):
        self.remaining_seconds = max(int(remaining_seconds), 0)
        self.remaining_hours = round(self.remaining_seconds / 3600, 2)
        merged = {
            "remaining_seconds": self.remaining_seconds,
            "remaining_hours": self.remaining_hours,
        }
        merged.update(details or {})
        super().__init__(message, details=merged)


class InsufficientStock(WorkflowError):
    """Stock ledger guard violated."""

    code = "insufficient_stock"
    http_status = 409


class InsufficientBalance(WorkflowError):
    """Monetary ledger guard violated (over-payment, negative balance)."""

    code = "insufficient_balance"
    http_status = 409


class ConcurrentModification(WorkflowError):
    """Optimistic-lock conflict. Safe to retry."""

    code = "concurrent_modification"
    http_status = 409


class NotFound(WorkflowError):
    """Referenced entity does not exist."""

    code = "not_found"
    http_status = 404
