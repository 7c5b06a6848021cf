# vehicle_requests/services/request_fulfillment.py

"""
DEALER VEHICLE REQUEST SERVICE

- submit_request(): dealer asks its manufacturer for vehicles
- approve() / reject(): dealer-side decision
- mark_in_progress() / mark_delivered(): manufacturer-side fulfilment
- complete(): dealer confirms receipt
- cancel(): withdraw while pending / approved

mark_delivered() is the cross-ledger step: it credits dealer stock for every
line AND accrues one debt item per line, in the same transaction.

Authorization and tenant scoping are done by the workflow orchestrator.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils import timezone

from core.concurrency import guarded_update, lock_for_update
from core.exceptions import ValidationError
from core.history import append_event, get_history, replay_status
from core.models import StatusHistoryEvent
from debts.services import debt_ledger
from vehicle_requests.models import DealerVehicleRequest, DealerVehicleRequestItem
from vehicle_requests.services.request_lifecycle import (
    ALLOWED_TRANSITIONS,
    INITIAL_STATUS,
    STATUS_TIMESTAMP_FIELD,
    validate_transition,
)
from vehicles.models import StockEntry, Vehicle
from vehicles.services import stock_ledger


logger = logging.getLogger("vehicle_requests")

REQUEST_REFERENCE = "vehicle_request"
S = DealerVehicleRequest.Status


def generate_request_code() -> str:
    return f"REQ{timezone.localtime().strftime('%y%m%d%H%M%S')}{secrets.token_hex(2).upper()}"


def _lock(vehicle_request: DealerVehicleRequest) -> DealerVehicleRequest:
    return lock_for_update(DealerVehicleRequest.objects, label="Vehicle request", pk=vehicle_request.pk)


def _transition(vehicle_request, target, *, user=None, notes: str = "", payload=None, when=None, **changes):
    validate_transition(vehicle_request=vehicle_request, target_status=target)
    old_status = vehicle_request.status

    changes[STATUS_TIMESTAMP_FIELD[target]] = when or timezone.now()
    guarded_update(vehicle_request, status=target, **changes)

    append_event(
        entity_type=StatusHistoryEvent.EntityType.VEHICLE_REQUEST,
        entity_id=vehicle_request.id,
        old_status=old_status,
        new_status=target,
        actor=user,
        notes=notes,
        payload=payload,
    )

    logger.info(
        "vehicle_request.transitioned",
        extra={
            "request_id": str(vehicle_request.id),
            "request_code": vehicle_request.code,
            "from_status": old_status,
            "to_status": target,
        },
    )
    return vehicle_request


def _resolve_vehicle(raw: dict, index: int) -> Vehicle:
    vehicle = raw.get("vehicle")
    if isinstance(vehicle, Vehicle):
        return vehicle

    vehicle_id = raw.get("vehicle_id") or vehicle
    if not vehicle_id:
        raise ValidationError(f"Item {index + 1}: vehicle_id is required.")
    try:
        return Vehicle.objects.get(pk=vehicle_id, is_active=True)
    except (Vehicle.DoesNotExist, DjangoValidationError, ValueError, TypeError) as exc:
        raise ValidationError(f"Unknown vehicle: {vehicle_id}", details={"vehicle_id": str(vehicle_id)}) from exc


@transaction.atomic
def submit_request(*, dealership, requested_by=None, items, notes: str = "", order=None) -> DealerVehicleRequest:
    if not items:
        raise ValidationError("A request needs at least one item.")

    lines = []
    manufacturer_ids = set()
    for index, raw in enumerate(items):
        if not isinstance(raw, dict):
            raise ValidationError(f"Item {index + 1} is malformed.")

        vehicle = _resolve_vehicle(raw, index)
        color = (raw.get("color") or "").strip()
        if not color:
            raise ValidationError(f"Item {index + 1}: color is required.")
        quantity = stock_ledger.to_quantity(raw.get("quantity"), field=f"item {index + 1} quantity")

        manufacturer_ids.add(vehicle.manufacturer_id)
        lines.append({"vehicle": vehicle, "color": color, "quantity": quantity, "unit_price": vehicle.dealer_price})

    if len(manufacturer_ids) > 1:
        raise ValidationError("All requested vehicles must come from the same manufacturer.")

    if order is not None and order.dealership_id != dealership.id:
        raise ValidationError("Linked order belongs to another dealership.")

    vehicle_request = DealerVehicleRequest.objects.create(
        code=generate_request_code(),
        requested_by=requested_by if getattr(requested_by, "pk", None) else None,
        dealership=dealership,
        manufacturer_id=manufacturer_ids.pop(),
        order=order,
        notes=(notes or "").strip(),
    )
    DealerVehicleRequestItem.objects.bulk_create(
        [DealerVehicleRequestItem(request=vehicle_request, **line) for line in lines]
    )

    append_event(
        entity_type=StatusHistoryEvent.EntityType.VEHICLE_REQUEST,
        entity_id=vehicle_request.id,
        old_status="",
        new_status=INITIAL_STATUS,
        actor=requested_by,
        notes=notes,
        payload={"lines": len(lines), "quantity": sum(line["quantity"] for line in lines)},
    )

    logger.info(
        "vehicle_request.submitted",
        extra={
            "request_id": str(vehicle_request.id),
            "dealership_id": str(dealership.id),
            "manufacturer_id": str(vehicle_request.manufacturer_id),
        },
    )
    return vehicle_request


@transaction.atomic
def approve(*, vehicle_request, approver=None, notes: str = "") -> DealerVehicleRequest:
    vehicle_request = _lock(vehicle_request)
    return _transition(
        vehicle_request,
        S.APPROVED,
        user=approver,
        notes=notes,
        approved_by=approver if getattr(approver, "pk", None) else None,
    )


@transaction.atomic
def reject(*, vehicle_request, reason: str, approver=None) -> DealerVehicleRequest:
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("A rejection reason is required.")

    vehicle_request = _lock(vehicle_request)
    return _transition(
        vehicle_request,
        S.REJECTED,
        user=approver,
        notes=reason,
        approved_by=approver if getattr(approver, "pk", None) else None,
        rejection_reason=reason,
    )


@transaction.atomic
def mark_in_progress(*, vehicle_request, user=None, notes: str = "") -> DealerVehicleRequest:
    vehicle_request = _lock(vehicle_request)
    return _transition(vehicle_request, S.IN_PROGRESS, user=user, notes=notes)


@transaction.atomic
def mark_delivered(*, vehicle_request, user=None, delivered_at=None, notes: str = "") -> DealerVehicleRequest:
    """
    Credit dealer stock + accrue manufacturer debt for every line, atomically.
    """
    vehicle_request = _lock(vehicle_request)
    validate_transition(vehicle_request=vehicle_request, target_status=S.DELIVERED)

    now = timezone.now()
    if delivered_at in (None, ""):
        delivered_at = now
    elif not isinstance(delivered_at, datetime):
        raise ValidationError("delivered_at must be a datetime")
    if timezone.is_naive(delivered_at):
        delivered_at = timezone.make_aware(delivered_at)
    if delivered_at > now:
        raise ValidationError("delivered_at cannot be in the future.")

    items = list(vehicle_request.items.select_related("vehicle").order_by("id"))

    for item in items:
        stock_ledger.receive(
            vehicle=item.vehicle,
            color=item.color,
            owner_type=StockEntry.OwnerType.DEALER,
            owner_id=vehicle_request.dealership_id,
            quantity=item.quantity,
            performed_by=user,
            reference_type=REQUEST_REFERENCE,
            reference_id=vehicle_request.id,
            notes=f"Request {vehicle_request.code} delivered",
        )

    debt = debt_ledger.accrue(
        dealership=vehicle_request.dealership,
        manufacturer=vehicle_request.manufacturer,
        lines=[
            {
                "request": vehicle_request,
                "vehicle": item.vehicle,
                "color": item.color,
                "unit_price": item.unit_price,
                "quantity": item.quantity,
                "delivered_at": delivered_at,
            }
            for item in items
        ],
    )

    return _transition(
        vehicle_request,
        S.DELIVERED,
        user=user,
        notes=notes,
        when=delivered_at,
        payload={
            "debt_id": str(debt.id),
            "amount": sum(item.amount for item in items),
            "quantity": sum(int(item.quantity) for item in items),
        },
    )


@transaction.atomic
def complete(*, vehicle_request, user=None, notes: str = "") -> DealerVehicleRequest:
    vehicle_request = _lock(vehicle_request)
    return _transition(vehicle_request, S.COMPLETED, user=user, notes=notes)


@transaction.atomic
def cancel(*, vehicle_request, reason: str, user=None) -> DealerVehicleRequest:
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("A cancellation reason is required.")

    vehicle_request = _lock(vehicle_request)
    return _transition(vehicle_request, S.CANCELED, user=user, notes=reason, cancel_reason=reason)


def get_request_history(vehicle_request):
    return get_history(entity_type=StatusHistoryEvent.EntityType.VEHICLE_REQUEST, entity_id=vehicle_request.id)


def replay_request_status(events) -> str:
    return replay_status(events, transitions=ALLOWED_TRANSITIONS, initial_status=INITIAL_STATUS)
