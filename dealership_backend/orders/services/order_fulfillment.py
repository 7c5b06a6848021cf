# orders/services/order_fulfillment.py

"""
======================================================
PATH: orders/services/order_fulfillment.py
======================================================
ORDER FULFILLMENT SERVICE

Lifecycle:
  pending -> confirmed -> halfPayment -> fullyPayment -> delivered -> completed
  cancelled from any non-terminal state

Side effects owned here:
- Contract sub-record (generate / signed upload)
- Payment receipts (deposit / final payment), paid_amount
- Stock ledger (soft holds, sale on delivery, reversal on cancel)
- Status history (one event per status change)

Rules:
- Every function runs inside transaction.atomic() and re-locks the order row.
- Order writes are version-guarded (core.concurrency.guarded_update).
- Guards raise before any write; nothing partial survives a failure.
- Authorization and tenant scoping are done by the workflow orchestrator.
======================================================
"""

from __future__ import annotations

import logging
import math
import secrets
from datetime import date, datetime, time, timedelta

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import F, Q
from django.utils import timezone

from core.concurrency import guarded_update, lock_for_update
from core.exceptions import (
    ConcurrentModification,
    InsufficientBalance,
    InvalidTransition,
    TooEarlyError,
    ValidationError,
)
from core.history import append_event, get_history, replay_status
from core.models import StatusHistoryEvent
from core.money import checked_add, to_money
from orders.models import (
    ContractDocument,
    Order,
    OrderContract,
    OrderItem,
    OrderPayment,
)
from orders.services.order_lifecycle import (
    ALLOWED_TRANSITIONS,
    CONTRACT_UPLOAD_STATES,
    INITIAL_STATUS,
    PAID_STATES,
    require_status,
    validate_transition,
)
from vehicles.models import StockReservation, Vehicle
from vehicles.services import stock_ledger


logger = logging.getLogger("orders")

ORDER_REFERENCE = "order"
S = Order.Status


# ============================================================
# HELPERS
# ============================================================

def _workflow_setting(key: str) -> int:
    return int(settings.WORKFLOW[key])


def _stamp() -> str:
    return timezone.localtime().strftime("%y%m%d%H%M%S")


def generate_order_code() -> str:
    return f"ORD{_stamp()}{secrets.token_hex(2).upper()}"


def generate_contract_number() -> str:
    return f"HD{_stamp()}"


def _lock(order: Order) -> Order:
    return lock_for_update(Order.objects, label="Order", pk=order.pk)


def _clean_text(value) -> str:
    return (value or "").strip()


def _transition(order: Order, target: str, *, user=None, notes: str = "", payload=None, guard=None, **changes) -> Order:
    """
    Validate, persist (version-guarded) and record one status change.
    """
    validate_transition(order=order, target_status=target)
    old_status = order.status

    guarded_update(order, guard=guard, status=target, **changes)

    append_event(
        entity_type=StatusHistoryEvent.EntityType.ORDER,
        entity_id=order.id,
        old_status=old_status,
        new_status=target,
        actor=user,
        notes=notes,
        payload=payload,
    )

    logger.info(
        "order.transitioned",
        extra={
            "order_id": str(order.id),
            "order_code": order.code,
            "from_status": old_status,
            "to_status": target,
            "version": order.version,
        },
    )
    return order


def _to_aware_datetime(value, *, field: str) -> datetime:
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time.min)
    else:
        raise ValidationError(f"{field} must be a date or datetime")

    if timezone.is_naive(dt):
        dt = timezone.make_aware(dt)
    return dt


# ============================================================
# ITEM NORMALIZATION
# ============================================================

def _normalize_options(raw) -> list[dict]:
    if raw in (None, ""):
        return []
    if not isinstance(raw, (list, tuple)):
        raise ValidationError("options must be a list")

    out = []
    for opt in raw:
        if not isinstance(opt, dict):
            raise ValidationError("each option must be an object")
        out.append(
            {
                "option_id": str(opt.get("option_id") or ""),
                "name": _clean_text(opt.get("name")),
                "price": to_money(opt.get("price", 0), field="option price"),
            }
        )
    return out


def _normalize_accessories(raw) -> list[dict]:
    if raw in (None, ""):
        return []
    if not isinstance(raw, (list, tuple)):
        raise ValidationError("accessories must be a list")

    out = []
    for acc in raw:
        if not isinstance(acc, dict):
            raise ValidationError("each accessory must be an object")
        out.append(
            {
                "accessory_id": str(acc.get("accessory_id") or ""),
                "name": _clean_text(acc.get("name")),
                "price": to_money(acc.get("price", 0), field="accessory price"),
                "quantity": stock_ledger.to_quantity(acc.get("quantity", 1), field="accessory quantity"),
            }
        )
    return out


def _resolve_vehicle(raw_item: dict) -> Vehicle:
    vehicle = raw_item.get("vehicle")
    if isinstance(vehicle, Vehicle):
        return vehicle

    vehicle_id = raw_item.get("vehicle_id") or vehicle
    if not vehicle_id:
        raise ValidationError("vehicle_id is required for every item")

    try:
        return Vehicle.objects.get(pk=vehicle_id, is_active=True)
    except (Vehicle.DoesNotExist, DjangoValidationError, ValueError, TypeError) as exc:
        raise ValidationError(f"Unknown vehicle: {vehicle_id}", details={"vehicle_id": str(vehicle_id)}) from exc


def normalize_items(items) -> list[dict]:
    """
    Validate raw order lines and compute each line's final_amount.
    Raises ValidationError on the first bad line.
    """
    if not items:
        raise ValidationError("An order needs at least one item.")

    lines = []
    for index, raw in enumerate(items):
        if not isinstance(raw, dict):
            raise ValidationError(f"Item {index + 1} is malformed.")

        vehicle = _resolve_vehicle(raw)
        color = _clean_text(raw.get("color"))
        if not color:
            raise ValidationError(f"Item {index + 1}: color is required.")

        quantity = stock_ledger.to_quantity(raw.get("quantity", 1), field=f"item {index + 1} quantity")

        unit_price = raw.get("unit_price")
        unit_price = int(vehicle.price) if unit_price in (None, "") else to_money(
            unit_price, field=f"item {index + 1} unit_price", allow_zero=False
        )

        discount = to_money(raw.get("discount") or 0, field=f"item {index + 1} discount")
        if discount > unit_price:
            raise ValidationError(
                f"Item {index + 1}: discount cannot exceed the unit price.",
                details={"discount": discount, "unit_price": unit_price},
            )

        options = _normalize_options(raw.get("options"))
        accessories = _normalize_accessories(raw.get("accessories"))

        lines.append(
            {
                "vehicle": vehicle,
                "vehicle_name": vehicle.display_name,
                "color": color,
                "quantity": quantity,
                "unit_price": unit_price,
                "discount": discount,
                "options": options,
                "accessories": accessories,
                "final_amount": OrderItem.compute_final_amount(
                    unit_price=unit_price,
                    discount=discount,
                    quantity=quantity,
                    options=options,
                    accessories=accessories,
                ),
            }
        )
    return lines


# ============================================================
# CREATE / CONFIRM
# ============================================================

@transaction.atomic
def create_order(
    *,
    dealership,
    customer,
    salesperson=None,
    items,
    payment_method: str = Order.PaymentMethod.CASH,
    notes: str = "",
    quote=None,
) -> Order:
    payment_method = _clean_text(payment_method) or Order.PaymentMethod.CASH
    if payment_method not in Order.PaymentMethod.values:
        raise ValidationError(
            f"payment_method must be one of {sorted(Order.PaymentMethod.values)}",
            details={"payment_method": payment_method},
        )

    if customer.dealership_id != dealership.id:
        raise ValidationError("Customer does not belong to this dealership.")

    lines = normalize_items(items)

    order = Order.objects.create(
        code=generate_order_code(),
        customer=customer,
        salesperson=salesperson if getattr(salesperson, "pk", None) else None,
        dealership=dealership,
        quote=quote,
        payment_method=payment_method,
        final_amount=sum(line["final_amount"] for line in lines),
        notes=_clean_text(notes),
        recipient_name=customer.full_name,
        recipient_phone=customer.phone,
    )

    OrderItem.objects.bulk_create([OrderItem(order=order, **line) for line in lines])
    OrderContract.objects.create(order=order)

    append_event(
        entity_type=StatusHistoryEvent.EntityType.ORDER,
        entity_id=order.id,
        old_status="",
        new_status=INITIAL_STATUS,
        actor=salesperson,
        notes=_clean_text(notes),
        payload={
            "final_amount": order.final_amount,
            "items": len(lines),
            "quote_code": getattr(quote, "code", ""),
        },
    )

    logger.info(
        "order.created",
        extra={
            "order_id": str(order.id),
            "order_code": order.code,
            "dealership_id": str(dealership.id),
            "final_amount": order.final_amount,
        },
    )
    return order


@transaction.atomic
def confirm_order(*, order: Order, user=None, notes: str = "") -> Order:
    order = _lock(order)
    return _transition(order, S.CONFIRMED, user=user, notes=notes, confirmed_at=timezone.now())


# ============================================================
# CONTRACT
# ============================================================

@transaction.atomic
def generate_contract(
    *,
    order: Order,
    user=None,
    contract_date=None,
    delivery_date=None,
    warranty_months=None,
    payment_terms: str = "",
    notes: str = "",
) -> OrderContract:
    """
    Draft the contract. Only while the order is pending; status unchanged.
    """
    order = _lock(order)
    require_status(order=order, allowed={S.PENDING}, action="generate a contract")

    contract, _ = OrderContract.objects.select_for_update().get_or_create(order=order)

    today = timezone.localdate()
    contract.contract_number = contract.contract_number or generate_contract_number()
    contract.contract_date = contract_date or today
    contract.delivery_date = delivery_date or (
        contract.contract_date + timedelta(days=_workflow_setting("CONTRACT_DELIVERY_LEAD_DAYS"))
    )
    contract.warranty_months = (
        int(warranty_months) if warranty_months not in (None, "") else _workflow_setting("CONTRACT_WARRANTY_MONTHS")
    )
    contract.payment_terms = _clean_text(payment_terms) or order.payment_method
    contract.notes = _clean_text(notes)
    if contract.delivery_date < contract.contract_date:
        raise ValidationError("delivery_date cannot be before contract_date")

    contract.generated_at = timezone.now()
    if contract.status != OrderContract.Status.SIGNED:
        contract.status = OrderContract.Status.GENERATED
    contract.save()

    guarded_update(order)

    logger.info(
        "order.contract_generated",
        extra={"order_id": str(order.id), "contract_number": contract.contract_number},
    )
    return contract


def _check_upload(f, *, seen: set, max_bytes: int):
    name = _clean_text(getattr(f, "name", ""))
    content_type = (getattr(f, "content_type", "") or "").lower()
    size = int(getattr(f, "size", 0) or 0)

    if not name:
        return "File name is missing."
    if name in seen:
        return "Duplicate file name in this upload."
    if not (content_type.startswith("image/") or content_type == "application/pdf"):
        return "Only images or PDF files are accepted."
    if size <= 0:
        return "File is empty."
    if size >= max_bytes:
        return f"File must be smaller than {max_bytes // (1024 * 1024)} MB."
    return None


@transaction.atomic
def upload_signed_contract(*, order: Order, files, user=None) -> dict:
    """
    Store signed contract files. Partial success is allowed: valid files are
    stored and the contract becomes signed; rejected files are reported.
    """
    order = _lock(order)
    require_status(order=order, allowed=CONTRACT_UPLOAD_STATES, action="upload a signed contract")

    files = list(files or [])
    if not files:
        raise ValidationError("At least one file is required.")

    max_bytes = _workflow_setting("CONTRACT_UPLOAD_MAX_BYTES")
    seen: set = set()
    accepted, failed = [], []

    for f in files:
        reason = _check_upload(f, seen=seen, max_bytes=max_bytes)
        name = _clean_text(getattr(f, "name", ""))
        if reason:
            failed.append({"name": name, "reason": reason})
        else:
            accepted.append(f)
        if name:
            seen.add(name)

    if not accepted:
        raise ValidationError(
            "No file could be uploaded.",
            details={"succeeded": [], "failed": failed},
        )

    contract, _ = OrderContract.objects.select_for_update().get_or_create(order=order)
    now = timezone.now()

    documents = [
        ContractDocument.objects.create(
            contract=contract,
            file=f,
            original_name=_clean_text(f.name),
            content_type=(getattr(f, "content_type", "") or "").lower(),
            size=int(f.size),
            uploaded_by=user if getattr(user, "pk", None) else None,
        )
        for f in accepted
    ]

    contract.status = OrderContract.Status.SIGNED
    contract.signed_at = contract.signed_at or now
    contract.uploaded_at = now
    contract.uploaded_by = user if getattr(user, "pk", None) else None
    contract.save(update_fields=["status", "signed_at", "uploaded_at", "uploaded_by", "updated_at"])

    guarded_update(order)

    logger.info(
        "order.contract_uploaded",
        extra={"order_id": str(order.id), "succeeded": len(documents), "failed": len(failed)},
    )
    return {
        "contract": contract,
        "documents": documents,
        "succeeded": [d.original_name for d in documents],
        "failed": failed,
    }


# ============================================================
# PAYMENTS
# ============================================================

def _existing_payment(order: Order, idempotency_key: str, *, kind: str, amount=None):
    """
    A replayed key returns the first receipt, but only for the same payment.
    The same key on a different kind or amount is refused.
    """
    if not idempotency_key:
        return None

    payment = OrderPayment.objects.filter(order=order, idempotency_key=idempotency_key).first()
    if payment is None:
        return None

    requested = None if amount in (None, "") else to_money(amount, allow_zero=False)
    if payment.kind != kind or (requested is not None and requested != int(payment.amount)):
        raise ValidationError(
            "Idempotency key was already used for a different payment.",
            details={
                "idempotency_key": idempotency_key,
                "recorded_kind": payment.kind,
                "recorded_amount": int(payment.amount),
                "requested_kind": kind,
                "requested_amount": requested,
            },
        )
    return payment


def _paid_on(value) -> date:
    paid_on = value or timezone.localdate()
    if isinstance(paid_on, datetime):
        paid_on = paid_on.date()
    if paid_on > timezone.localdate():
        raise ValidationError("Payment date cannot be in the future.")
    return paid_on


def _create_payment(*, order, kind, amount, method, paid_on, idempotency_key, user, notes) -> OrderPayment:
    method = _clean_text(method) or OrderPayment.Method.CASH
    if method not in OrderPayment.Method.values:
        raise ValidationError(f"method must be one of {sorted(OrderPayment.Method.values)}")

    try:
        with transaction.atomic():
            return OrderPayment.objects.create(
                order=order,
                kind=kind,
                amount=amount,
                method=method,
                paid_on=paid_on,
                idempotency_key=idempotency_key,
                recorded_by=user if getattr(user, "pk", None) else None,
                notes=_clean_text(notes),
            )
    except IntegrityError as exc:
        raise ConcurrentModification(
            "A payment with this idempotency key is being recorded concurrently.",
            details={"idempotency_key": idempotency_key},
        ) from exc


@transaction.atomic
def record_deposit(
    *,
    order: Order,
    user=None,
    amount=None,
    method: str = OrderPayment.Method.CASH,
    paid_on=None,
    idempotency_key: str = "",
    notes: str = "",
):
    """
    Deposit against a signed contract. Defaults to the suggested deposit.
    A deposit that covers the whole balance continues to fullyPayment.

    Returns (order, payment).
    """
    order = _lock(order)
    idempotency_key = _clean_text(idempotency_key)

    replay = _existing_payment(order, idempotency_key, kind=OrderPayment.Kind.DEPOSIT, amount=amount)
    if replay is not None:
        return order, replay

    validate_transition(order=order, target_status=S.HALF_PAYMENT)

    contract = OrderContract.objects.filter(order=order).first()
    if contract is None or not contract.is_signed:
        raise InvalidTransition(
            "A signed contract is required before taking a deposit.",
            current=order.status,
            requested=S.HALF_PAYMENT,
            details={"contract_status": getattr(contract, "status", OrderContract.Status.UNSIGNED)},
        )

    amount = order.suggested_deposit if amount in (None, "") else to_money(amount, allow_zero=False)
    if amount <= 0:
        raise ValidationError("amount must be greater than zero")
    new_paid = checked_add(int(order.paid_amount), amount, ceiling=int(order.final_amount), what="order total")

    payment = _create_payment(
        order=order,
        kind=OrderPayment.Kind.DEPOSIT,
        amount=amount,
        method=method,
        paid_on=_paid_on(paid_on),
        idempotency_key=idempotency_key,
        user=user,
        notes=notes,
    )

    payload = {"payment_id": str(payment.id), "amount": amount, "method": payment.method}
    _transition(
        order,
        S.HALF_PAYMENT,
        user=user,
        notes=notes,
        payload=payload,
        guard=Q(paid_amount__lte=F("final_amount") - amount),
        paid_amount=F("paid_amount") + amount,
    )

    if new_paid == int(order.final_amount):
        _transition(order, S.FULLY_PAYMENT, user=user, notes="Deposit settled the full amount.", payload=payload)

    return order, payment


@transaction.atomic
def record_full_payment(
    *,
    order: Order,
    user=None,
    amount=None,
    method: str = OrderPayment.Method.CASH,
    paid_on=None,
    idempotency_key: str = "",
    notes: str = "",
):
    """
    Final payment: must settle the outstanding balance exactly.

    Returns (order, payment).
    """
    order = _lock(order)
    idempotency_key = _clean_text(idempotency_key)

    replay = _existing_payment(order, idempotency_key, kind=OrderPayment.Kind.FULL, amount=amount)
    if replay is not None:
        return order, replay

    validate_transition(order=order, target_status=S.FULLY_PAYMENT)

    outstanding = order.outstanding_amount
    amount = outstanding if amount in (None, "") else to_money(amount, allow_zero=False)

    if amount > outstanding:
        raise InsufficientBalance(
            f"Amount {amount} exceeds the outstanding balance {outstanding}.",
            details={"outstanding": outstanding, "requested": amount},
        )
    if amount < outstanding:
        raise ValidationError(
            f"Final payment must settle the outstanding balance of {outstanding}.",
            details={"outstanding": outstanding, "requested": amount},
        )

    payment = _create_payment(
        order=order,
        kind=OrderPayment.Kind.FULL,
        amount=amount,
        method=method,
        paid_on=_paid_on(paid_on),
        idempotency_key=idempotency_key,
        user=user,
        notes=notes,
    )

    _transition(
        order,
        S.FULLY_PAYMENT,
        user=user,
        notes=notes,
        payload={"payment_id": str(payment.id), "amount": amount, "method": payment.method},
        guard=Q(paid_amount=F("final_amount") - amount),
        paid_amount=F("paid_amount") + amount,
    )
    return order, payment


# ============================================================
# STOCK HOLDS / DELIVERY
# ============================================================

@transaction.atomic
def reserve_order_stock(*, order: Order, user=None) -> list[StockReservation]:
    """
    Soft-hold stock for every line. Idempotent: an order holds at most once.
    """
    order = _lock(order)
    require_status(order=order, allowed=PAID_STATES, action="reserve stock")

    existing = list(
        StockReservation.objects.filter(
            reference_type=ORDER_REFERENCE,
            reference_id=order.id,
            status=StockReservation.Status.ACTIVE,
        )
    )
    if existing:
        return existing

    holds = []
    for item in order.items.select_related("vehicle").order_by("id"):
        holds.extend(
            stock_ledger.reserve_for_sale(
                vehicle=item.vehicle,
                color=item.color,
                quantity=item.quantity,
                dealership_id=order.dealership_id,
                manufacturer_id=item.vehicle.manufacturer_id,
                reference_type=ORDER_REFERENCE,
                reference_id=order.id,
            )
        )

    guarded_update(order)
    logger.info("order.stock_reserved", extra={"order_id": str(order.id), "holds": len(holds)})
    return holds


@transaction.atomic
def schedule_delivery(*, order: Order, scheduled_date, user=None, notes: str = "") -> Order:
    order = _lock(order)
    require_status(order=order, allowed=PAID_STATES, action="schedule delivery")

    if not scheduled_date:
        raise ValidationError("scheduled_date is required")
    if isinstance(scheduled_date, datetime):
        scheduled_date = scheduled_date.date()
    if scheduled_date < timezone.localdate():
        raise ValidationError("scheduled_date cannot be in the past")

    changes = {
        "delivery_status": Order.DeliveryStatus.SCHEDULED,
        "delivery_scheduled_date": scheduled_date,
    }
    if _clean_text(notes):
        changes["delivery_notes"] = _clean_text(notes)

    guarded_update(order, **changes)
    logger.info(
        "order.delivery_scheduled",
        extra={"order_id": str(order.id), "scheduled_date": scheduled_date.isoformat()},
    )
    return order


@transaction.atomic
def deliver(
    *,
    order: Order,
    recipient: dict,
    delivery_person: dict | None = None,
    notes: str = "",
    actual_date=None,
    user=None,
) -> Order:
    """
    Hand the vehicles over: decrement stock for every line (dealer stock first,
    then the manufacturer pool) and move to delivered.
    """
    order = _lock(order)
    validate_transition(order=order, target_status=S.DELIVERED)

    recipient = recipient or {}
    recipient_name = _clean_text(recipient.get("name"))
    recipient_phone = _clean_text(recipient.get("phone"))
    if not recipient_name or not recipient_phone:
        raise ValidationError("Recipient name and phone are required.")

    now = timezone.now()
    delivered_at = now if actual_date in (None, "") else _to_aware_datetime(actual_date, field="actual_date")
    if delivered_at > now:
        raise ValidationError("Delivery date cannot be in the future.")

    person = delivery_person or {}

    movements = []
    for item in order.items.select_related("vehicle").order_by("id"):
        movements.extend(
            stock_ledger.allocate_sale(
                vehicle=item.vehicle,
                color=item.color,
                quantity=item.quantity,
                dealership_id=order.dealership_id,
                manufacturer_id=item.vehicle.manufacturer_id,
                reference_type=ORDER_REFERENCE,
                reference_id=order.id,
                performed_by=user,
            )
        )

    # holds not consumed by the sale (e.g. taken from another pool)
    stock_ledger.release(reference_type=ORDER_REFERENCE, reference_id=order.id)

    return _transition(
        order,
        S.DELIVERED,
        user=user,
        notes=notes,
        payload={
            "delivered_at": delivered_at.isoformat(),
            "stock_movements": [str(m.id) for m in movements],
        },
        delivery_status=Order.DeliveryStatus.DELIVERED,
        delivered_at=delivered_at,
        recipient_name=recipient_name,
        recipient_phone=recipient_phone,
        recipient_relationship=_clean_text(recipient.get("relationship")),
        delivery_person_name=_clean_text(person.get("name")),
        delivery_person_phone=_clean_text(person.get("phone")),
        delivery_person_id_card=_clean_text(person.get("id_card")),
        delivery_notes=_clean_text(notes),
    )


def completion_wait_seconds(order: Order, *, now=None) -> int:
    """Seconds left before a delivered order may be completed (0 when allowed)."""
    if order.delivered_at is None:
        return 0
    min_wait = timedelta(hours=_workflow_setting("ORDER_COMPLETION_MIN_HOURS"))
    remaining = (order.delivered_at + min_wait) - (now or timezone.now())
    if remaining <= timedelta(0):
        return 0
    return math.ceil(remaining.total_seconds())


@transaction.atomic
def complete(*, order: Order, user=None, notes: str = "", now=None) -> Order:
    order = _lock(order)
    validate_transition(order=order, target_status=S.COMPLETED)

    if order.delivered_at is None:
        raise ValidationError("Order has no recorded delivery time.")

    remaining = completion_wait_seconds(order, now=now)
    if remaining > 0:
        hours = _workflow_setting("ORDER_COMPLETION_MIN_HOURS")
        raise TooEarlyError(
            f"Order can be completed {hours}h after delivery.",
            remaining_seconds=remaining,
            details={"delivered_at": order.delivered_at.isoformat()},
        )

    return _transition(order, S.COMPLETED, user=user, notes=notes, completed_at=now or timezone.now())


@transaction.atomic
def cancel(*, order: Order, reason: str, user=None) -> Order:
    """
    Cancel from any non-terminal state. Releases holds; a delivered order
    gets its stock decrement reversed.
    """
    reason = _clean_text(reason)
    if not reason:
        raise ValidationError("A cancellation reason is required.")

    order = _lock(order)
    validate_transition(order=order, target_status=S.CANCELLED)

    released = stock_ledger.release(reference_type=ORDER_REFERENCE, reference_id=order.id)

    reversed_movements = []
    if order.status == S.DELIVERED:
        reversed_movements = stock_ledger.reverse_sale(
            reference_type=ORDER_REFERENCE,
            reference_id=order.id,
            performed_by=user,
            notes=f"Order {order.code} cancelled",
        )

    return _transition(
        order,
        S.CANCELLED,
        user=user,
        notes=reason,
        payload={
            "released_units": released,
            "reversed_movements": [str(m.id) for m in reversed_movements],
        },
        cancel_reason=reason,
        cancelled_at=timezone.now(),
    )


# ============================================================
# HISTORY
# ============================================================

def get_order_history(order: Order):
    return get_history(entity_type=StatusHistoryEvent.EntityType.ORDER, entity_id=order.id)


def replay_order_status(events) -> str:
    return replay_status(events, transitions=ALLOWED_TRANSITIONS, initial_status=INITIAL_STATUS)
