# orders/services/quote_service.py

"""
======================================================
PATH: orders/services/quote_service.py
======================================================
SALES QUOTES

Lifecycle:
  valid -> converted   (exactly once, creates a pending order)
  valid -> canceled
  valid reads as expired once end_date has passed

Rules:
- Lines are validated with the same rules as orders and snapshot their prices.
- Conversion re-validates the snapshot lines and builds the order from them,
  so the order total equals the quote total.
- Writes lock the quote row and are version-guarded.
======================================================
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta

from django.conf import settings
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from core.concurrency import guarded_update, lock_for_update
from core.exceptions import InvalidTransition, ValidationError
from orders.models import Order, Quote
from orders.services.order_fulfillment import create_order, normalize_items


logger = logging.getLogger("orders")

Q_STATUS = Quote.Status


def generate_quote_code() -> str:
    return f"QT{timezone.localtime().strftime('%y%m%d%H%M%S')}{secrets.token_hex(2).upper()}"


def _as_date(value, *, field: str):
    if isinstance(value, datetime):
        return value.date()
    if value is None or not hasattr(value, "isoformat"):
        raise ValidationError(f"{field} must be a date")
    return value


def _snapshot(line: dict) -> dict:
    """JSON-safe copy of a normalized line."""
    snapshot = {k: v for k, v in line.items() if k != "vehicle"}
    snapshot["vehicle_id"] = str(line["vehicle"].pk)
    return snapshot


@transaction.atomic
def create_quote(
    *,
    dealership,
    customer,
    created_by=None,
    items,
    start_date=None,
    end_date=None,
    notes: str = "",
) -> Quote:
    if customer.dealership_id != dealership.id:
        raise ValidationError("Customer does not belong to this dealership.")

    lines = normalize_items(items)

    start_date = timezone.localdate() if start_date is None else _as_date(start_date, field="start_date")
    if end_date is None:
        end_date = start_date + timedelta(days=int(settings.WORKFLOW["QUOTE_VALIDITY_DAYS"]))
    else:
        end_date = _as_date(end_date, field="end_date")
    if end_date < start_date:
        raise ValidationError(
            "end_date cannot be before start_date.",
            details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
        )

    quote = Quote.objects.create(
        code=generate_quote_code(),
        dealership=dealership,
        customer=customer,
        created_by=created_by if getattr(created_by, "pk", None) else None,
        items=[_snapshot(line) for line in lines],
        final_amount=sum(line["final_amount"] for line in lines),
        start_date=start_date,
        end_date=end_date,
        notes=(notes or "").strip(),
    )

    logger.info(
        "quote.created",
        extra={
            "quote_id": str(quote.id),
            "quote_code": quote.code,
            "dealership_id": str(dealership.id),
            "final_amount": quote.final_amount,
        },
    )
    return quote


def _require_convertible(quote: Quote, *, requested: str):
    if quote.is_expired():
        raise InvalidTransition(
            f"Quote {quote.code} expired on {quote.end_date.isoformat()}.",
            current=Q_STATUS.EXPIRED,
            requested=requested,
        )
    if quote.status != Q_STATUS.VALID:
        raise InvalidTransition(
            f"Quote {quote.code} is '{quote.status}'.",
            current=quote.status,
            requested=requested,
        )


@transaction.atomic
def convert_to_order(
    *,
    quote: Quote,
    salesperson=None,
    payment_method: str = Order.PaymentMethod.CASH,
    notes: str = "",
) -> Order:
    """
    Create a pending order from a valid quote and mark the quote converted.
    """
    quote = lock_for_update(Quote.objects.select_related("customer", "dealership"), label="Quote", pk=quote.pk)
    _require_convertible(quote, requested=Q_STATUS.CONVERTED)

    order = create_order(
        dealership=quote.dealership,
        customer=quote.customer,
        salesperson=salesperson,
        items=[dict(item) for item in quote.items],
        payment_method=payment_method,
        notes=(notes or "").strip() or quote.notes,
        quote=quote,
    )

    guarded_update(
        quote,
        guard=Q(status=Q_STATUS.VALID),
        status=Q_STATUS.CONVERTED,
        converted_at=timezone.now(),
    )

    logger.info(
        "quote.converted",
        extra={"quote_id": str(quote.id), "quote_code": quote.code, "order_id": str(order.id)},
    )
    return order


@transaction.atomic
def cancel_quote(*, quote: Quote) -> Quote:
    quote = lock_for_update(Quote.objects, label="Quote", pk=quote.pk)
    if quote.status != Q_STATUS.VALID:
        raise InvalidTransition(
            f"Quote {quote.code} is '{quote.status}'.",
            current=quote.status,
            requested=Q_STATUS.CANCELED,
        )

    guarded_update(quote, status=Q_STATUS.CANCELED, canceled_at=timezone.now())
    logger.info("quote.canceled", extra={"quote_id": str(quote.id), "quote_code": quote.code})
    return quote
