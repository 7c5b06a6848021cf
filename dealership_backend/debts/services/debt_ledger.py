# debts/services/debt_ledger.py

"""
MANUFACTURER DEBT LEDGER

- accrue(): append delivered request lines, grow total_amount
- record_payment(): pay down the remaining balance (never below zero)
- get_payment_history(): payments, oldest first
- debt_summary(): totals for list views

Rules:
- Amounts are integer minor units.
- Writes lock the debt row and are version-guarded.
- Payments carry an optional idempotency key; a replay with the same amount
  returns the first result, a different amount is refused.
"""

from __future__ import annotations

import logging

from django.db import IntegrityError, transaction
from django.db.models import Count, F, Q, Sum
from django.utils import timezone

from core.concurrency import guarded_update, lock_for_update
from core.exceptions import ConcurrentModification, ValidationError
from core.money import checked_sub, to_money
from debts.models import ManufacturerDebt, ManufacturerDebtItem, ManufacturerDebtPayment


logger = logging.getLogger("debts")


def _locked_debt(*, dealership, manufacturer) -> ManufacturerDebt:
    lookup = {"dealership": dealership, "manufacturer": manufacturer}

    debt = ManufacturerDebt.objects.select_for_update().filter(**lookup).first()
    if debt is not None:
        return debt

    try:
        with transaction.atomic():
            ManufacturerDebt.objects.create(**lookup)
    except IntegrityError:
        pass

    return ManufacturerDebt.objects.select_for_update().get(**lookup)


@transaction.atomic
def accrue(*, dealership, manufacturer, lines) -> ManufacturerDebt:
    """
    lines: iterable of dicts
        {vehicle, color, unit_price, quantity, delivered_at, request?, notes?}
    """
    lines = list(lines or [])
    if not lines:
        raise ValidationError("Nothing to accrue.")

    debt = _locked_debt(dealership=dealership, manufacturer=manufacturer)

    items = []
    for line in lines:
        unit_price = to_money(line["unit_price"], field="unit_price")
        quantity = int(line["quantity"])
        if quantity <= 0:
            raise ValidationError("quantity must be greater than zero")

        vehicle = line["vehicle"]
        items.append(
            ManufacturerDebtItem(
                debt=debt,
                request=line.get("request"),
                vehicle=vehicle,
                vehicle_name=getattr(vehicle, "display_name", ""),
                color=line["color"],
                unit_price=unit_price,
                quantity=quantity,
                amount=unit_price * quantity,
                delivered_at=line.get("delivered_at") or timezone.now(),
                notes=(line.get("notes") or "").strip(),
            )
        )

    total = sum(i.amount for i in items)
    ManufacturerDebtItem.objects.bulk_create(items)
    guarded_update(debt, total_amount=F("total_amount") + total)

    logger.info(
        "debt.accrued",
        extra={
            "debt_id": str(debt.id),
            "dealership_id": str(debt.dealership_id),
            "manufacturer_id": str(debt.manufacturer_id),
            "amount": total,
            "lines": len(items),
        },
    )
    return debt


@transaction.atomic
def record_payment(
    *,
    debt: ManufacturerDebt,
    amount,
    method: str = ManufacturerDebtPayment.Method.BANK,
    notes: str = "",
    order=None,
    idempotency_key: str = "",
    paid_at=None,
    user=None,
) -> ManufacturerDebtPayment:
    debt = lock_for_update(ManufacturerDebt.objects, label="Debt", pk=debt.pk)
    idempotency_key = (idempotency_key or "").strip()

    amount = to_money(amount, allow_zero=False)

    if idempotency_key:
        replay = debt.payments.filter(idempotency_key=idempotency_key).first()
        if replay is not None:
            if int(replay.amount) != amount:
                raise ValidationError(
                    "Idempotency key was already used for a different payment.",
                    details={
                        "idempotency_key": idempotency_key,
                        "recorded_amount": int(replay.amount),
                        "requested_amount": amount,
                    },
                )
            return replay

    checked_sub(debt.remaining_amount, amount, what="debt balance")

    method = (method or "").strip() or ManufacturerDebtPayment.Method.BANK
    if method not in ManufacturerDebtPayment.Method.values:
        raise ValidationError(f"method must be one of {sorted(ManufacturerDebtPayment.Method.values)}")

    if order is not None and order.dealership_id != debt.dealership_id:
        raise ValidationError("Linked order belongs to another dealership.")

    try:
        with transaction.atomic():
            payment = ManufacturerDebtPayment.objects.create(
                debt=debt,
                amount=amount,
                method=method,
                paid_at=paid_at or timezone.now(),
                notes=(notes or "").strip(),
                order=order,
                idempotency_key=idempotency_key,
                recorded_by=user if getattr(user, "pk", None) else None,
            )
    except IntegrityError as exc:
        raise ConcurrentModification(
            "A payment with this idempotency key is being recorded concurrently.",
            details={"idempotency_key": idempotency_key},
        ) from exc

    guarded_update(
        debt,
        guard=Q(paid_amount__lte=F("total_amount") - amount),
        paid_amount=F("paid_amount") + amount,
    )

    logger.info(
        "debt.payment_recorded",
        extra={
            "debt_id": str(debt.id),
            "payment_id": str(payment.id),
            "amount": amount,
            "remaining": debt.remaining_amount,
        },
    )
    return payment


def get_payment_history(debt: ManufacturerDebt):
    return list(debt.payments.select_related("order", "recorded_by").order_by("paid_at", "created_at"))


def debt_summary(*, queryset=None, dealership_id=None, manufacturer_id=None) -> dict:
    qs = queryset if queryset is not None else ManufacturerDebt.objects.all()
    if dealership_id:
        qs = qs.filter(dealership_id=dealership_id)
    if manufacturer_id:
        qs = qs.filter(manufacturer_id=manufacturer_id)

    agg = qs.aggregate(
        total=Sum("total_amount"),
        paid=Sum("paid_amount"),
        debts=Count("id"),
        open=Count("id", filter=ManufacturerDebt.status_q(ManufacturerDebt.Status.OPEN)),
        partial=Count("id", filter=ManufacturerDebt.status_q(ManufacturerDebt.Status.PARTIAL)),
        settled=Count("id", filter=ManufacturerDebt.status_q(ManufacturerDebt.Status.SETTLED)),
    )
    total = int(agg["total"] or 0)
    paid = int(agg["paid"] or 0)
    return {
        "total_amount": total,
        "paid_amount": paid,
        "remaining_amount": total - paid,
        "debts": int(agg["debts"] or 0),
        "open": int(agg["open"] or 0),
        "partial": int(agg["partial"] or 0),
        "settled": int(agg["settled"] or 0),
    }
