# vehicles/services/stock_ledger.py

"""
======================================================
PATH: vehicles/services/stock_ledger.py
======================================================
STOCK LEDGER (PER VEHICLE / COLOR / OWNER)

Purpose:
- Receive stock into a manufacturer pool or a dealer slice.
- Soft-hold stock for in-flight orders (reserve / release).
- Decrement on sale, dealer-owned stock first, then the manufacturer pool.
- Reverse a sale (order cancelled after delivery).
- Adjust a total before any unit was sold.
- Derived read models: color breakdown, available colors, summary.

Rules:
- Quantities are integer units.
- remaining = total_quantity - total_sold never goes negative.
- available = remaining - reserved_quantity never goes negative.
- Every write locks the row and is version-guarded (core.concurrency).
- Every quantity change appends a StockMovement.

Only the workflow layer calls the mutating functions here.
======================================================
"""

from __future__ import annotations

import logging
from collections import OrderedDict, defaultdict

from django.db import IntegrityError, transaction
from django.db.models import F, Q, Sum
from django.utils import timezone

from core.concurrency import guarded_update, lock_for_update
from core.exceptions import InsufficientStock, ValidationError
from vehicles.models import StockEntry, StockMovement, StockReservation


logger = logging.getLogger("stock")

OWNER_MANUFACTURER = StockEntry.OwnerType.MANUFACTURER
OWNER_DEALER = StockEntry.OwnerType.DEALER


def to_quantity(value, *, field: str = "quantity") -> int:
    """
    Quantity normalizer.
    HARD RULE: quantities are positive whole units.
    """
    if value is None or value == "":
        raise ValidationError(f"{field} is required")

    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a whole integer unit")

    if isinstance(value, int):
        qty = value
    elif isinstance(value, str) and value.strip().lstrip("-").isdigit():
        qty = int(value.strip())
    else:
        raise ValidationError(f"{field} must be a whole integer unit")

    if qty <= 0:
        raise ValidationError(f"{field} must be greater than zero")
    return qty


def _clean_color(color) -> str:
    c = (color or "").strip()
    if not c:
        raise ValidationError("color is required")
    return c


def _clean_owner_type(owner_type) -> str:
    if owner_type not in StockEntry.OwnerType.values:
        raise ValidationError(f"owner_type must be one of {sorted(StockEntry.OwnerType.values)}")
    return owner_type


def _locked_entry(*, vehicle, color, owner_type, owner_id, create: bool = False):
    """
    Lock the entry for (vehicle, color, owner). Returns None when missing and
    create is False.
    """
    lookup = {
        "vehicle": vehicle,
        "color": color,
        "owner_type": owner_type,
        "owner_id": owner_id,
    }

    entry = StockEntry.objects.select_for_update().filter(**lookup).first()
    if entry is not None or not create:
        return entry

    try:
        with transaction.atomic():
            StockEntry.objects.create(**lookup)
    except IntegrityError:
        # another writer created it first; fall through and lock theirs
        pass

    return StockEntry.objects.select_for_update().get(**lookup)


def _movement(*, entry, reason, movement_type, quantity, reference_type="", reference_id=None, performed_by=None, notes=""):
    return StockMovement.objects.create(
        entry=entry,
        reason=reason,
        movement_type=movement_type,
        quantity=quantity,
        reference_type=reference_type or "",
        reference_id=reference_id,
        performed_by=performed_by if getattr(performed_by, "pk", None) else None,
        notes=(notes or "").strip(),
    )


def _held_for(entry, *, reference_type, reference_id) -> int:
    return int(
        StockReservation.objects.filter(
            entry=entry,
            reference_type=reference_type,
            reference_id=reference_id,
            status=StockReservation.Status.ACTIVE,
        ).aggregate(total=Sum("quantity"))["total"]
        or 0
    )


# ============================================================
# RECEIVE
# ============================================================

@transaction.atomic
def receive(
    *,
    vehicle,
    color,
    owner_type,
    owner_id,
    quantity,
    performed_by=None,
    reference_type: str = "",
    reference_id=None,
    notes: str = "",
) -> StockEntry:
    """
    Additive receipt. Creates the (vehicle, color, owner) entry on first use.
    """
    qty = to_quantity(quantity)
    color = _clean_color(color)
    owner_type = _clean_owner_type(owner_type)
    if not owner_id:
        raise ValidationError("owner_id is required")

    entry = _locked_entry(
        vehicle=vehicle, color=color, owner_type=owner_type, owner_id=owner_id, create=True
    )
    guarded_update(entry, total_quantity=F("total_quantity") + qty)

    _movement(
        entry=entry,
        reason=StockMovement.Reason.RECEIPT,
        movement_type=StockMovement.MovementType.IN,
        quantity=qty,
        reference_type=reference_type,
        reference_id=reference_id,
        performed_by=performed_by,
        notes=notes,
    )

    logger.info(
        "stock.received",
        extra={
            "entry_id": str(entry.id),
            "vehicle_id": str(entry.vehicle_id),
            "color": color,
            "owner_type": owner_type,
            "quantity": qty,
        },
    )
    return entry


# ============================================================
# SOFT HOLDS
# ============================================================

@transaction.atomic
def reserve(*, entry: StockEntry, quantity, reference_type: str, reference_id) -> StockReservation:
    qty = to_quantity(quantity)
    entry = lock_for_update(StockEntry.objects, label="Stock entry", pk=entry.pk)

    if entry.available < qty:
        raise InsufficientStock(
            f"Only {entry.available} unit(s) of {entry.color} available, {qty} requested.",
            details={"entry_id": str(entry.id), "available": entry.available, "requested": qty},
        )

    guarded_update(
        entry,
        guard=Q(total_quantity__gte=F("total_sold") + F("reserved_quantity") + qty),
        reserved_quantity=F("reserved_quantity") + qty,
    )

    return StockReservation.objects.create(
        entry=entry,
        reference_type=reference_type,
        reference_id=reference_id,
        quantity=qty,
    )


@transaction.atomic
def reserve_for_sale(
    *,
    vehicle,
    color,
    quantity,
    dealership_id,
    manufacturer_id,
    reference_type: str,
    reference_id,
) -> list[StockReservation]:
    """
    Hold `quantity` units for a reference, dealer slice first, then the
    manufacturer pool. All-or-nothing.
    """
    qty = to_quantity(quantity)
    color = _clean_color(color)

    plan = _plan_allocation(
        vehicle=vehicle,
        color=color,
        quantity=qty,
        dealership_id=dealership_id,
        manufacturer_id=manufacturer_id,
        held_for=None,
    )

    return [
        reserve(entry=entry, quantity=take, reference_type=reference_type, reference_id=reference_id)
        for entry, take in plan
    ]


@transaction.atomic
def release(*, reference_type: str, reference_id) -> int:
    """
    Release every ACTIVE hold for a reference. Returns released units.
    Idempotent: a second call releases nothing.
    """
    released = 0
    holds = list(
        StockReservation.objects.select_for_update()
        .filter(
            reference_type=reference_type,
            reference_id=reference_id,
            status=StockReservation.Status.ACTIVE,
        )
        .order_by("entry_id", "created_at")
    )

    for hold in holds:
        entry = lock_for_update(StockEntry.objects, label="Stock entry", pk=hold.entry_id)
        guarded_update(
            entry,
            guard=Q(reserved_quantity__gte=hold.quantity),
            reserved_quantity=F("reserved_quantity") - hold.quantity,
        )
        hold.status = StockReservation.Status.RELEASED
        hold.closed_at = timezone.now()
        hold.save(update_fields=["status", "closed_at"])
        released += int(hold.quantity)

    if released:
        logger.info(
            "stock.released",
            extra={"reference_type": reference_type, "reference_id": str(reference_id), "quantity": released},
        )
    return released


# ============================================================
# SALE
# ============================================================

@transaction.atomic
def decrement_on_sale(
    *,
    vehicle,
    color,
    owner_type,
    owner_id,
    quantity,
    reference_type: str,
    reference_id,
    performed_by=None,
) -> StockMovement:
    """
    Sell `quantity` units from one entry.

    Active holds of the same reference on this entry are consumed first.
    Raises InsufficientStock when the entry cannot cover the sale.
    """
    qty = to_quantity(quantity)
    color = _clean_color(color)

    entry = _locked_entry(vehicle=vehicle, color=color, owner_type=owner_type, owner_id=owner_id)
    if entry is None:
        raise InsufficientStock(
            f"No {color} stock recorded for this vehicle.",
            details={"color": color, "available": 0, "requested": qty},
        )

    return _sell_from_entry(
        entry=entry,
        quantity=qty,
        reference_type=reference_type,
        reference_id=reference_id,
        performed_by=performed_by,
    )


def _sell_from_entry(*, entry, quantity, reference_type, reference_id, performed_by=None) -> StockMovement:
    held = _held_for(entry, reference_type=reference_type, reference_id=reference_id)

    if entry.available + held < quantity:
        raise InsufficientStock(
            f"Only {entry.available + held} unit(s) of {entry.color} available, {quantity} requested.",
            details={
                "entry_id": str(entry.id),
                "available": entry.available + held,
                "requested": quantity,
            },
        )

    guarded_update(
        entry,
        guard=Q(total_quantity__gte=F("total_sold") + F("reserved_quantity") - held + quantity),
        total_sold=F("total_sold") + quantity,
        reserved_quantity=F("reserved_quantity") - held,
    )

    if held:
        StockReservation.objects.filter(
            entry=entry,
            reference_type=reference_type,
            reference_id=reference_id,
            status=StockReservation.Status.ACTIVE,
        ).update(status=StockReservation.Status.CONSUMED, closed_at=timezone.now())

    movement = _movement(
        entry=entry,
        reason=StockMovement.Reason.SALE,
        movement_type=StockMovement.MovementType.OUT,
        quantity=quantity,
        reference_type=reference_type,
        reference_id=reference_id,
        performed_by=performed_by,
    )

    logger.info(
        "stock.sold",
        extra={
            "entry_id": str(entry.id),
            "quantity": quantity,
            "reference_type": reference_type,
            "reference_id": str(reference_id),
            "remaining": entry.remaining,
        },
    )
    return movement


def _plan_allocation(*, vehicle, color, quantity, dealership_id, manufacturer_id, held_for):
    """
    Lock candidate entries (dealer slice, then manufacturer pool) and split
    `quantity` across them. held_for=(reference_type, reference_id) counts
    that reference's own holds as available.
    """
    candidates = []
    if dealership_id:
        candidates.append((OWNER_DEALER, dealership_id))
    if manufacturer_id:
        candidates.append((OWNER_MANUFACTURER, manufacturer_id))

    plan = []
    outstanding = quantity
    total_available = 0

    for owner_type, owner_id in candidates:
        entry = _locked_entry(vehicle=vehicle, color=color, owner_type=owner_type, owner_id=owner_id)
        if entry is None:
            continue

        usable = entry.available
        if held_for is not None:
            usable += _held_for(entry, reference_type=held_for[0], reference_id=held_for[1])

        total_available += max(usable, 0)
        if outstanding and usable > 0:
            take = min(usable, outstanding)
            plan.append((entry, take))
            outstanding -= take

    if outstanding:
        raise InsufficientStock(
            f"Only {total_available} unit(s) of {color} available, {quantity} requested.",
            details={
                "vehicle_id": str(getattr(vehicle, "pk", vehicle)),
                "color": color,
                "available": total_available,
                "requested": quantity,
            },
        )
    return plan


@transaction.atomic
def allocate_sale(
    *,
    vehicle,
    color,
    quantity,
    dealership_id,
    manufacturer_id,
    reference_type: str,
    reference_id,
    performed_by=None,
) -> list[StockMovement]:
    """
    Decrement for one order line, preferring dealer-owned stock and falling
    back to the manufacturer pool. All-or-nothing.
    """
    qty = to_quantity(quantity)
    color = _clean_color(color)

    plan = _plan_allocation(
        vehicle=vehicle,
        color=color,
        quantity=qty,
        dealership_id=dealership_id,
        manufacturer_id=manufacturer_id,
        held_for=(reference_type, reference_id),
    )

    return [
        _sell_from_entry(
            entry=entry,
            quantity=take,
            reference_type=reference_type,
            reference_id=reference_id,
            performed_by=performed_by,
        )
        for entry, take in plan
    ]


@transaction.atomic
def reverse_sale(*, reference_type: str, reference_id, performed_by=None, notes: str = "") -> list[StockMovement]:
    """
    Put back every unit sold for a reference that was not reversed yet.
    Idempotent by quantity ceiling: net sold per entry is never restored twice.
    """
    net_by_entry: dict = defaultdict(int)
    for m in StockMovement.objects.filter(
        reference_type=reference_type,
        reference_id=reference_id,
        reason__in=[StockMovement.Reason.SALE, StockMovement.Reason.SALE_REVERSAL],
    ):
        if m.reason == StockMovement.Reason.SALE:
            net_by_entry[m.entry_id] += int(m.quantity)
        else:
            net_by_entry[m.entry_id] -= int(m.quantity)

    reversals = []
    for entry_id in sorted(net_by_entry, key=str):
        qty = net_by_entry[entry_id]
        if qty <= 0:
            continue

        entry = lock_for_update(StockEntry.objects, label="Stock entry", pk=entry_id)
        guarded_update(
            entry,
            guard=Q(total_sold__gte=qty),
            total_sold=F("total_sold") - qty,
        )
        reversals.append(
            _movement(
                entry=entry,
                reason=StockMovement.Reason.SALE_REVERSAL,
                movement_type=StockMovement.MovementType.IN,
                quantity=qty,
                reference_type=reference_type,
                reference_id=reference_id,
                performed_by=performed_by,
                notes=notes,
            )
        )

    if reversals:
        logger.info(
            "stock.sale_reversed",
            extra={
                "reference_type": reference_type,
                "reference_id": str(reference_id),
                "entries": len(reversals),
            },
        )
    return reversals


# ============================================================
# ADJUSTMENT
# ============================================================

@transaction.atomic
def adjust_total(*, entry: StockEntry, new_total, performed_by=None, notes: str = "") -> StockEntry:
    """
    Correct a received total. Only allowed while nothing was sold from the entry.
    """
    if isinstance(new_total, bool):
        raise ValidationError("total_quantity must be a whole integer unit")
    try:
        target = int(new_total)
    except (TypeError, ValueError) as exc:
        raise ValidationError("total_quantity must be a whole integer unit") from exc
    if target < 0:
        raise ValidationError("total_quantity cannot be negative")

    entry = lock_for_update(StockEntry.objects, label="Stock entry", pk=entry.pk)

    if entry.total_sold > 0:
        raise ValidationError(
            "Stock can only be edited before any unit is sold.",
            details={"entry_id": str(entry.id), "total_sold": entry.total_sold},
        )
    if target < entry.reserved_quantity:
        raise InsufficientStock(
            f"{entry.reserved_quantity} unit(s) are on hold; total cannot go below that.",
            details={"entry_id": str(entry.id), "reserved": entry.reserved_quantity, "requested": target},
        )

    delta = target - int(entry.total_quantity)
    if delta == 0:
        return entry

    guarded_update(entry, guard=Q(total_sold=0), total_quantity=target)

    _movement(
        entry=entry,
        reason=StockMovement.Reason.ADJUSTMENT,
        movement_type=StockMovement.MovementType.IN if delta > 0 else StockMovement.MovementType.OUT,
        quantity=abs(delta),
        performed_by=performed_by,
        notes=notes,
    )

    logger.info(
        "stock.adjusted",
        extra={"entry_id": str(entry.id), "delta": delta, "total_quantity": target},
    )
    return entry


# ============================================================
# READ MODELS (DERIVED, NEVER STORED)
# ============================================================

def _entries(*, vehicle=None, owner_type=None, owner_id=None):
    qs = StockEntry.objects.all()
    if vehicle is not None:
        qs = qs.filter(vehicle=vehicle)
    if owner_type:
        qs = qs.filter(owner_type=owner_type)
    if owner_id:
        qs = qs.filter(owner_id=owner_id)
    return qs


def by_color_breakdown(*, vehicle, owner_type=None, owner_id=None) -> list[dict]:
    """
    One row per color (summed across owners unless an owner is given).
    Zero-remaining rows are kept; is_available marks remaining > 0.
    """
    rows: "OrderedDict[str, dict]" = OrderedDict()

    for e in _entries(vehicle=vehicle, owner_type=owner_type, owner_id=owner_id).order_by("color"):
        row = rows.setdefault(
            e.color,
            {"color": e.color, "total": 0, "sold": 0, "reserved": 0},
        )
        row["total"] += int(e.total_quantity)
        row["sold"] += int(e.total_sold)
        row["reserved"] += int(e.reserved_quantity)

    out = []
    for row in rows.values():
        remaining = row["total"] - row["sold"]
        row["remaining"] = remaining
        row["available"] = remaining - row["reserved"]
        row["is_available"] = remaining > 0
        out.append(row)
    return out


def available_colors(*, vehicle, owner_type=None, owner_id=None) -> list[str]:
    return [
        row["color"]
        for row in by_color_breakdown(vehicle=vehicle, owner_type=owner_type, owner_id=owner_id)
        if row["is_available"]
    ]


def stock_summary(*, vehicle=None, owner_type=None, owner_id=None) -> dict:
    agg = _entries(vehicle=vehicle, owner_type=owner_type, owner_id=owner_id).aggregate(
        total=Sum("total_quantity"),
        sold=Sum("total_sold"),
        reserved=Sum("reserved_quantity"),
    )
    total = int(agg["total"] or 0)
    sold = int(agg["sold"] or 0)
    reserved = int(agg["reserved"] or 0)

    summary = {
        "total_quantity": total,
        "total_sold": sold,
        "reserved_quantity": reserved,
        "remaining": total - sold,
        "available": total - sold - reserved,
    }
    if vehicle is not None:
        summary["available_colors"] = available_colors(
            vehicle=vehicle, owner_type=owner_type, owner_id=owner_id
        )
    return summary
