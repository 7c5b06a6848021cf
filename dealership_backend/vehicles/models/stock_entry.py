# vehicles/models/stock_entry.py

"""
STOCK ENTRY (PER VEHICLE / COLOR / OWNER)

GUARANTEES:
- One row per (vehicle, color, owner_type, owner_id)
- total_sold <= total_quantity           (remaining never negative)
- reserved_quantity <= remaining         (available never negative)
- Every write goes through vehicles.services.stock_ledger (version-guarded)

Derived, never stored:
- remaining = total_quantity - total_sold
- available = remaining - reserved_quantity
"""

import uuid

from django.db import models
from django.db.models import F, Q


class StockEntry(models.Model):
    class OwnerType(models.TextChoices):
        MANUFACTURER = "manufacturer", "Manufacturer"
        DEALER = "dealer", "Dealer"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    vehicle = models.ForeignKey(
        "vehicles.Vehicle",
        on_delete=models.PROTECT,
        related_name="stock_entries",
    )
    color = models.CharField(max_length=64)

    owner_type = models.CharField(max_length=16, choices=OwnerType.choices)
    owner_id = models.UUIDField()

    total_quantity = models.PositiveIntegerField(default=0)
    total_sold = models.PositiveIntegerField(default=0)
    reserved_quantity = models.PositiveIntegerField(default=0)

    version = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["vehicle", "color"]
        constraints = [
            models.UniqueConstraint(
                fields=["vehicle", "color", "owner_type", "owner_id"],
                name="uniq_stock_entry_vehicle_color_owner",
            ),
            models.CheckConstraint(
                condition=Q(total_sold__lte=F("total_quantity")),
                name="chk_stock_sold_lte_total",
            ),
            models.CheckConstraint(
                condition=Q(reserved_quantity__lte=F("total_quantity") - F("total_sold")),
                name="chk_stock_reserved_lte_remaining",
            ),
        ]
        indexes = [
            models.Index(fields=["owner_type", "owner_id"], name="idx_stock_owner"),
        ]

    @property
    def remaining(self) -> int:
        return int(self.total_quantity) - int(self.total_sold)

    @property
    def available(self) -> int:
        return self.remaining - int(self.reserved_quantity)

    @property
    def is_available(self) -> bool:
        return self.remaining > 0

    def __str__(self):
        return f"{self.vehicle_id} | {self.color} | {self.owner_type}:{self.owner_id} | {self.remaining}"
