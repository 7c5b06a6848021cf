# vehicles/models/stock_movement.py

"""
STOCK LEDGER MOVEMENTS

Immutable audit trail for every StockEntry quantity change.

GUARANTEES:
- Append-only (no updates, no deletes)
- Movement direction validated against reason
- Sale-linked movements carry the reference they were sold for
"""

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models


class StockMovement(models.Model):
    class MovementType(models.TextChoices):
        IN = "IN", "Stock In"
        OUT = "OUT", "Stock Out"

    class Reason(models.TextChoices):
        RECEIPT = "RECEIPT", "Stock Receipt"
        SALE = "SALE", "Sale"
        SALE_REVERSAL = "SALE_REVERSAL", "Sale Reversal"
        ADJUSTMENT = "ADJUSTMENT", "Manual Adjustment"

    REASON_TO_MOVEMENT = {
        Reason.RECEIPT: MovementType.IN,
        Reason.SALE_REVERSAL: MovementType.IN,
        Reason.SALE: MovementType.OUT,
        Reason.ADJUSTMENT: None,
    }

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    entry = models.ForeignKey(
        "vehicles.StockEntry",
        on_delete=models.PROTECT,
        related_name="movements",
    )

    movement_type = models.CharField(max_length=3, choices=MovementType.choices)
    reason = models.CharField(max_length=20, choices=Reason.choices)

    quantity = models.PositiveIntegerField()

    # generic reference: ("order", <uuid>) / ("vehicle_request", <uuid>)
    reference_type = models.CharField(max_length=32, blank=True, default="")
    reference_id = models.UUIDField(null=True, blank=True)

    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_movements",
    )

    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["created_at"], name="idx_movement_created"),
            models.Index(fields=["reason"], name="idx_movement_reason"),
            models.Index(fields=["entry", "created_at"], name="idx_movement_entry_created"),
            models.Index(fields=["reference_type", "reference_id"], name="idx_movement_reference"),
        ]

    def clean(self):
        if self.quantity is None or self.quantity <= 0:
            raise ValidationError("quantity must be greater than zero")

        expected_type = self.REASON_TO_MOVEMENT.get(self.reason)
        if expected_type and self.movement_type != expected_type:
            raise ValidationError(f"{self.reason} requires movement_type={expected_type}")

        if self.reason in {self.Reason.SALE, self.Reason.SALE_REVERSAL} and not self.reference_id:
            raise ValidationError("SALE / SALE_REVERSAL must carry a reference")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("StockMovement records are immutable")
        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("StockMovement records are immutable and cannot be deleted")

    @property
    def signed_quantity(self) -> int:
        q = int(self.quantity or 0)
        return q if self.movement_type == self.MovementType.IN else -q

    def __str__(self):
        return f"{self.entry_id} | {self.reason} | {self.quantity}"
