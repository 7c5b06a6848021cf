# vehicles/models/stock_reservation.py

"""
SOFT STOCK HOLD

A reservation lowers StockEntry.available without touching total_sold.
It ends either CONSUMED (turned into a sale) or RELEASED (order cancelled).
"""

import uuid

from django.db import models
from django.utils import timezone


class StockReservation(models.Model):
    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        CONSUMED = "consumed", "Consumed"
        RELEASED = "released", "Released"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    entry = models.ForeignKey(
        "vehicles.StockEntry",
        on_delete=models.PROTECT,
        related_name="reservations",
    )

    reference_type = models.CharField(max_length=32)
    reference_id = models.UUIDField()

    quantity = models.PositiveIntegerField()
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.ACTIVE)

    created_at = models.DateTimeField(default=timezone.now)
    closed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="chk_reservation_quantity_positive",
            ),
        ]
        indexes = [
            models.Index(fields=["reference_type", "reference_id", "status"], name="idx_reservation_reference"),
        ]

    def __str__(self):
        return f"{self.reference_type}:{self.reference_id} holds {self.quantity} ({self.status})"
