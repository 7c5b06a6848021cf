# orders/models/quote.py

"""
SALES QUOTE

GUARANTEES:
- items are price snapshots taken when the quote is written
- final_amount == sum(item["final_amount"]), fixed at creation
- converted at most once (status guard + Order.quote is one-to-one)
- a valid quote past end_date reads as expired
"""

import uuid

from django.conf import settings
from django.db import models
from django.db.models import F, Q
from django.utils import timezone


class Quote(models.Model):
    class Status(models.TextChoices):
        VALID = "valid", "Valid"
        EXPIRED = "expired", "Expired"
        CANCELED = "canceled", "Canceled"
        CONVERTED = "converted", "Converted"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    code = models.CharField(max_length=32, unique=True)

    dealership = models.ForeignKey(
        "organizations.Dealership",
        on_delete=models.PROTECT,
        related_name="quotes",
    )
    customer = models.ForeignKey(
        "orders.Customer",
        on_delete=models.PROTECT,
        related_name="quotes",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="quotes",
    )

    # [{vehicle_id, vehicle_name, color, quantity, unit_price, discount,
    #   options, accessories, final_amount}]
    items = models.JSONField(default=list)
    final_amount = models.PositiveBigIntegerField(default=0)

    status = models.CharField(max_length=16, choices=Status.choices, default=Status.VALID)
    start_date = models.DateField()
    end_date = models.DateField()
    notes = models.TextField(blank=True, default="")

    converted_at = models.DateTimeField(null=True, blank=True)
    canceled_at = models.DateTimeField(null=True, blank=True)

    version = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(end_date__gte=F("start_date")),
                name="chk_quote_end_after_start",
            ),
        ]
        indexes = [
            models.Index(fields=["dealership", "status"], name="idx_quote_dealership_status"),
            models.Index(fields=["customer"], name="idx_quote_customer"),
        ]

    def is_expired(self, today=None) -> bool:
        today = today or timezone.localdate()
        return self.status == self.Status.VALID and self.end_date < today

    @property
    def effective_status(self) -> str:
        return self.Status.EXPIRED if self.is_expired() else self.status

    def __str__(self):
        return self.code
