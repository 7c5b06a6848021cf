# orders/models/order_payment.py

"""
ORDER PAYMENT (APPEND-ONLY)

One row per money receipt against an order (deposit or final payment).
Order.paid_amount == sum(payments.amount) at all times.
"""

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q


class OrderPayment(models.Model):
    class Kind(models.TextChoices):
        DEPOSIT = "deposit", "Deposit"
        FULL = "full", "Final Payment"

    class Method(models.TextChoices):
        CASH = "cash", "Cash"
        BANK = "bank", "Bank Transfer"
        QR = "qr", "QR Code"
        CARD = "card", "Card"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey("orders.Order", on_delete=models.PROTECT, related_name="payments")

    kind = models.CharField(max_length=16, choices=Kind.choices)
    amount = models.PositiveBigIntegerField()
    method = models.CharField(max_length=16, choices=Method.choices, default=Method.CASH)
    paid_on = models.DateField()

    idempotency_key = models.CharField(max_length=128, blank=True, default="")

    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_payments",
    )
    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["order", "idempotency_key"],
                condition=~Q(idempotency_key=""),
                name="uniq_order_payment_idempotency_key",
            ),
            models.CheckConstraint(
                condition=Q(amount__gte=1),
                name="chk_order_payment_amount_positive",
            ),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("OrderPayment records are immutable")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("OrderPayment records are immutable and cannot be deleted")

    def __str__(self):
        return f"{self.order_id} {self.kind} {self.amount}"
