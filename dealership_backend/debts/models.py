# debts/models.py

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q


User = settings.AUTH_USER_MODEL


class ManufacturerDebt(models.Model):
    """
    What one dealership owes one manufacturer.

    GUARANTEES:
    - One row per (dealership, manufacturer)
    - 0 <= paid_amount <= total_amount
    - total_amount == sum(items.amount); paid_amount == sum(payments.amount)
    - Only debts.services.debt_ledger writes amounts (version-guarded)
    """

    class Status(models.TextChoices):
        OPEN = "open", "Open"
        PARTIAL = "partial", "Partially Paid"
        SETTLED = "settled", "Settled"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    dealership = models.ForeignKey(
        "organizations.Dealership",
        on_delete=models.PROTECT,
        related_name="manufacturer_debts",
    )
    manufacturer = models.ForeignKey(
        "organizations.Manufacturer",
        on_delete=models.PROTECT,
        related_name="dealer_debts",
    )

    total_amount = models.PositiveBigIntegerField(default=0)
    paid_amount = models.PositiveBigIntegerField(default=0)

    version = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-updated_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["dealership", "manufacturer"],
                name="uniq_debt_dealership_manufacturer",
            ),
            models.CheckConstraint(
                condition=Q(paid_amount__lte=F("total_amount")),
                name="chk_debt_paid_lte_total",
            ),
        ]

    @property
    def remaining_amount(self) -> int:
        return int(self.total_amount) - int(self.paid_amount)

    @property
    def status(self) -> str:
        if int(self.paid_amount) == 0:
            return self.Status.OPEN
        if int(self.paid_amount) < int(self.total_amount):
            return self.Status.PARTIAL
        return self.Status.SETTLED

    @classmethod
    def status_q(cls, status: str) -> Q:
        """Q filter equivalent of the derived status."""
        if status == cls.Status.OPEN:
            return Q(paid_amount=0)
        if status == cls.Status.PARTIAL:
            return Q(paid_amount__gt=0, paid_amount__lt=F("total_amount"))
        if status == cls.Status.SETTLED:
            return Q(paid_amount__gt=0, paid_amount=F("total_amount"))
        raise ValueError(f"unknown debt status: {status}")

    def __str__(self):
        return f"{self.dealership_id} -> {self.manufacturer_id}: {self.remaining_amount}"


class ManufacturerDebtItem(models.Model):
    """
    One accrued line (delivered request line). Immutable.
    amount = unit_price * quantity
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    debt = models.ForeignKey(ManufacturerDebt, on_delete=models.PROTECT, related_name="items")

    request = models.ForeignKey(
        "vehicle_requests.DealerVehicleRequest",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="debt_items",
    )
    vehicle = models.ForeignKey("vehicles.Vehicle", on_delete=models.PROTECT, related_name="debt_items")
    vehicle_name = models.CharField(max_length=255, blank=True, default="")
    color = models.CharField(max_length=64)

    unit_price = models.PositiveBigIntegerField()
    quantity = models.PositiveIntegerField()
    amount = models.PositiveBigIntegerField()

    delivered_at = models.DateTimeField()
    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["delivered_at", "created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gte=1),
                name="chk_debt_item_quantity_positive",
            ),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("ManufacturerDebtItem records are immutable")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("ManufacturerDebtItem records are immutable and cannot be deleted")

    def __str__(self):
        return f"{self.vehicle_name} {self.color} x{self.quantity} = {self.amount}"


class ManufacturerDebtPayment(models.Model):
    class Method(models.TextChoices):
        CASH = "cash", "Cash"
        BANK = "bank", "Bank Transfer"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    debt = models.ForeignKey(ManufacturerDebt, on_delete=models.PROTECT, related_name="payments")

    amount = models.PositiveBigIntegerField()
    method = models.CharField(max_length=16, choices=Method.choices, default=Method.BANK)
    paid_at = models.DateTimeField()
    notes = models.TextField(blank=True, default="")

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="manufacturer_debt_payments",
    )

    idempotency_key = models.CharField(max_length=128, blank=True, default="")

    recorded_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="manufacturer_debt_payments",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["paid_at", "created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["debt", "idempotency_key"],
                condition=~Q(idempotency_key=""),
                name="uniq_debt_payment_idempotency_key",
            ),
            models.CheckConstraint(
                condition=Q(amount__gte=1),
                name="chk_debt_payment_amount_positive",
            ),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("ManufacturerDebtPayment records are immutable")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("ManufacturerDebtPayment records are immutable and cannot be deleted")

    def __str__(self):
        return f"{self.debt_id} paid {self.amount}"
