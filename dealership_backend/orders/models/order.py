# orders/models/order.py

"""
CUSTOMER ORDER

GUARANTEES:
- 0 <= paid_amount <= final_amount (DB check + service guard)
- final_amount == sum(item.final_amount), fixed at creation
- status only changes through orders.services.order_fulfillment
- Never deleted; cancelled orders stay for audit
"""

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q

from core.money import percent_of


class Order(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        CONFIRMED = "confirmed", "Confirmed"
        HALF_PAYMENT = "halfPayment", "Deposit Paid"
        FULLY_PAYMENT = "fullyPayment", "Fully Paid"
        DELIVERED = "delivered", "Delivered"
        COMPLETED = "completed", "Completed"
        CANCELLED = "cancelled", "Cancelled"

    class PaymentMethod(models.TextChoices):
        CASH = "cash", "Cash"
        INSTALLMENT = "installment", "Installment"

    class DeliveryStatus(models.TextChoices):
        PENDING = "pending", "Pending"
        SCHEDULED = "scheduled", "Scheduled"
        IN_TRANSIT = "in_transit", "In Transit"
        DELIVERED = "delivered", "Delivered"
        FAILED = "failed", "Failed"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    code = models.CharField(max_length=32, unique=True, help_text="System-generated order code")

    customer = models.ForeignKey(
        "orders.Customer",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    salesperson = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )
    dealership = models.ForeignKey(
        "organizations.Dealership",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    quote = models.OneToOneField(
        "orders.Quote",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="order",
    )

    final_amount = models.PositiveBigIntegerField(default=0)
    paid_amount = models.PositiveBigIntegerField(default=0)

    payment_method = models.CharField(
        max_length=16,
        choices=PaymentMethod.choices,
        default=PaymentMethod.CASH,
    )
    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.PENDING,
    )
    notes = models.TextField(blank=True, default="")

    # ---------------- delivery sub-record ----------------
    delivery_status = models.CharField(
        max_length=16,
        choices=DeliveryStatus.choices,
        default=DeliveryStatus.PENDING,
    )
    delivery_scheduled_date = models.DateField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    recipient_name = models.CharField(max_length=255, blank=True, default="")
    recipient_phone = models.CharField(max_length=50, blank=True, default="")
    recipient_relationship = models.CharField(max_length=64, blank=True, default="")
    delivery_person_name = models.CharField(max_length=255, blank=True, default="")
    delivery_person_phone = models.CharField(max_length=50, blank=True, default="")
    delivery_person_id_card = models.CharField(max_length=64, blank=True, default="")
    delivery_notes = models.TextField(blank=True, default="")

    # ---------------- lifecycle stamps ----------------
    confirmed_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancel_reason = models.TextField(blank=True, default="")

    version = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(paid_amount__lte=F("final_amount")),
                name="chk_order_paid_lte_final",
            ),
        ]
        indexes = [
            models.Index(fields=["dealership", "status"], name="idx_order_dealership_status"),
            models.Index(fields=["created_at"], name="idx_order_created"),
            models.Index(fields=["code"], name="idx_order_code"),
        ]

    def delete(self, *args, **kwargs):
        raise ValidationError("Orders cannot be deleted; cancel them instead")

    @property
    def outstanding_amount(self) -> int:
        return int(self.final_amount) - int(self.paid_amount)

    @property
    def suggested_deposit(self) -> int:
        deposit = percent_of(int(self.final_amount), int(settings.WORKFLOW["ORDER_DEPOSIT_PERCENT"]))
        return min(deposit, self.outstanding_amount)

    @property
    def is_terminal(self) -> bool:
        return self.status in (self.Status.COMPLETED, self.Status.CANCELLED)

    def __str__(self):
        return f"{self.code} ({self.status})"
