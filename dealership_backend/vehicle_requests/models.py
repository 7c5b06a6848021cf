# vehicle_requests/models.py

"""
DEALER -> MANUFACTURER VEHICLE REQUESTS

Lifecycle:
  pending -> approved -> in_progress -> delivered -> completed
  pending -> rejected
  pending | approved -> canceled

GUARANTEES:
- Every line quantity > 0; all lines belong to one manufacturer
- unit_price is a snapshot of the vehicle's dealer price at submission
- Lines are frozen once the request is delivered
- Never deleted
"""

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q


User = settings.AUTH_USER_MODEL


class DealerVehicleRequest(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        APPROVED = "approved", "Approved"
        REJECTED = "rejected", "Rejected"
        IN_PROGRESS = "in_progress", "In Progress"
        DELIVERED = "delivered", "Delivered"
        COMPLETED = "completed", "Completed"
        CANCELED = "canceled", "Canceled"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    code = models.CharField(max_length=32, unique=True)

    requested_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="vehicle_requests",
    )
    dealership = models.ForeignKey(
        "organizations.Dealership",
        on_delete=models.PROTECT,
        related_name="vehicle_requests",
    )
    manufacturer = models.ForeignKey(
        "organizations.Manufacturer",
        on_delete=models.PROTECT,
        related_name="vehicle_requests",
    )

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="vehicle_requests",
    )

    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)
    notes = models.TextField(blank=True, default="")

    approved_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="approved_vehicle_requests",
    )
    rejection_reason = models.TextField(blank=True, default="")
    cancel_reason = models.TextField(blank=True, default="")

    approved_at = models.DateTimeField(null=True, blank=True)
    rejected_at = models.DateTimeField(null=True, blank=True)
    in_progress_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    canceled_at = models.DateTimeField(null=True, blank=True)

    version = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["dealership", "status"], name="idx_request_dealership_status"),
            models.Index(fields=["manufacturer", "status"], name="idx_request_mfr_status"),
        ]

    def delete(self, *args, **kwargs):
        raise ValidationError("Vehicle requests cannot be deleted; cancel them instead")

    @property
    def total_quantity(self) -> int:
        return sum(int(i.quantity) for i in self.items.all())

    @property
    def total_amount(self) -> int:
        return sum(i.amount for i in self.items.all())

    def __str__(self):
        return f"{self.code} ({self.status})"


class DealerVehicleRequestItem(models.Model):
    FROZEN_STATUSES = {
        DealerVehicleRequest.Status.DELIVERED,
        DealerVehicleRequest.Status.COMPLETED,
    }

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    request = models.ForeignKey(DealerVehicleRequest, on_delete=models.CASCADE, related_name="items")
    vehicle = models.ForeignKey("vehicles.Vehicle", on_delete=models.PROTECT, related_name="request_items")
    color = models.CharField(max_length=64)
    quantity = models.PositiveIntegerField()
    unit_price = models.PositiveBigIntegerField()

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gte=1),
                name="chk_request_item_quantity_positive",
            ),
        ]

    @property
    def amount(self) -> int:
        return int(self.unit_price) * int(self.quantity)

    def save(self, *args, **kwargs):
        if not self._state.adding:
            status = (
                DealerVehicleRequest.objects.filter(pk=self.request_id)
                .values_list("status", flat=True)
                .first()
            )
            if status in self.FROZEN_STATUSES:
                raise ValidationError("Request lines cannot change after delivery")
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.vehicle_id} {self.color} x{self.quantity}"
