# orders/models/contract.py

import uuid

from django.conf import settings
from django.db import models


def contract_upload_to(instance, filename):
    return f"contracts/{instance.contract.order_id}/{uuid.uuid4().hex}_{filename}"


class OrderContract(models.Model):
    """
    Sales contract of an order.

    Sub-status: unsigned -> generated -> signed
    (a signed upload may skip generation).
    """

    class Status(models.TextChoices):
        UNSIGNED = "unsigned", "Unsigned"
        GENERATED = "generated", "Generated"
        SIGNED = "signed", "Signed"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.OneToOneField("orders.Order", on_delete=models.CASCADE, related_name="contract")

    contract_number = models.CharField(max_length=32, blank=True, default="")
    contract_date = models.DateField(null=True, blank=True)
    delivery_date = models.DateField(null=True, blank=True)
    warranty_months = models.PositiveIntegerField(null=True, blank=True)
    payment_terms = models.CharField(max_length=64, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    status = models.CharField(max_length=16, choices=Status.choices, default=Status.UNSIGNED)

    generated_at = models.DateTimeField(null=True, blank=True)
    signed_at = models.DateTimeField(null=True, blank=True)
    uploaded_at = models.DateTimeField(null=True, blank=True)
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="uploaded_contracts",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def is_signed(self) -> bool:
        return self.status == self.Status.SIGNED

    def __str__(self):
        return f"{self.contract_number or '-'} ({self.status})"


class ContractDocument(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    contract = models.ForeignKey(OrderContract, on_delete=models.CASCADE, related_name="documents")

    file = models.FileField(upload_to=contract_upload_to)
    original_name = models.CharField(max_length=255)
    content_type = models.CharField(max_length=128)
    size = models.PositiveBigIntegerField()

    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="contract_documents",
    )
    uploaded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["uploaded_at"]

    def __str__(self):
        return self.original_name
