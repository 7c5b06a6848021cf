# orders/models/customer.py

import uuid

from django.db import models


class Customer(models.Model):
    """
    End customer of a dealership. Default delivery recipient of their orders.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    dealership = models.ForeignKey(
        "organizations.Dealership",
        on_delete=models.PROTECT,
        related_name="customers",
    )

    full_name = models.CharField(max_length=255)
    phone = models.CharField(max_length=50, blank=True)
    email = models.EmailField(blank=True)
    address = models.TextField(blank=True)
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["full_name"]
        indexes = [
            models.Index(fields=["dealership", "full_name"], name="idx_customer_dealership_name"),
            models.Index(fields=["phone"], name="idx_customer_phone"),
        ]

    def __str__(self):
        return self.full_name
