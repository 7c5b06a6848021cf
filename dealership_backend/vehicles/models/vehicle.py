# vehicles/models/vehicle.py

import uuid

from django.core.exceptions import ValidationError
from django.db import models


class Vehicle(models.Model):
    """
    A sellable vehicle model/version from one manufacturer.

    STOCK MODEL (IMPORTANT):
    - Vehicle itself does NOT store stock
    - Stock lives in StockEntry, one row per (vehicle, color, owner)
    - Available colors are derived from StockEntry, never stored here

    Prices are integer minor units.
    - price: retail price (default unit price on customer orders)
    - wholesale_price: manufacturer -> dealer price (dealer requests / debt)
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    manufacturer = models.ForeignKey(
        "organizations.Manufacturer",
        on_delete=models.PROTECT,
        related_name="vehicles",
    )

    model_name = models.CharField(max_length=255, db_index=True)
    version = models.CharField(max_length=255, blank=True)

    price = models.PositiveBigIntegerField()
    wholesale_price = models.PositiveBigIntegerField(null=True, blank=True)

    specs = models.JSONField(default=dict, blank=True)
    description = models.TextField(blank=True)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["model_name", "version"]
        indexes = [
            models.Index(fields=["manufacturer", "model_name"], name="idx_vehicle_manufacturer_model"),
        ]

    def clean(self):
        if self.price is None or int(self.price) <= 0:
            raise ValidationError("price must be greater than zero")

    @property
    def display_name(self) -> str:
        return f"{self.model_name} {self.version}".strip()

    @property
    def dealer_price(self) -> int:
        """Unit price a dealer owes the manufacturer."""
        if self.wholesale_price:
            return int(self.wholesale_price)
        return int(self.price)

    def __str__(self):
        return self.display_name
