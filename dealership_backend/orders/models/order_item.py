# orders/models/order_item.py

import uuid

from django.db import models
from django.db.models import F, Q


class OrderItem(models.Model):
    """
    One order line. Prices are snapshots taken at order creation.

    final_amount = (unit_price - discount) * quantity
                   + sum(option.price)
                   + sum(accessory.price * accessory.quantity)
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey("orders.Order", on_delete=models.CASCADE, related_name="items")
    vehicle = models.ForeignKey("vehicles.Vehicle", on_delete=models.PROTECT, related_name="order_items")
    vehicle_name = models.CharField(max_length=255, blank=True, default="")

    color = models.CharField(max_length=64)
    quantity = models.PositiveIntegerField()

    unit_price = models.PositiveBigIntegerField()
    discount = models.PositiveBigIntegerField(default=0)

    options = models.JSONField(default=list, blank=True)
    accessories = models.JSONField(default=list, blank=True)

    final_amount = models.PositiveBigIntegerField()

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gte=1),
                name="chk_order_item_quantity_positive",
            ),
            models.CheckConstraint(
                condition=Q(discount__lte=F("unit_price")),
                name="chk_order_item_discount_lte_price",
            ),
        ]

    @staticmethod
    def compute_final_amount(*, unit_price: int, discount: int, quantity: int, options, accessories) -> int:
        total = (int(unit_price) - int(discount)) * int(quantity)
        total += sum(int(o["price"]) for o in options or [])
        total += sum(int(a["price"]) * int(a.get("quantity", 1)) for a in accessories or [])
        return total

    def __str__(self):
        return f"{self.vehicle_name or self.vehicle_id} {self.color} x{self.quantity}"
