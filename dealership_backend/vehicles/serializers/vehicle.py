# vehicles/serializers/vehicle.py

"""
VEHICLE SERIALIZER

Stock figures are computed by the stock ledger (single source of truth);
the UI never recomputes totals from a color array.
"""

from rest_framework import serializers

from vehicles.models import Vehicle
from vehicles.services import stock_ledger


class VehicleSerializer(serializers.ModelSerializer):
    manufacturer_name = serializers.CharField(source="manufacturer.name", read_only=True)
    display_name = serializers.CharField(read_only=True)

    available_colors = serializers.SerializerMethodField(read_only=True)
    total_stock = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = Vehicle
        fields = [
            "id",
            "manufacturer",
            "manufacturer_name",
            "model_name",
            "version",
            "display_name",
            "price",
            "wholesale_price",
            "specs",
            "description",
            "available_colors",
            "total_stock",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def _owner_scope(self) -> dict:
        return dict(self.context.get("owner_scope") or {})

    def get_available_colors(self, obj):
        return stock_ledger.available_colors(vehicle=obj, **self._owner_scope())

    def get_total_stock(self, obj):
        return stock_ledger.stock_summary(vehicle=obj, **self._owner_scope())["remaining"]
