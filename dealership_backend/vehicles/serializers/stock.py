# vehicles/serializers/stock.py

from rest_framework import serializers

from vehicles.models import StockEntry


class StockEntrySerializer(serializers.ModelSerializer):
    vehicle_name = serializers.CharField(source="vehicle.display_name", read_only=True)
    remaining = serializers.IntegerField(read_only=True)
    available = serializers.IntegerField(read_only=True)
    is_available = serializers.BooleanField(read_only=True)

    class Meta:
        model = StockEntry
        fields = [
            "id",
            "vehicle",
            "vehicle_name",
            "color",
            "owner_type",
            "owner_id",
            "total_quantity",
            "total_sold",
            "reserved_quantity",
            "remaining",
            "available",
            "is_available",
            "version",
            "updated_at",
        ]
        read_only_fields = fields


class ColorBreakdownSerializer(serializers.Serializer):
    color = serializers.CharField()
    total = serializers.IntegerField()
    sold = serializers.IntegerField()
    reserved = serializers.IntegerField()
    remaining = serializers.IntegerField()
    available = serializers.IntegerField()
    is_available = serializers.BooleanField()


class StockReceiveInputSerializer(serializers.Serializer):
    vehicle_id = serializers.UUIDField()
    color = serializers.CharField(max_length=64)
    quantity = serializers.IntegerField(min_value=1)

    # admin only; everyone else receives into their own tenant
    owner_type = serializers.ChoiceField(choices=StockEntry.OwnerType.choices, required=False)
    owner_id = serializers.UUIDField(required=False)

    notes = serializers.CharField(required=False, allow_blank=True, default="")


class StockAdjustInputSerializer(serializers.Serializer):
    total_quantity = serializers.IntegerField(min_value=0)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
