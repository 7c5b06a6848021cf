# vehicle_requests/api/serializers.py

from rest_framework import serializers

from users.serializers import UserSummarySerializer
from vehicle_requests.models import DealerVehicleRequest, DealerVehicleRequestItem


class DealerVehicleRequestItemSerializer(serializers.ModelSerializer):
    vehicle_name = serializers.CharField(source="vehicle.display_name", read_only=True)
    amount = serializers.IntegerField(read_only=True)

    class Meta:
        model = DealerVehicleRequestItem
        fields = ["id", "vehicle", "vehicle_name", "color", "quantity", "unit_price", "amount"]
        read_only_fields = fields


class DealerVehicleRequestSerializer(serializers.ModelSerializer):
    items = DealerVehicleRequestItemSerializer(many=True, read_only=True)
    total_quantity = serializers.IntegerField(read_only=True)
    total_amount = serializers.IntegerField(read_only=True)
    dealership_name = serializers.CharField(source="dealership.name", read_only=True)
    manufacturer_name = serializers.CharField(source="manufacturer.name", read_only=True)
    requested_by_detail = UserSummarySerializer(source="requested_by", read_only=True)
    approved_by_detail = UserSummarySerializer(source="approved_by", read_only=True)

    class Meta:
        model = DealerVehicleRequest
        fields = [
            "id",
            "code",
            "status",
            "dealership",
            "dealership_name",
            "manufacturer",
            "manufacturer_name",
            "requested_by",
            "approved_by",
            "requested_by_detail",
            "approved_by_detail",
            "order",
            "notes",
            "rejection_reason",
            "cancel_reason",
            "items",
            "total_quantity",
            "total_amount",
            "approved_at",
            "rejected_at",
            "in_progress_at",
            "delivered_at",
            "completed_at",
            "canceled_at",
            "version",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class RequestItemInputSerializer(serializers.Serializer):
    vehicle_id = serializers.UUIDField()
    color = serializers.CharField(max_length=64)
    quantity = serializers.IntegerField(min_value=1)


class RequestSubmitInputSerializer(serializers.Serializer):
    items = RequestItemInputSerializer(many=True, allow_empty=False)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    order_id = serializers.UUIDField(required=False, allow_null=True, default=None)

    # admin only
    dealership_id = serializers.UUIDField(required=False, allow_null=True, default=None)


class RequestNotesInputSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class RequestReasonInputSerializer(serializers.Serializer):
    reason = serializers.CharField()


class RequestDeliveredInputSerializer(serializers.Serializer):
    delivered_at = serializers.DateTimeField(required=False, allow_null=True, default=None)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
