# debts/api/serializers.py

from rest_framework import serializers

from debts.models import ManufacturerDebt, ManufacturerDebtItem, ManufacturerDebtPayment


class ManufacturerDebtItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = ManufacturerDebtItem
        fields = [
            "id",
            "request",
            "vehicle",
            "vehicle_name",
            "color",
            "unit_price",
            "quantity",
            "amount",
            "delivered_at",
        ]
        read_only_fields = fields


class ManufacturerDebtPaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = ManufacturerDebtPayment
        fields = [
            "id",
            "amount",
            "method",
            "paid_at",
            "notes",
            "order",
            "idempotency_key",
            "recorded_by",
            "created_at",
        ]
        read_only_fields = fields


class ManufacturerDebtSerializer(serializers.ModelSerializer):
    dealership_name = serializers.CharField(source="dealership.name", read_only=True)
    manufacturer_name = serializers.CharField(source="manufacturer.name", read_only=True)
    remaining_amount = serializers.IntegerField(read_only=True)
    status = serializers.CharField(read_only=True)

    class Meta:
        model = ManufacturerDebt
        fields = [
            "id",
            "dealership",
            "dealership_name",
            "manufacturer",
            "manufacturer_name",
            "total_amount",
            "paid_amount",
            "remaining_amount",
            "status",
            "version",
            "updated_at",
        ]
        read_only_fields = fields


class ManufacturerDebtDetailSerializer(ManufacturerDebtSerializer):
    items = ManufacturerDebtItemSerializer(many=True, read_only=True)

    class Meta(ManufacturerDebtSerializer.Meta):
        fields = ManufacturerDebtSerializer.Meta.fields + ["items"]
        read_only_fields = fields


class DebtPaymentInputSerializer(serializers.Serializer):
    amount = serializers.IntegerField(min_value=1)
    method = serializers.ChoiceField(
        choices=ManufacturerDebtPayment.Method.choices,
        required=False,
        default=ManufacturerDebtPayment.Method.BANK,
    )
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    order_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    idempotency_key = serializers.CharField(max_length=128, required=False, allow_blank=True, default="")
