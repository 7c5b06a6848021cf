# orders/serializers/commands.py

"""
Order command inputs.

Documents ONLY what the client is allowed to send; amounts are integer
minor units (no decimals on the wire).
"""

from rest_framework import serializers

from orders.models import Order, OrderPayment


class CustomerInputSerializer(serializers.Serializer):
    full_name = serializers.CharField(max_length=255)
    phone = serializers.CharField(required=False, allow_blank=True, default="")
    email = serializers.EmailField(required=False, allow_blank=True, default="")
    address = serializers.CharField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    # admin only
    dealership_id = serializers.UUIDField(required=False)


class OptionSerializer(serializers.Serializer):
    option_id = serializers.CharField(required=False, allow_blank=True, default="")
    name = serializers.CharField(max_length=128)
    price = serializers.IntegerField(min_value=0)


class AccessorySerializer(serializers.Serializer):
    accessory_id = serializers.CharField(required=False, allow_blank=True, default="")
    name = serializers.CharField(max_length=128)
    price = serializers.IntegerField(min_value=0)
    quantity = serializers.IntegerField(min_value=1, default=1)


class OrderItemInputSerializer(serializers.Serializer):
    vehicle_id = serializers.UUIDField()
    color = serializers.CharField(max_length=64)
    quantity = serializers.IntegerField(min_value=1)
    discount = serializers.IntegerField(min_value=0, required=False, default=0)
    options = OptionSerializer(many=True, required=False, default=list)
    accessories = AccessorySerializer(many=True, required=False, default=list)


class OrderCreateInputSerializer(serializers.Serializer):
    customer_id = serializers.UUIDField()
    items = OrderItemInputSerializer(many=True, allow_empty=False)
    payment_method = serializers.ChoiceField(
        choices=Order.PaymentMethod.choices,
        required=False,
        default=Order.PaymentMethod.CASH,
    )
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class NotesInputSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class ReasonInputSerializer(serializers.Serializer):
    reason = serializers.CharField()


class ContractGenerateInputSerializer(serializers.Serializer):
    contract_date = serializers.DateField(required=False, allow_null=True, default=None)
    delivery_date = serializers.DateField(required=False, allow_null=True, default=None)
    warranty_months = serializers.IntegerField(min_value=0, required=False, allow_null=True, default=None)
    payment_terms = serializers.CharField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class PaymentInputSerializer(serializers.Serializer):
    amount = serializers.IntegerField(min_value=1, required=False, allow_null=True, default=None)
    method = serializers.ChoiceField(
        choices=OrderPayment.Method.choices,
        required=False,
        default=OrderPayment.Method.CASH,
    )
    paid_on = serializers.DateField(required=False, allow_null=True, default=None)
    idempotency_key = serializers.CharField(max_length=128, required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class ScheduleDeliveryInputSerializer(serializers.Serializer):
    scheduled_date = serializers.DateField()
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class RecipientSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    phone = serializers.CharField(max_length=50)
    relationship = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")


class DeliveryPersonSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    phone = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    id_card = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")


class DeliverInputSerializer(serializers.Serializer):
    recipient = RecipientSerializer()
    delivery_person = DeliveryPersonSerializer(required=False, default=dict)
    actual_date = serializers.DateTimeField(required=False, allow_null=True, default=None)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class QuoteCreateInputSerializer(serializers.Serializer):
    customer_id = serializers.UUIDField()
    items = OrderItemInputSerializer(many=True, allow_empty=False)
    start_date = serializers.DateField(required=False, allow_null=True, default=None)
    end_date = serializers.DateField(required=False, allow_null=True, default=None)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class QuoteConvertInputSerializer(serializers.Serializer):
    payment_method = serializers.ChoiceField(
        choices=Order.PaymentMethod.choices,
        required=False,
        default=Order.PaymentMethod.CASH,
    )
    notes = serializers.CharField(required=False, allow_blank=True, default="")
