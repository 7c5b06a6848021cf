# orders/serializers/order.py

from rest_framework import serializers

from orders.models import ContractDocument, Customer, Order, OrderContract, OrderItem, OrderPayment, Quote


class CustomerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Customer
        fields = [
            "id",
            "dealership",
            "full_name",
            "phone",
            "email",
            "address",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class OrderItemSerializer(serializers.ModelSerializer):
    """
    Order line (read-only). Prices are snapshots taken at order creation.
    """

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "vehicle",
            "vehicle_name",
            "color",
            "quantity",
            "unit_price",
            "discount",
            "options",
            "accessories",
            "final_amount",
        ]
        read_only_fields = fields


class OrderPaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderPayment
        fields = [
            "id",
            "kind",
            "amount",
            "method",
            "paid_on",
            "idempotency_key",
            "recorded_by",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class ContractDocumentSerializer(serializers.ModelSerializer):
    class Meta:
        model = ContractDocument
        fields = ["id", "file", "original_name", "content_type", "size", "uploaded_at"]
        read_only_fields = fields


class OrderContractSerializer(serializers.ModelSerializer):
    documents = ContractDocumentSerializer(many=True, read_only=True)

    class Meta:
        model = OrderContract
        fields = [
            "id",
            "contract_number",
            "status",
            "contract_date",
            "delivery_date",
            "warranty_months",
            "payment_terms",
            "notes",
            "generated_at",
            "signed_at",
            "uploaded_at",
            "documents",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """
    Order read model: header, lines, payments, contract, delivery info.
    """

    customer = CustomerSerializer(read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    payments = OrderPaymentSerializer(many=True, read_only=True)
    contract = serializers.SerializerMethodField()

    outstanding_amount = serializers.IntegerField(read_only=True)
    suggested_deposit = serializers.IntegerField(read_only=True)
    salesperson_name = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "code",
            "status",
            "dealership",
            "customer",
            "salesperson",
            "salesperson_name",
            "payment_method",
            "final_amount",
            "paid_amount",
            "outstanding_amount",
            "suggested_deposit",
            "notes",
            "items",
            "payments",
            "contract",
            "delivery_status",
            "delivery_scheduled_date",
            "delivered_at",
            "recipient_name",
            "recipient_phone",
            "recipient_relationship",
            "delivery_person_name",
            "delivery_person_phone",
            "delivery_person_id_card",
            "delivery_notes",
            "confirmed_at",
            "completed_at",
            "cancelled_at",
            "cancel_reason",
            "version",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_contract(self, obj):
        contract = OrderContract.objects.filter(order=obj).prefetch_related("documents").first()
        if contract is None:
            return None
        return OrderContractSerializer(contract, context=self.context).data

    def get_salesperson_name(self, obj):
        user = getattr(obj, "salesperson", None)
        return getattr(user, "full_name", None) or getattr(user, "email", None)


class OrderListSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source="customer.full_name", read_only=True)
    outstanding_amount = serializers.IntegerField(read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "code",
            "status",
            "customer",
            "customer_name",
            "final_amount",
            "paid_amount",
            "outstanding_amount",
            "delivery_status",
            "created_at",
        ]
        read_only_fields = fields


class QuoteSerializer(serializers.ModelSerializer):
    """
    Quote read model. `status` reports expired once end_date has passed.
    """

    status = serializers.CharField(source="effective_status", read_only=True)
    customer_name = serializers.CharField(source="customer.full_name", read_only=True)
    order_id = serializers.SerializerMethodField()

    class Meta:
        model = Quote
        fields = [
            "id",
            "code",
            "status",
            "dealership",
            "customer",
            "customer_name",
            "created_by",
            "items",
            "final_amount",
            "start_date",
            "end_date",
            "notes",
            "order_id",
            "converted_at",
            "canceled_at",
            "created_at",
        ]
        read_only_fields = fields

    def get_order_id(self, obj):
        order = Order.objects.filter(quote=obj).only("id").first()
        return str(order.id) if order else None
