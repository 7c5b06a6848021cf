# orders/views/order.py

"""
ORDER ENDPOINTS (DEALER SALES WORKFLOW)

- GET  /api/orders/                               list (dealership-scoped)
- POST /api/orders/                               create (status=pending)
- GET  /api/orders/<id>/
- POST /api/orders/<id>/confirm/
- POST /api/orders/<id>/contract/generate/
- POST /api/orders/<id>/contract/upload/          multipart, field "files"
- POST /api/orders/<id>/deposit/
- POST /api/orders/<id>/full-payment/
- POST /api/orders/<id>/reserve-stock/
- POST /api/orders/<id>/schedule-delivery/
- POST /api/orders/<id>/deliver/
- POST /api/orders/<id>/complete/
- POST /api/orders/<id>/cancel/
- GET  /api/orders/<id>/history/

Every write goes through WorkflowOrchestrator; domain errors are rendered
by core.api.workflow_exception_handler.
"""

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated

from core.api import ok_response, paginated_response
from core.serializers import StatusHistoryEventSerializer
from orders.models import Order
from orders.serializers import (
    ContractDocumentSerializer,
    ContractGenerateInputSerializer,
    DeliverInputSerializer,
    NotesInputSerializer,
    OrderContractSerializer,
    OrderCreateInputSerializer,
    OrderListSerializer,
    OrderPaymentSerializer,
    OrderSerializer,
    PaymentInputSerializer,
    ReasonInputSerializer,
    ScheduleDeliveryInputSerializer,
)
from permissions.roles import CAP_ORDERS_VIEW, HasCapability
from workflow.context import ActorContext
from workflow.orchestrator import WorkflowOrchestrator


class OrderViewSet(viewsets.GenericViewSet):
    serializer_class = OrderSerializer
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_ORDERS_VIEW
    filterset_fields = ["status", "delivery_status", "customer"]
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    def _orchestrator(self) -> WorkflowOrchestrator:
        return WorkflowOrchestrator(ActorContext.from_user(self.request.user))

    def get_queryset(self):
        return self._orchestrator().visible_orders().order_by("-created_at")

    def _detail(self, order, message: str = "", http_status: int = status.HTTP_200_OK):
        order = (
            Order.objects.select_related("customer", "salesperson")
            .prefetch_related("items", "payments")
            .get(pk=order.pk)
        )
        return ok_response(OrderSerializer(order).data, message=message, status=http_status)

    def _input(self, serializer_class):
        ser = serializer_class(data=self.request.data)
        ser.is_valid(raise_exception=True)
        return ser.validated_data

    # ---------------------------------------------------------
    # READ
    # ---------------------------------------------------------

    @extend_schema(
        parameters=[
            OpenApiParameter("status", str, required=False),
            OpenApiParameter("delivery_status", str, required=False),
        ],
        responses={200: OrderListSerializer(many=True)},
    )
    def list(self, request):
        return paginated_response(self, self.filter_queryset(self.get_queryset()), OrderListSerializer)

    @extend_schema(responses={200: OrderSerializer})
    def retrieve(self, request, pk=None):
        return self._detail(self._orchestrator().get_order(pk))

    @extend_schema(responses={200: StatusHistoryEventSerializer(many=True)})
    @action(detail=True, methods=["get"], url_path="history")
    def history(self, request, pk=None):
        result = self._orchestrator().order_history(order_id=pk)
        return ok_response(
            {
                "order_id": str(result["order"].id),
                "status": result["order"].status,
                "replayed_status": result["replayed_status"],
                "events": StatusHistoryEventSerializer(result["events"], many=True).data,
            }
        )

    # ---------------------------------------------------------
    # CREATE / CONFIRM
    # ---------------------------------------------------------

    @extend_schema(request=OrderCreateInputSerializer, responses={201: OrderSerializer})
    def create(self, request):
        v = self._input(OrderCreateInputSerializer)
        order = self._orchestrator().create_order(
            customer_id=v["customer_id"],
            items=[dict(item) for item in v["items"]],
            payment_method=v["payment_method"],
            notes=v["notes"],
        )
        return self._detail(order, message="Order created.", http_status=status.HTTP_201_CREATED)

    @extend_schema(request=NotesInputSerializer, responses={200: OrderSerializer})
    @action(detail=True, methods=["post"], url_path="confirm")
    def confirm(self, request, pk=None):
        v = self._input(NotesInputSerializer)
        order = self._orchestrator().confirm_order(order_id=pk, notes=v["notes"])
        return self._detail(order, message="Order confirmed.")

    # ---------------------------------------------------------
    # CONTRACT
    # ---------------------------------------------------------

    @extend_schema(request=ContractGenerateInputSerializer, responses={200: OrderContractSerializer})
    @action(detail=True, methods=["post"], url_path="contract/generate")
    def generate_contract(self, request, pk=None):
        v = self._input(ContractGenerateInputSerializer)
        contract = self._orchestrator().generate_contract(order_id=pk, **v)
        return ok_response(OrderContractSerializer(contract).data, message="Contract generated.")

    @extend_schema(
        request={"multipart/form-data": {"type": "object", "properties": {"files": {"type": "array", "items": {"type": "string", "format": "binary"}}}}},
        responses={200: OrderContractSerializer},
    )
    @action(detail=True, methods=["post"], url_path="contract/upload")
    def upload_contract(self, request, pk=None):
        result = self._orchestrator().upload_signed_contract(
            order_id=pk,
            files=request.FILES.getlist("files"),
        )
        message = "Contract uploaded."
        if result["failed"]:
            message = f"{len(result['succeeded'])} file(s) uploaded, {len(result['failed'])} rejected."

        return ok_response(
            {
                "contract": OrderContractSerializer(result["contract"]).data,
                "documents": ContractDocumentSerializer(result["documents"], many=True).data,
                "succeeded": result["succeeded"],
                "failed": result["failed"],
            },
            message=message,
        )

    # ---------------------------------------------------------
    # PAYMENTS
    # ---------------------------------------------------------

    def _payment_response(self, order, payment, message):
        order.refresh_from_db()
        return ok_response(
            {
                "order": OrderSerializer(order).data,
                "payment": OrderPaymentSerializer(payment).data,
            },
            message=message,
        )

    @extend_schema(request=PaymentInputSerializer, responses={200: OrderPaymentSerializer})
    @action(detail=True, methods=["post"], url_path="deposit")
    def deposit(self, request, pk=None):
        v = self._input(PaymentInputSerializer)
        order, payment = self._orchestrator().record_deposit(order_id=pk, **v)
        return self._payment_response(order, payment, "Deposit recorded.")

    @extend_schema(request=PaymentInputSerializer, responses={200: OrderPaymentSerializer})
    @action(detail=True, methods=["post"], url_path="full-payment")
    def full_payment(self, request, pk=None):
        v = self._input(PaymentInputSerializer)
        order, payment = self._orchestrator().record_full_payment(order_id=pk, **v)
        return self._payment_response(order, payment, "Payment recorded.")

    # ---------------------------------------------------------
    # STOCK / DELIVERY
    # ---------------------------------------------------------

    @extend_schema(request=None, responses={200: OrderSerializer})
    @action(detail=True, methods=["post"], url_path="reserve-stock")
    def reserve_stock(self, request, pk=None):
        holds = self._orchestrator().reserve_order_stock(order_id=pk)
        return ok_response(
            {
                "order_id": pk,
                "reservations": [
                    {
                        "id": str(h.id),
                        "entry_id": str(h.entry_id),
                        "quantity": h.quantity,
                        "status": h.status,
                    }
                    for h in holds
                ],
            },
            message="Stock reserved.",
        )

    @extend_schema(request=ScheduleDeliveryInputSerializer, responses={200: OrderSerializer})
    @action(detail=True, methods=["post"], url_path="schedule-delivery")
    def schedule_delivery(self, request, pk=None):
        v = self._input(ScheduleDeliveryInputSerializer)
        order = self._orchestrator().schedule_delivery(
            order_id=pk,
            scheduled_date=v["scheduled_date"],
            notes=v["notes"],
        )
        return self._detail(order, message="Delivery scheduled.")

    @extend_schema(request=DeliverInputSerializer, responses={200: OrderSerializer})
    @action(detail=True, methods=["post"], url_path="deliver")
    def deliver(self, request, pk=None):
        v = self._input(DeliverInputSerializer)
        order = self._orchestrator().deliver_order(
            order_id=pk,
            recipient=dict(v["recipient"]),
            delivery_person=dict(v["delivery_person"] or {}),
            actual_date=v["actual_date"],
            notes=v["notes"],
        )
        return self._detail(order, message="Order delivered.")

    @extend_schema(request=NotesInputSerializer, responses={200: OrderSerializer})
    @action(detail=True, methods=["post"], url_path="complete")
    def complete(self, request, pk=None):
        v = self._input(NotesInputSerializer)
        order = self._orchestrator().complete_order(order_id=pk, notes=v["notes"])
        return self._detail(order, message="Order completed.")

    @extend_schema(request=ReasonInputSerializer, responses={200: OrderSerializer})
    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        v = self._input(ReasonInputSerializer)
        order = self._orchestrator().cancel_order(order_id=pk, reason=v["reason"])
        return self._detail(order, message="Order cancelled.")
