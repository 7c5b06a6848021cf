# orders/views/quote.py

"""
QUOTE ENDPOINTS

- GET  /api/orders/quotes/?status=&customer=
- POST /api/orders/quotes/
- GET  /api/orders/quotes/<id>/
- POST /api/orders/quotes/<id>/convert/     creates a pending order
- POST /api/orders/quotes/<id>/cancel/
"""

from django.db.models import Q
from django.utils import timezone
from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated

from core.api import ok_response, paginated_response
from orders.models import Order, Quote
from orders.serializers import (
    OrderSerializer,
    QuoteConvertInputSerializer,
    QuoteCreateInputSerializer,
    QuoteSerializer,
)
from permissions.roles import CAP_ORDERS_VIEW, HasCapability
from workflow.context import ActorContext
from workflow.orchestrator import WorkflowOrchestrator


class QuoteViewSet(viewsets.GenericViewSet):
    serializer_class = QuoteSerializer
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_ORDERS_VIEW

    def _orchestrator(self) -> WorkflowOrchestrator:
        return WorkflowOrchestrator(ActorContext.from_user(self.request.user))

    def get_queryset(self):
        qs = self._orchestrator().visible_quotes().order_by("-created_at")
        params = self.request.query_params

        customer = params.get("customer")
        if customer:
            qs = qs.filter(customer_id=customer)

        wanted = params.get("status")
        today = timezone.localdate()
        if wanted == Quote.Status.EXPIRED:
            qs = qs.filter(Q(status=Quote.Status.EXPIRED) | Q(status=Quote.Status.VALID, end_date__lt=today))
        elif wanted == Quote.Status.VALID:
            qs = qs.filter(status=Quote.Status.VALID, end_date__gte=today)
        elif wanted:
            qs = qs.filter(status=wanted)
        return qs

    def list(self, request):
        return paginated_response(self, self.get_queryset(), QuoteSerializer)

    def retrieve(self, request, pk=None):
        return ok_response(QuoteSerializer(self._orchestrator().get_quote(pk)).data)

    @extend_schema(request=QuoteCreateInputSerializer, responses={201: QuoteSerializer})
    def create(self, request):
        ser = QuoteCreateInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        quote = self._orchestrator().create_quote(**ser.validated_data)
        return ok_response(
            QuoteSerializer(quote).data,
            message="Quote created.",
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(request=QuoteConvertInputSerializer, responses={201: OrderSerializer})
    @action(detail=True, methods=["post"], url_path="convert")
    def convert(self, request, pk=None):
        ser = QuoteConvertInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        order = self._orchestrator().convert_quote_to_order(quote_id=pk, **ser.validated_data)
        order = (
            Order.objects.select_related("customer", "salesperson")
            .prefetch_related("items", "payments")
            .get(pk=order.pk)
        )
        return ok_response(
            OrderSerializer(order).data,
            message="Quote converted to order.",
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(request=None, responses={200: QuoteSerializer})
    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        quote = self._orchestrator().cancel_quote(quote_id=pk)
        return ok_response(
            QuoteSerializer(Quote.objects.select_related("customer").get(pk=quote.pk)).data,
            message="Quote canceled.",
        )
