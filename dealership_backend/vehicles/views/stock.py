# vehicles/views/stock.py

"""
STOCK ENDPOINTS

- GET  /api/vehicles/stock/my-stock/             stock entries of the caller's tenant
- POST /api/vehicles/stock/receive/              receive units into a stock slice
- POST /api/vehicles/stock/<entry_id>/adjust/    correct a total before any sale

Writes go through the workflow orchestrator (tenant + capability checks).
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated

from core.api import ok_response
from permissions.roles import CAP_STOCK_MANAGE, CAP_STOCK_VIEW, HasAnyCapability
from vehicles.models import StockEntry
from vehicles.serializers import (
    StockAdjustInputSerializer,
    StockEntrySerializer,
    StockReceiveInputSerializer,
)
from workflow.context import ActorContext
from workflow.orchestrator import WorkflowOrchestrator


class StockEntryViewSet(viewsets.GenericViewSet):
    serializer_class = StockEntrySerializer
    permission_classes = [IsAuthenticated, HasAnyCapability]
    required_any_capabilities = {CAP_STOCK_VIEW, CAP_STOCK_MANAGE}

    def get_queryset(self):
        actor = ActorContext.from_user(self.request.user)
        qs = StockEntry.objects.select_related("vehicle").order_by("vehicle__model_name", "color")
        scope = actor.stock_scope()
        if scope:
            qs = qs.filter(**scope)

        vehicle_id = (self.request.query_params.get("vehicle_id") or "").strip()
        if vehicle_id:
            qs = qs.filter(vehicle_id=vehicle_id)
        return qs

    def _orchestrator(self) -> WorkflowOrchestrator:
        return WorkflowOrchestrator(ActorContext.from_user(self.request.user))

    @extend_schema(responses={200: StockEntrySerializer(many=True)})
    @action(detail=False, methods=["get"], url_path="my-stock")
    def my_stock(self, request):
        return ok_response(StockEntrySerializer(self.get_queryset(), many=True).data)

    @extend_schema(request=StockReceiveInputSerializer, responses={201: StockEntrySerializer})
    @action(detail=False, methods=["post"], url_path="receive")
    def receive(self, request):
        ser = StockReceiveInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        v = ser.validated_data

        entry = self._orchestrator().receive_stock(
            vehicle_id=v["vehicle_id"],
            color=v["color"],
            quantity=v["quantity"],
            owner_type=v.get("owner_type"),
            owner_id=v.get("owner_id"),
            notes=v.get("notes", ""),
        )
        return ok_response(
            StockEntrySerializer(entry).data,
            message="Stock received.",
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(request=StockAdjustInputSerializer, responses={200: StockEntrySerializer})
    @action(detail=True, methods=["post"], url_path="adjust")
    def adjust(self, request, pk=None):
        ser = StockAdjustInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        entry = self._orchestrator().adjust_stock(
            entry_id=pk,
            total_quantity=ser.validated_data["total_quantity"],
            notes=ser.validated_data.get("notes", ""),
        )
        return ok_response(StockEntrySerializer(entry).data, message="Stock adjusted.")
