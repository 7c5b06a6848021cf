# vehicles/views/vehicle.py

"""
VEHICLE VIEWSET (READ-ONLY CATALOG)

- GET /api/vehicles/
- GET /api/vehicles/<id>/
- GET /api/vehicles/<id>/stock/      color breakdown (tenant-scoped)

Catalog maintenance happens in Django admin.
"""

from django.db.models import Q
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated

from core.api import ok_response
from permissions.roles import CAP_STOCK_VIEW, HasCapability
from vehicles.models import Vehicle
from vehicles.serializers import ColorBreakdownSerializer, VehicleSerializer
from vehicles.services import stock_ledger
from workflow.context import ActorContext


class VehicleViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = VehicleSerializer
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_STOCK_VIEW

    def get_queryset(self):
        qs = Vehicle.objects.select_related("manufacturer").filter(is_active=True)

        actor = ActorContext.from_user(self.request.user)
        if actor.manufacturer_id and not actor.is_admin:
            qs = qs.filter(manufacturer_id=actor.manufacturer_id)

        params = self.request.query_params

        manufacturer_id = (params.get("manufacturer_id") or "").strip()
        if manufacturer_id:
            qs = qs.filter(manufacturer_id=manufacturer_id)

        q = (params.get("q") or "").strip()
        if q:
            qs = qs.filter(Q(model_name__icontains=q) | Q(version__icontains=q))

        return qs

    def get_serializer_context(self):
        ctx = super().get_serializer_context()
        ctx["owner_scope"] = ActorContext.from_user(self.request.user).stock_scope()
        return ctx

    def list(self, request, *args, **kwargs):
        data = self.get_serializer(self.filter_queryset(self.get_queryset()), many=True).data
        return ok_response(data)

    def retrieve(self, request, *args, **kwargs):
        return ok_response(self.get_serializer(self.get_object()).data)

    @extend_schema(
        parameters=[
            OpenApiParameter("owner_type", str, required=False),
            OpenApiParameter("owner_id", str, required=False),
        ],
        responses={200: ColorBreakdownSerializer(many=True)},
        description="Per-color stock for a vehicle. Zero rows are kept; is_available marks remaining > 0.",
    )
    @action(detail=True, methods=["get"], url_path="stock")
    def stock(self, request, pk=None):
        vehicle = self.get_object()
        actor = ActorContext.from_user(request.user)

        scope = actor.stock_scope()
        if actor.is_admin:
            owner_type = (request.query_params.get("owner_type") or "").strip()
            owner_id = (request.query_params.get("owner_id") or "").strip()
            if owner_type:
                scope["owner_type"] = owner_type
            if owner_id:
                scope["owner_id"] = owner_id

        rows = stock_ledger.by_color_breakdown(vehicle=vehicle, **scope)
        return ok_response(
            {
                "vehicle_id": str(vehicle.id),
                "colors": ColorBreakdownSerializer(rows, many=True).data,
                "summary": stock_ledger.stock_summary(vehicle=vehicle, **scope),
            }
        )
