# vehicle_requests/api/views.py

"""
DEALER VEHICLE REQUEST ENDPOINTS

- GET  /api/vehicle-requests/                    tenant-scoped list (?status=)
- POST /api/vehicle-requests/                    dealer submits (status=pending)
- GET  /api/vehicle-requests/<id>/
- POST /api/vehicle-requests/<id>/approve/       dealer manager
- POST /api/vehicle-requests/<id>/reject/        dealer manager
- POST /api/vehicle-requests/<id>/in-progress/   manufacturer staff
- POST /api/vehicle-requests/<id>/delivered/     manufacturer staff (stock + debt)
- POST /api/vehicle-requests/<id>/complete/      dealer
- POST /api/vehicle-requests/<id>/cancel/        requester / dealer manager
- GET  /api/vehicle-requests/<id>/history/
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated

from core.api import ok_response, paginated_response
from core.serializers import StatusHistoryEventSerializer
from permissions.roles import CAP_REQUESTS_VIEW, HasCapability
from vehicle_requests.api.serializers import (
    DealerVehicleRequestSerializer,
    RequestDeliveredInputSerializer,
    RequestNotesInputSerializer,
    RequestReasonInputSerializer,
    RequestSubmitInputSerializer,
)
from vehicle_requests.models import DealerVehicleRequest
from workflow.context import ActorContext
from workflow.orchestrator import WorkflowOrchestrator


class DealerVehicleRequestViewSet(viewsets.GenericViewSet):
    serializer_class = DealerVehicleRequestSerializer
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_REQUESTS_VIEW
    filterset_fields = ["status", "manufacturer", "dealership"]

    def _orchestrator(self) -> WorkflowOrchestrator:
        return WorkflowOrchestrator(ActorContext.from_user(self.request.user))

    def get_queryset(self):
        return self._orchestrator().visible_requests().prefetch_related("items__vehicle").order_by("-created_at")

    def _input(self, serializer_class):
        ser = serializer_class(data=self.request.data)
        ser.is_valid(raise_exception=True)
        return ser.validated_data

    def _detail(self, vehicle_request, message: str = "", http_status: int = status.HTTP_200_OK):
        vehicle_request = (
            DealerVehicleRequest.objects.select_related("dealership", "manufacturer")
            .prefetch_related("items__vehicle")
            .get(pk=vehicle_request.pk)
        )
        return ok_response(
            DealerVehicleRequestSerializer(vehicle_request).data,
            message=message,
            status=http_status,
        )

    def list(self, request):
        return paginated_response(self, self.filter_queryset(self.get_queryset()), DealerVehicleRequestSerializer)

    def retrieve(self, request, pk=None):
        return self._detail(self._orchestrator().get_request(pk))

    @extend_schema(request=RequestSubmitInputSerializer, responses={201: DealerVehicleRequestSerializer})
    def create(self, request):
        v = self._input(RequestSubmitInputSerializer)
        vehicle_request = self._orchestrator().submit_request(
            items=[dict(item) for item in v["items"]],
            notes=v["notes"],
            order_id=v["order_id"],
            dealership_id=v["dealership_id"],
        )
        return self._detail(vehicle_request, message="Request submitted.", http_status=status.HTTP_201_CREATED)

    @extend_schema(request=RequestNotesInputSerializer, responses={200: DealerVehicleRequestSerializer})
    @action(detail=True, methods=["post"], url_path="approve")
    def approve(self, request, pk=None):
        v = self._input(RequestNotesInputSerializer)
        vehicle_request = self._orchestrator().approve_request(request_id=pk, notes=v["notes"])
        return self._detail(vehicle_request, message="Request approved.")

    @extend_schema(request=RequestReasonInputSerializer, responses={200: DealerVehicleRequestSerializer})
    @action(detail=True, methods=["post"], url_path="reject")
    def reject(self, request, pk=None):
        v = self._input(RequestReasonInputSerializer)
        vehicle_request = self._orchestrator().reject_request(request_id=pk, reason=v["reason"])
        return self._detail(vehicle_request, message="Request rejected.")

    @extend_schema(request=RequestNotesInputSerializer, responses={200: DealerVehicleRequestSerializer})
    @action(detail=True, methods=["post"], url_path="in-progress")
    def in_progress(self, request, pk=None):
        v = self._input(RequestNotesInputSerializer)
        vehicle_request = self._orchestrator().mark_request_in_progress(request_id=pk, notes=v["notes"])
        return self._detail(vehicle_request, message="Request in progress.")

    @extend_schema(request=RequestDeliveredInputSerializer, responses={200: DealerVehicleRequestSerializer})
    @action(detail=True, methods=["post"], url_path="delivered")
    def delivered(self, request, pk=None):
        v = self._input(RequestDeliveredInputSerializer)
        vehicle_request = self._orchestrator().mark_request_delivered(
            request_id=pk,
            delivered_at=v["delivered_at"],
            notes=v["notes"],
        )
        return self._detail(vehicle_request, message="Request delivered.")

    @extend_schema(request=RequestNotesInputSerializer, responses={200: DealerVehicleRequestSerializer})
    @action(detail=True, methods=["post"], url_path="complete")
    def complete(self, request, pk=None):
        v = self._input(RequestNotesInputSerializer)
        vehicle_request = self._orchestrator().complete_request(request_id=pk, notes=v["notes"])
        return self._detail(vehicle_request, message="Request completed.")

    @extend_schema(request=RequestReasonInputSerializer, responses={200: DealerVehicleRequestSerializer})
    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        v = self._input(RequestReasonInputSerializer)
        vehicle_request = self._orchestrator().cancel_request(request_id=pk, reason=v["reason"])
        return self._detail(vehicle_request, message="Request canceled.")

    @extend_schema(responses={200: StatusHistoryEventSerializer(many=True)})
    @action(detail=True, methods=["get"], url_path="history")
    def history(self, request, pk=None):
        result = self._orchestrator().request_history(request_id=pk)
        return ok_response(
            {
                "request_id": str(result["request"].id),
                "status": result["request"].status,
                "replayed_status": result["replayed_status"],
                "events": StatusHistoryEventSerializer(result["events"], many=True).data,
            }
        )
