# debts/api/views.py

"""
MANUFACTURER DEBT ENDPOINTS

- GET  /api/debts/manufacturers/?status=open|partial|settled   list + totals
- GET  /api/debts/manufacturers/<id>/                          debt with items
- POST /api/debts/manufacturers/<id>/payment/                  dealer manager pays down
- GET  /api/debts/manufacturers/<id>/payments/                 payment history
"""

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated

from core.api import ok_response
from core.exceptions import ValidationError
from debts.api.serializers import (
    DebtPaymentInputSerializer,
    ManufacturerDebtDetailSerializer,
    ManufacturerDebtPaymentSerializer,
    ManufacturerDebtSerializer,
)
from debts.models import ManufacturerDebt
from permissions.roles import CAP_DEBTS_VIEW, HasCapability
from workflow.context import ActorContext
from workflow.orchestrator import WorkflowOrchestrator


class ManufacturerDebtViewSet(viewsets.GenericViewSet):
    serializer_class = ManufacturerDebtSerializer
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_DEBTS_VIEW

    def _orchestrator(self) -> WorkflowOrchestrator:
        return WorkflowOrchestrator(ActorContext.from_user(self.request.user))

    def get_queryset(self):
        qs = self._orchestrator().visible_debts().order_by("manufacturer__name", "dealership__name")

        status_filter = (self.request.query_params.get("status") or "").strip()
        if status_filter:
            if status_filter not in ManufacturerDebt.Status.values:
                raise ValidationError(
                    f"status must be one of {sorted(ManufacturerDebt.Status.values)}",
                    details={"status": status_filter},
                )
            qs = qs.filter(ManufacturerDebt.status_q(status_filter))
        return qs

    @extend_schema(
        parameters=[OpenApiParameter("status", str, required=False)],
        responses={200: ManufacturerDebtSerializer(many=True)},
    )
    def list(self, request):
        qs = self.get_queryset()
        return ok_response(
            {
                "summary": self._orchestrator().debt_summary(qs),
                "results": ManufacturerDebtSerializer(qs, many=True).data,
            }
        )

    @extend_schema(responses={200: ManufacturerDebtDetailSerializer})
    def retrieve(self, request, pk=None):
        debt = self._orchestrator().get_debt(pk)
        return ok_response(ManufacturerDebtDetailSerializer(debt).data)

    @extend_schema(request=DebtPaymentInputSerializer, responses={201: ManufacturerDebtPaymentSerializer})
    @action(detail=True, methods=["post"], url_path="payment")
    def payment(self, request, pk=None):
        ser = DebtPaymentInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        payment = self._orchestrator().record_debt_payment(debt_id=pk, **ser.validated_data)
        debt = ManufacturerDebt.objects.select_related("dealership", "manufacturer").get(pk=payment.debt_id)
        return ok_response(
            {
                "debt": ManufacturerDebtSerializer(debt).data,
                "payment": ManufacturerDebtPaymentSerializer(payment).data,
            },
            message="Debt payment recorded.",
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(responses={200: ManufacturerDebtPaymentSerializer(many=True)})
    @action(detail=True, methods=["get"], url_path="payments")
    def payments(self, request, pk=None):
        debt, payments = self._orchestrator().debt_payments(debt_id=pk)
        return ok_response(
            {
                "debt": ManufacturerDebtSerializer(debt).data,
                "payments": ManufacturerDebtPaymentSerializer(payments, many=True).data,
            }
        )
