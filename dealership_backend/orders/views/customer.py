# orders/views/customer.py

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.permissions import IsAuthenticated

from core.api import ok_response, paginated_response
from orders.serializers import CustomerInputSerializer, CustomerSerializer
from permissions.roles import CAP_ORDERS_VIEW, HasCapability
from workflow.context import ActorContext
from workflow.orchestrator import WorkflowOrchestrator


class CustomerViewSet(viewsets.GenericViewSet):
    """
    Dealership customers.

    - GET  /api/orders/customers/?q=
    - POST /api/orders/customers/
    - GET  /api/orders/customers/<id>/
    """

    serializer_class = CustomerSerializer
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_ORDERS_VIEW

    def _orchestrator(self) -> WorkflowOrchestrator:
        return WorkflowOrchestrator(ActorContext.from_user(self.request.user))

    def get_queryset(self):
        qs = self._orchestrator().visible_customers().order_by("full_name")
        q = (self.request.query_params.get("q") or "").strip()
        if q:
            qs = qs.filter(full_name__icontains=q)
        return qs

    def list(self, request):
        return paginated_response(self, self.get_queryset(), CustomerSerializer)

    def retrieve(self, request, pk=None):
        return ok_response(CustomerSerializer(self.get_object()).data)

    @extend_schema(request=CustomerInputSerializer, responses={201: CustomerSerializer})
    def create(self, request):
        ser = CustomerInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        customer = self._orchestrator().create_customer(**ser.validated_data)
        return ok_response(
            CustomerSerializer(customer).data,
            message="Customer created.",
            status=status.HTTP_201_CREATED,
        )
