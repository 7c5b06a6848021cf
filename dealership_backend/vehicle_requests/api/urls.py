# vehicle_requests/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from vehicle_requests.api.views import DealerVehicleRequestViewSet

router = DefaultRouter()
router.register(r"", DealerVehicleRequestViewSet, basename="vehicle-requests")

urlpatterns = [
    path("", include(router.urls)),
]
