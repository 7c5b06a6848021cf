# vehicles/urls.py

"""
VEHICLES URLS

Rules:
- "stock" is registered BEFORE the root vehicle routes, otherwise the router
  treats "stock" as a vehicle <pk>.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from vehicles.views import StockEntryViewSet, VehicleViewSet

router = DefaultRouter()

router.register(r"stock", StockEntryViewSet, basename="stock")
router.register(r"", VehicleViewSet, basename="vehicles")

urlpatterns = [
    path("", include(router.urls)),
]
