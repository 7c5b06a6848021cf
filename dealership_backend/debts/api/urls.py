# debts/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from debts.api.views import ManufacturerDebtViewSet

router = DefaultRouter()
router.register(r"manufacturers", ManufacturerDebtViewSet, basename="manufacturer-debts")

urlpatterns = [
    path("", include(router.urls)),
]
