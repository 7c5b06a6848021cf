# orders/urls.py

"""
ORDERS URLS

Rules:
- "customers" and "quotes" are registered BEFORE the root order routes, otherwise the
  router treats them as an order <pk>.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from orders.views import CustomerViewSet, OrderViewSet, QuoteViewSet

router = DefaultRouter()

router.register(r"customers", CustomerViewSet, basename="customers")
router.register(r"quotes", QuoteViewSet, basename="quotes")
router.register(r"", OrderViewSet, basename="orders")

urlpatterns = [
    path("", include(router.urls)),
]
