from .customer import CustomerViewSet
from .order import OrderViewSet
from .quote import QuoteViewSet

__all__ = ["CustomerViewSet", "OrderViewSet", "QuoteViewSet"]
