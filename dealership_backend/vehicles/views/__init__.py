from .stock import StockEntryViewSet
from .vehicle import VehicleViewSet

__all__ = ["StockEntryViewSet", "VehicleViewSet"]
