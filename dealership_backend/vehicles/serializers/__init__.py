from .vehicle import VehicleSerializer
from .stock import (
    ColorBreakdownSerializer,
    StockAdjustInputSerializer,
    StockEntrySerializer,
    StockReceiveInputSerializer,
)

__all__ = [
    "VehicleSerializer",
    "ColorBreakdownSerializer",
    "StockAdjustInputSerializer",
    "StockEntrySerializer",
    "StockReceiveInputSerializer",
]
