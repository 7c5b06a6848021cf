from .vehicle import Vehicle
from .stock_entry import StockEntry
from .stock_movement import StockMovement
from .stock_reservation import StockReservation

__all__ = [
    "Vehicle",
    "StockEntry",
    "StockMovement",
    "StockReservation",
]
