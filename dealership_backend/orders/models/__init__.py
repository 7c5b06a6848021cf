# orders/models/__init__.py

"""
ORDERS MODELS PACKAGE EXPORTS
"""

from .customer import Customer
from .order import Order
from .order_item import OrderItem
from .order_payment import OrderPayment
from .contract import ContractDocument, OrderContract
from .quote import Quote

__all__ = [
    "Customer",
    "Order",
    "OrderItem",
    "OrderPayment",
    "OrderContract",
    "ContractDocument",
    "Quote",
]
