from .order import (
    ContractDocumentSerializer,
    CustomerSerializer,
    OrderContractSerializer,
    OrderItemSerializer,
    OrderListSerializer,
    OrderPaymentSerializer,
    OrderSerializer,
    QuoteSerializer,
)
from .commands import (
    ContractGenerateInputSerializer,
    CustomerInputSerializer,
    DeliverInputSerializer,
    NotesInputSerializer,
    OrderCreateInputSerializer,
    PaymentInputSerializer,
    QuoteConvertInputSerializer,
    QuoteCreateInputSerializer,
    ReasonInputSerializer,
    ScheduleDeliveryInputSerializer,
)

__all__ = [
    "ContractDocumentSerializer",
    "CustomerSerializer",
    "OrderContractSerializer",
    "OrderItemSerializer",
    "OrderListSerializer",
    "OrderPaymentSerializer",
    "OrderSerializer",
    "QuoteSerializer",
    "ContractGenerateInputSerializer",
    "CustomerInputSerializer",
    "DeliverInputSerializer",
    "NotesInputSerializer",
    "OrderCreateInputSerializer",
    "PaymentInputSerializer",
    "QuoteConvertInputSerializer",
    "QuoteCreateInputSerializer",
    "ReasonInputSerializer",
    "ScheduleDeliveryInputSerializer",
]
