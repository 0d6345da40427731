"""Order use cases."""

from order_spine.services.orders import (
    ADD_ORDER,
    GET_ORDERS,
    CheckoutReceipt,
    Degradation,
    OrderService,
    ServiceResult,
)

__all__ = [
    "ADD_ORDER",
    "GET_ORDERS",
    "CheckoutReceipt",
    "Degradation",
    "OrderService",
    "ServiceResult",
]
