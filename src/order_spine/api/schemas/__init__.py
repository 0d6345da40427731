"""API request/response schemas."""

from order_spine.api.schemas.common import ErrorDetail, ProblemDetail
from order_spine.api.schemas.orders import CheckoutOut, FallbackOut, OrderIn, OrdersPage
from order_spine.api.schemas.store import StoreBindingOut, StoreBindingUpdate

__all__ = [
    "CheckoutOut",
    "ErrorDetail",
    "FallbackOut",
    "OrderIn",
    "OrdersPage",
    "ProblemDetail",
    "StoreBindingOut",
    "StoreBindingUpdate",
]
