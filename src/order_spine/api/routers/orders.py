"""
Orders router — order history and checkout.

Endpoints:
    GET    /orders?page&pageSize   One page of the caller's order history
    POST   /orders                 Check out an order

Both endpoints require a caller identity (401 otherwise).  When the
resilience pipeline degrades, the response is the fallback body
``{"description": "..."}`` with status 503 (500 for fatal store or
configuration failures), never an internal error message.

Handlers are plain ``def``: the pipeline blocks on store and cart I/O,
so they run on the threadpool.
"""

from __future__ import annotations

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from order_spine.api.deps import CallerDep, Service
from order_spine.api.schemas.common import ProblemDetail
from order_spine.api.schemas.orders import CheckoutOut, FallbackOut, OrderIn, OrdersPage

router = APIRouter(prefix="/orders")

_ERROR_RESPONSES = {
    400: {"model": ProblemDetail},
    401: {"model": ProblemDetail},
    500: {"model": FallbackOut},
    503: {"model": FallbackOut},
}


@router.get("", response_model=OrdersPage, responses=_ERROR_RESPONSES)
def list_orders(
    caller: CallerDep,
    service: Service,
    page: int | None = Query(None, description="Page number (1-indexed, default 1)"),
    page_size: int | None = Query(None, alias="pageSize", description="Items per page (default 10)"),
):
    """List the caller's orders, oldest first.

    Example:
        GET /orders?page=3&pageSize=10

        Response (200):
        {"orders": [{"Name": "Ada", "TimeStamp": "09-01-2025", ...}], "totalPages": 3}
    """
    result = service.list_orders(caller.user_id, page, page_size)
    if result.degraded is not None:
        return JSONResponse(status_code=result.degraded.status_code, content=result.degraded.to_dict())

    return JSONResponse(
        content=OrdersPage(orders=result.data.items, total_pages=result.data.total_pages).model_dump(by_alias=True)
    )


@router.post("", response_model=CheckoutOut, responses=_ERROR_RESPONSES)
def checkout_order(caller: CallerDep, service: Service, body: OrderIn):
    """Persist the order and clear the caller's cart.

    Example:
        POST /orders
        {"email": "ada@example.com", ..., "totalPrice": 299.99}

        Response (200):
        {"message": "Order processed successfully."}
    """
    result = service.checkout_order(caller.user_id, caller.token, body.to_order())
    if result.degraded is not None:
        return JSONResponse(status_code=result.degraded.status_code, content=result.degraded.to_dict())

    return CheckoutOut(message=result.data.message)
