"""Order use cases: list a user's order history and check out an order.

Both use cases run their store (and cart) calls through the shared
``ResiliencePipeline``.  Callers get a ``ServiceResult``: either the data,
or a ``Degradation`` describing the fallback response.  Raw transport
exceptions never reach them; ``ValidationError`` is the only error that
propagates, because bad input is the caller's problem, not a failure.

Architecture:
    ::

        list_orders(user_id, page, page_size)
          ├── validate_page_params
          ├── pipeline.execute("getOrders")
          │     └── store.query → drop unparseable TimeStamp → sort by instant → to_display
          └── paginate (over the full, formatted history)

        checkout_order(user_id, auth_token, order)
          ├── order.validate
          └── pipeline.execute("addOrder")
                ├── derive_idempotency_key(user, lines, now)
                ├── store.put(OrderRecord COMPLETED)
                └── cart.clear_cart(auth_token)

Known weakness:
    The record key includes the submission instant and is derived per
    attempt.  A retry after the write succeeded but the cart call failed
    writes a second record with a different key.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from order_spine.core.errors import ConfigError, FatalStoreError
from order_spine.core.hashing import derive_idempotency_key
from order_spine.core.logging import get_logger
from order_spine.core.models import Order, OrderRecord
from order_spine.core.pagination import Page, paginate, validate_page_params
from order_spine.core.protocols import CartClient, OrderStore
from order_spine.core.timestamps import from_iso8601, to_iso8601, utc_now
from order_spine.execution.pipeline import (
    FallbackContext,
    FallbackReason,
    ResiliencePipeline,
    ResiliencePolicy,
)

if TYPE_CHECKING:
    from order_spine.core.settings import OrderSpineSettings
    from order_spine.storage.dynamo import MutableStoreConfig

logger = get_logger(__name__)

GET_ORDERS = "getOrders"
ADD_ORDER = "addOrder"

FETCH_UNAVAILABLE = "Unable to fetch orders at the moment. Please try again later."
ADD_UNAVAILABLE = "Unable to add order at the moment. Please try again later."
CHECKOUT_SUCCESS = "Order processed successfully."


@dataclass(frozen=True, slots=True)
class Degradation:
    """Why a use case answered with its fallback.

    Attributes:
        op_kind: Operation kind that degraded
        reason: Classified cause from the pipeline
        description: Generic, user-safe message
        status_code: HTTP status for transports (503, or 500 for fatal failures)
        attempts: Times the operation was actually attempted
    """

    op_kind: str
    reason: FallbackReason
    description: str
    status_code: int = 503
    attempts: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"description": self.description}


T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """Envelope returned by every ``OrderService`` use case."""

    success: bool
    data: T | None = None
    degraded: Degradation | None = None
    elapsed_ms: float = 0.0

    @classmethod
    def ok(cls, data: T, *, elapsed_ms: float = 0.0) -> ServiceResult[T]:
        return cls(success=True, data=data, elapsed_ms=elapsed_ms)

    @classmethod
    def fallback(cls, degradation: Degradation, *, elapsed_ms: float = 0.0) -> ServiceResult[T]:
        return cls(success=False, degraded=degradation, elapsed_ms=elapsed_ms)


@dataclass(frozen=True, slots=True)
class CheckoutReceipt:
    """Outcome of a successful checkout."""

    hash_key: str
    timestamp: str
    cart_cleared: bool
    message: str = CHECKOUT_SUCCESS


def _fallback_status(ctx: FallbackContext) -> int:
    if isinstance(ctx.error, (FatalStoreError, ConfigError)):
        return 500
    return 503


class OrderService:
    """The two order use cases, wired to a store, a cart client and a pipeline.

    Args:
        store: Order record store
        cart: Cart service client
        pipeline: Shared resilience pipeline
        display_timezone: Zone used to render history dates
        clock: Source of the submission instant
    """

    def __init__(
        self,
        store: OrderStore,
        cart: CartClient,
        pipeline: ResiliencePipeline,
        *,
        display_timezone: str = "UTC",
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.cart = cart
        self.pipeline = pipeline
        self.display_timezone = display_timezone
        self._clock = clock

    def _degrade(self, description: str) -> Callable[[FallbackContext], Degradation]:
        def fallback(ctx: FallbackContext) -> Degradation:
            return Degradation(
                op_kind=ctx.op_kind,
                reason=ctx.reason,
                description=description,
                status_code=_fallback_status(ctx),
                attempts=ctx.attempts,
            )

        return fallback

    def list_orders(
        self,
        user_id: str,
        page: int | None = None,
        page_size: int | None = None,
    ) -> ServiceResult[Page[dict[str, str]]]:
        """Return one page of the user's order history, oldest first.

        Raises:
            ValidationError: If ``page`` or ``page_size`` is below 1
        """
        page, page_size = validate_page_params(page, page_size)
        start = time.perf_counter()

        def fetch() -> list[dict[str, str]]:
            dated: list[tuple[datetime, OrderRecord]] = []
            for record in self.store.query(user_id):
                try:
                    dated.append((from_iso8601(record.timestamp), record))
                except ValueError:
                    logger.warning(
                        "order_record_skipped",
                        user_id=user_id,
                        hash_key=record.hash_key,
                        timestamp=record.timestamp,
                        reason="unparseable TimeStamp",
                    )
            # Stored fractions vary in precision; order by instant
            dated.sort(key=lambda pair: pair[0])
            return [record.to_display(self.display_timezone) for _, record in dated]

        outcome = self.pipeline.execute(GET_ORDERS, fetch, self._degrade(FETCH_UNAVAILABLE))
        elapsed_ms = (time.perf_counter() - start) * 1000

        if isinstance(outcome, Degradation):
            return ServiceResult.fallback(outcome, elapsed_ms=elapsed_ms)

        result = paginate(outcome, page, page_size)
        logger.info(
            "orders_listed",
            user_id=user_id,
            page=page,
            page_size=page_size,
            total=result.total,
            total_pages=result.total_pages,
        )
        return ServiceResult.ok(result, elapsed_ms=elapsed_ms)

    def checkout_order(
        self,
        user_id: str,
        auth_token: str | None,
        order: Order,
    ) -> ServiceResult[CheckoutReceipt]:
        """Persist the order as COMPLETED, then clear the caller's cart.

        Raises:
            ValidationError: If a required order field is missing or malformed
        """
        order.validate()
        start = time.perf_counter()

        def submit() -> CheckoutReceipt:
            timestamp = to_iso8601(self._clock())
            hash_key = derive_idempotency_key(user_id, order.order_list, timestamp)
            record = OrderRecord.from_order(
                order, user_id=user_id, hash_key=hash_key, timestamp=timestamp
            )
            self.store.put(record)
            cleared = self.cart.clear_cart(auth_token)
            return CheckoutReceipt(hash_key=hash_key, timestamp=timestamp, cart_cleared=cleared)

        outcome = self.pipeline.execute(ADD_ORDER, submit, self._degrade(ADD_UNAVAILABLE))
        elapsed_ms = (time.perf_counter() - start) * 1000

        if isinstance(outcome, Degradation):
            return ServiceResult.fallback(outcome, elapsed_ms=elapsed_ms)

        logger.info(
            "order_checked_out",
            user_id=user_id,
            hash_key=outcome.hash_key,
            cart_cleared=outcome.cart_cleared,
        )
        return ServiceResult.ok(outcome, elapsed_ms=elapsed_ms)


def build_order_service(
    settings: OrderSpineSettings,
    store_config: MutableStoreConfig | None = None,
) -> OrderService:
    """Wire the production store, cart client and pipeline from settings.

    The store follows ``store_config``, seeded from ``dynamo_region`` and
    ``table_name`` when not given, so the binding can move at runtime.
    """
    from order_spine.clients.cart import CartServiceClient
    from order_spine.storage.dynamo import (
        DynamoOrderStore,
        MutableStoreConfig,
        dynamodb_client_factory,
    )

    if store_config is None:
        store_config = MutableStoreConfig(settings.dynamo_region, settings.table_name)

    pipeline = ResiliencePipeline(
        {
            GET_ORDERS: ResiliencePolicy.from_settings(settings.get_orders),
            ADD_ORDER: ResiliencePolicy.from_settings(settings.add_order),
        }
    )
    store = DynamoOrderStore(
        store_config,
        client_factory=dynamodb_client_factory(settings.dynamo_endpoint_url),
    )
    cart = CartServiceClient(settings.cart_service_url, timeout=settings.cart_timeout_seconds)
    return OrderService(store, cart, pipeline, display_timezone=settings.display_timezone)
