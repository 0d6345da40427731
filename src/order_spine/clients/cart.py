"""HTTP client for the cart service.

After a checkout is written, the caller's cart is cleared with
``DELETE {base_url}/cart``, forwarding the caller's bearer token
unchanged so the cart service resolves the same user.

When no cart-service address is configured the call is skipped and
reported as such; that is not a failure.

Error mapping:
    - connection errors and timeouts          → DownstreamError (retryable)
    - 5xx, 408 and 429 responses              → DownstreamError (retryable)
    - any other non-2xx response              → DownstreamError (not retryable)
"""

from __future__ import annotations

import httpx

from order_spine.core.errors import DownstreamError, ErrorContext
from order_spine.core.logging import get_logger

logger = get_logger(__name__)

RETRYABLE_CLIENT_STATUSES = frozenset({408, 429})
CART_PATH = "/cart"


class CartServiceClient:
    """``CartClient`` over httpx."""

    def __init__(
        self,
        base_url: str | None,
        *,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/") if base_url else None
        self._client = httpx.Client(timeout=timeout, transport=transport)

    @property
    def enabled(self) -> bool:
        return self.base_url is not None

    def clear_cart(self, auth_token: str | None) -> bool:
        """Delete the caller's cart.

        Returns:
            True if the cart service accepted the call, False if skipped

        Raises:
            DownstreamError: On network failure or a non-success response
        """
        if self.base_url is None:
            logger.info("cart_call_skipped", reason="cart_service_url not configured")
            return False

        url = f"{self.base_url}{CART_PATH}"
        headers = {"Accept": "application/json"}
        if auth_token:
            headers["Authorization"] = f"Bearer {auth_token}"

        try:
            response = self._client.delete(url, headers=headers)
        except httpx.HTTPError as e:
            raise DownstreamError(
                f"Cart service unreachable: {e}",
                context=ErrorContext(url=url),
                cause=e,
            ) from e

        if not response.is_success:
            status = response.status_code
            raise DownstreamError(
                f"Cart service returned HTTP {status}",
                retryable=status >= 500 or status in RETRYABLE_CLIENT_STATUSES,
                context=ErrorContext(url=url, http_status=status),
            )

        logger.info("cart_cleared", status=response.status_code)
        return True

    def close(self) -> None:
        self._client.close()
