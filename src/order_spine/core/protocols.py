"""
Structural contracts for the service's outbound collaborators.

``OrderService`` depends on these shapes, not on boto3 or httpx.  The
DynamoDB gateway and the HTTP cart client satisfy them in production;
tests pass in-memory fakes that match the same methods.

Architecture:
    ::

        protocols.py
        ├── OrderStore   — query all records for a user, put one record
        └── CartClient   — clear the caller's cart

Guardrails:
    ❌ DON'T: Let transport exceptions escape an implementation
    ✅ DO: Raise ``TransientStoreError`` / ``FatalStoreError`` / ``DownstreamError``
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from order_spine.core.models import OrderRecord


@runtime_checkable
class OrderStore(Protocol):
    """Key-value store holding order records."""

    def query(self, user_id: str) -> list[OrderRecord]:
        """Return every record for ``user_id``, in store-defined order."""
        ...

    def put(self, record: OrderRecord) -> None:
        """Write one record (last writer wins)."""
        ...


@runtime_checkable
class CartClient(Protocol):
    """Downstream cart service."""

    def clear_cart(self, auth_token: str | None) -> bool:
        """Delete the caller's cart.

        Returns:
            True if the call was made, False if it was skipped
        """
        ...
