"""Clients for downstream services."""

from order_spine.clients.cart import CartServiceClient

__all__ = ["CartServiceClient"]
