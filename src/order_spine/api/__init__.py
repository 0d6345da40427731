"""
REST transport for the order service.

Exposes ``GET /orders`` and ``POST /orders`` plus health probes.  Run with::

    order-spine serve
"""

from order_spine.api.app import create_app

__all__ = ["create_app"]
