"""
order-spine — order history and checkout for a shop backend.

Every store and cart-service call runs through one resilience pipeline
(timeout → retry → circuit breaker → bulkhead → fallback), scoped per
operation kind.

Packages:
    core       ─ errors, models, pagination, hashing, settings, logging, health
    execution  ─ circuit breaker, retry, timeout, bulkhead, pipeline
    storage    ─ DynamoDB order store
    clients    ─ cart service HTTP client
    services   ─ OrderService use cases
    api        ─ FastAPI transport
    cli        ─ typer entry point
"""

__version__ = "1.0.0"
