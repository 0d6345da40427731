"""
FastAPI application factory.

``create_app()`` wires middleware, routers, error handlers, and
lifespan events into a single ``FastAPI`` instance.

Manifesto:
    The app factory is the single composition root — middleware, the
    order service, routers, and lifecycle hooks are wired here so the
    rest of the codebase never touches ``FastAPI`` directly.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from order_spine.api.deps import get_settings
from order_spine.api.middleware.errors import register_error_handlers
from order_spine.api.middleware.request_id import RequestIDMiddleware
from order_spine.api.middleware.timing import TimingMiddleware
from order_spine.core.logging import get_logger
from order_spine.core.settings import OrderSpineSettings
from order_spine.services.orders import OrderService, build_order_service
from order_spine.storage.dynamo import MutableStoreConfig


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan — startup / shutdown hooks."""
    log = get_logger("order_spine.api")
    settings = app.state.settings
    log.info(
        "order_api_starting",
        version=app.version,
        region=settings.dynamo_region,
        table=settings.table_name,
        cart_service=settings.cart_service_url,
    )
    yield
    cart = getattr(app.state.order_service, "cart", None)
    if hasattr(cart, "close"):
        cart.close()
    log.info("order_api_stopping")


def create_app(
    *,
    settings: OrderSpineSettings | None = None,
    service: OrderService | None = None,
    store_config: MutableStoreConfig | None = None,
) -> FastAPI:
    """Build and return a fully-configured FastAPI application.

    Parameters
    ----------
    settings : OrderSpineSettings | None
        Override settings (useful for testing).  When ``None`` the cached
        singleton from :func:`get_settings` is used.
    service : OrderService | None
        Pre-wired service (tests pass one built on fakes).  When ``None``
        the production service is built from ``settings``.
    store_config : MutableStoreConfig | None
        Runtime store binding served by the ``/admin/store`` router.  When
        ``None`` it is taken from the service's store, or seeded from
        ``settings`` for the production service.
    """
    settings = settings or get_settings()
    if service is None:
        store_config = store_config or MutableStoreConfig(settings.dynamo_region, settings.table_name)
        service = build_order_service(settings, store_config)
    elif store_config is None and isinstance(getattr(service.store, "config", None), MutableStoreConfig):
        store_config = service.store.config

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.order_service = service
    app.state.store_config = store_config
    app.dependency_overrides[get_settings] = lambda: settings

    # ── Middleware (outermost → innermost) ────────────────────────────
    app.add_middleware(TimingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Exception handlers ───────────────────────────────────────────
    register_error_handlers(app)

    # ── Routers ──────────────────────────────────────────────────────
    from order_spine.api.routers import orders, store
    from order_spine.core.health import create_health_router

    # Health endpoints at root level (no prefix) for container healthchecks
    app.include_router(
        create_health_router(
            settings.service_name,
            version=settings.api_version,
            snapshot=service.pipeline.snapshot,
        ),
        tags=["health"],
    )
    app.include_router(orders.router, prefix=settings.api_prefix, tags=["orders"])
    if store_config is not None:
        app.include_router(store.router, prefix=settings.api_prefix, tags=["admin"])

    return app
