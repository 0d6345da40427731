"""Settings for the order service.

All values can be overridden with ``ORDERS_``-prefixed environment
variables or a ``.env`` file.  Nested resilience knobs use ``__`` as the
delimiter, e.g. ``ORDERS_GET_ORDERS__TIMEOUT_SECONDS=30``.

Order of precedence (highest → lowest):
    1. Constructor arguments
    2. Environment variables
    3. ``.env`` file
    4. Defaults below

Examples:
    >>> settings = OrderSpineSettings(dynamo_region="eu-west-1")
    >>> settings.get_orders.bulkhead_limit
    5
    >>> settings.add_order.bulkhead_limit
    6
"""

from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ResilienceSettings(BaseModel):
    """Fault-tolerance knobs for one operation kind.

    Fields
    ──────
    timeout_seconds          : Per-attempt deadline
    max_retries              : Additional attempts after the first
    retry_delay_seconds      : Pause before the first retry
    retry_multiplier         : Growth factor per retry (1.0 keeps the pause constant)
    retry_max_delay_seconds  : Cap on the grown pause
    request_volume_threshold : Size of the breaker's rolling window
    failure_ratio            : Failure share of a full window that opens the breaker
    breaker_delay_seconds    : Time spent open before a half-open probe
    bulkhead_limit           : Max concurrently in-flight invocations
    """

    timeout_seconds: float = Field(default=20.0, gt=0)
    max_retries: int = Field(default=3, ge=0)
    retry_delay_seconds: float = Field(default=0.0, ge=0)
    retry_multiplier: float = Field(default=1.0, ge=1)
    retry_max_delay_seconds: float = Field(default=30.0, ge=0)
    request_volume_threshold: int = Field(default=4, ge=1)
    failure_ratio: float = Field(default=0.5, gt=0, le=1)
    breaker_delay_seconds: float = Field(default=2.0, ge=0)
    bulkhead_limit: int = Field(default=5, ge=1)


class OrderSpineSettings(BaseSettings):
    """Settings for the order service and its REST transport."""

    model_config = SettingsConfigDict(
        env_prefix="ORDERS_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # ── Server ───────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8080, description="Bind port")
    debug: bool = Field(default=False, description="Expose error detail in 500 responses")

    # ── Observability ────────────────────────────────────────────────────
    log_level: str = Field(default="INFO", description="Structlog log level")
    json_logs: bool | None = Field(default=None, description="JSON logs; None auto-detects from tty")
    service_name: str = Field(default="order-spine", description="service.name log field")

    # ── API ──────────────────────────────────────────────────────────────
    api_prefix: str = Field(default="", description="URL prefix for the orders router")
    api_title: str = Field(default="Orders API", description="OpenAPI title")
    api_version: str = Field(default="1.0.0", description="OpenAPI version string")
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="Static CORS allow-list",
    )

    # ── Identity (supplied by the upstream gateway) ──────────────────────
    user_id_header: str = Field(default="X-User-Id", description="Header carrying the caller's subject")
    groups_header: str = Field(default="X-User-Groups", description="Comma-separated group claims")
    admin_group: str = Field(default="order-admins", description="Group allowed to change the store binding at runtime")

    # ── Store ────────────────────────────────────────────────────────────
    dynamo_region: str = Field(default="us-east-1", description="DynamoDB region")
    table_name: str = Field(default="orders", description="DynamoDB table holding order records")
    dynamo_endpoint_url: str | None = Field(default=None, description="Endpoint override (LocalStack)")

    # ── Cart service ─────────────────────────────────────────────────────
    cart_service_url: str | None = Field(
        default=None,
        description="Base URL of the cart service; unset skips the cart-clearing call",
    )
    cart_timeout_seconds: float = Field(default=10.0, gt=0, description="HTTP timeout for cart calls")

    # ── Presentation ─────────────────────────────────────────────────────
    display_timezone: str = Field(default="UTC", description="Zone used to render order dates")

    # ── Resilience (per operation kind) ──────────────────────────────────
    get_orders: ResilienceSettings = Field(default_factory=ResilienceSettings)
    add_order: ResilienceSettings = Field(
        default_factory=lambda: ResilienceSettings(bulkhead_limit=6),
    )
