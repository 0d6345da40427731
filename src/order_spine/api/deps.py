"""
FastAPI dependency injection — shared singletons and per-request identity.

Usage in routers::

    from order_spine.api.deps import CallerDep, Service

    @router.get("/orders")
    def list_orders(caller: CallerDep, service: Service):
        ...

Identity is established upstream (API gateway / auth proxy).  This layer
only reads what the gateway forwards: the subject in ``X-User-Id``, group
claims in ``X-User-Groups`` and the bearer token in ``Authorization``.
A request with no subject is rejected before any store or cart call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request

from order_spine.core.errors import AuthError, PermissionDeniedError
from order_spine.core.logging import bind_context
from order_spine.core.settings import OrderSpineSettings
from order_spine.services.orders import OrderService
from order_spine.storage.dynamo import MutableStoreConfig

# ── Settings (singleton) ─────────────────────────────────────────────────


@lru_cache(maxsize=1)
def get_settings() -> OrderSpineSettings:
    """Cached settings — loaded once per process."""
    return OrderSpineSettings()


# ── Order service (singleton per app) ────────────────────────────────────


def get_order_service(request: Request) -> OrderService:
    """The service wired by ``create_app``."""
    return request.app.state.order_service


def get_store_config(request: Request) -> MutableStoreConfig:
    """The runtime store binding wired by ``create_app``."""
    return request.app.state.store_config


# ── Caller identity (per-request) ────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class Caller:
    """Pre-validated caller identity.

    Attributes:
        user_id: Subject the orders belong to
        groups: Group claims, logged and checked by ``require_admin``
        token: Raw bearer credential, forwarded to the cart service
    """

    user_id: str
    groups: tuple[str, ...] = field(default_factory=tuple)
    token: str | None = None


def _bearer_token(header: str | None) -> str | None:
    if not header:
        return None
    scheme, _, credential = header.partition(" ")
    if scheme.lower() != "bearer" or not credential.strip():
        return None
    return credential.strip()


async def get_caller(request: Request) -> Caller:
    """Read the caller's identity from gateway headers.

    Raises:
        AuthError: If no user id was forwarded
    """
    settings = request.app.state.settings
    user_id = (request.headers.get(settings.user_id_header) or "").strip()
    if not user_id:
        raise AuthError("Unauthorized: only authenticated users can access their orders.")

    raw_groups = request.headers.get(settings.groups_header, "")
    groups = tuple(g.strip() for g in raw_groups.split(",") if g.strip())
    caller = Caller(
        user_id=user_id,
        groups=groups,
        token=_bearer_token(request.headers.get("Authorization")),
    )
    bind_context(user_id=caller.user_id, groups=list(caller.groups))
    return caller


async def require_admin(request: Request, caller: Annotated[Caller, Depends(get_caller)]) -> Caller:
    """Caller identity, restricted to members of ``settings.admin_group``.

    Raises:
        PermissionDeniedError: If the caller lacks the admin group
    """
    admin_group = request.app.state.settings.admin_group
    if admin_group not in caller.groups:
        raise PermissionDeniedError(f"Forbidden: membership in '{admin_group}' is required.")
    return caller


# ── Convenience type aliases ─────────────────────────────────────────────

Service = Annotated[OrderService, Depends(get_order_service)]
CallerDep = Annotated[Caller, Depends(get_caller)]
AdminDep = Annotated[Caller, Depends(require_admin)]
StoreConfigDep = Annotated[MutableStoreConfig, Depends(get_store_config)]
