"""
Store router — inspect and move the order store binding at runtime.

Endpoints:
    GET    /admin/store    Region and table currently configured
    PUT    /admin/store    Change region and/or table

Both require membership in ``settings.admin_group`` (403 otherwise).
The store picks the new binding up on its next call: a region change
rebuilds the DynamoDB client, a table-only change keeps it.
"""

from __future__ import annotations

from fastapi import APIRouter

from order_spine.api.deps import AdminDep, StoreConfigDep
from order_spine.api.schemas.common import ProblemDetail
from order_spine.api.schemas.store import StoreBindingOut, StoreBindingUpdate
from order_spine.core.logging import get_logger
from order_spine.storage.dynamo import MutableStoreConfig

logger = get_logger(__name__)

router = APIRouter(prefix="/admin/store")

_ERROR_RESPONSES = {
    400: {"model": ProblemDetail},
    401: {"model": ProblemDetail},
    403: {"model": ProblemDetail},
}


def _binding(config: MutableStoreConfig) -> StoreBindingOut:
    region, table_name = config.current()
    return StoreBindingOut(region=region, table_name=table_name)


@router.get("", response_model=StoreBindingOut, response_model_by_alias=True, responses=_ERROR_RESPONSES)
def get_store_binding(admin: AdminDep, config: StoreConfigDep):
    """Current store binding.

    Example:
        GET /admin/store

        Response (200):
        {"region": "us-east-1", "tableName": "orders"}
    """
    return _binding(config)


@router.put("", response_model=StoreBindingOut, response_model_by_alias=True, responses=_ERROR_RESPONSES)
def update_store_binding(admin: AdminDep, config: StoreConfigDep, body: StoreBindingUpdate):
    """Move the store to another region and/or table."""
    config.update(region=body.region, table_name=body.table_name)
    binding = _binding(config)
    logger.info(
        "store_binding_changed",
        changed_by=admin.user_id,
        region=binding.region,
        table=binding.table_name,
    )
    return binding
