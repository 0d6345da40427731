"""
Store binding schemas.

Wire names are camelCase (``tableName``).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class StoreBindingOut(BaseModel):
    """Region and table the order store is bound to."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    region: str = Field(description="DynamoDB region")
    table_name: str = Field(description="DynamoDB table holding order records")


class StoreBindingUpdate(BaseModel):
    """Change the store binding.  Omitted fields keep their current value.

    Example:
        {"region": "eu-west-1", "tableName": "orders-eu"}
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    region: str | None = Field(None, min_length=1, description="New DynamoDB region")
    table_name: str | None = Field(None, min_length=1, description="New table name")

    @model_validator(mode="after")
    def _require_a_change(self) -> StoreBindingUpdate:
        if self.region is None and self.table_name is None:
            raise ValueError("region or tableName is required")
        return self
