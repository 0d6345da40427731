"""Order record storage backends."""

from order_spine.storage.dynamo import (
    DynamoOrderStore,
    MutableStoreConfig,
    StoreConnection,
    classify_store_error,
    dynamodb_client_factory,
)

__all__ = [
    "DynamoOrderStore",
    "MutableStoreConfig",
    "StoreConnection",
    "classify_store_error",
    "dynamodb_client_factory",
]
