"""DynamoDB order store.

Wraps a low-level ``boto3`` DynamoDB client behind the ``OrderStore``
contract.  Botocore exceptions never escape: throttling and connectivity
problems become ``TransientStoreError`` (retried by the pipeline), and
everything else becomes ``FatalStoreError``.

Connection management:
    The region and table name come from a config source that may change
    at runtime.  Each call reads the configured pair and compares it with
    the bound ``StoreConnection``.  On a region change the client is
    rebuilt; on a table-only change the existing client is kept and only
    the table binding moves.  The handle is immutable and is replaced
    under a lock, so no caller ever sees a client paired with the wrong
    table.  Each call dereferences the handle once and uses that snapshot
    for every request it makes.

    ::

        query(user_id) / put(record)
            │
            ├── config.current() → (region, table)
            ├── _connection matches?  ── yes ──▶ use it
            │        │ no
            │        ▼
            │   lock ── re-check ── rebuild client / rebind table ── swap
            │
            └── client.query / client.put_item  (errors classified)
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

import boto3
from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from order_spine.core.errors import (
    ErrorContext,
    FatalStoreError,
    OrderSpineError,
    TransientStoreError,
)
from order_spine.core.logging import get_logger
from order_spine.core.models import OrderRecord

logger = get_logger(__name__)

# ClientError codes worth retrying
TRANSIENT_ERROR_CODES = frozenset(
    {
        "ProvisionedThroughputExceededException",
        "ThrottlingException",
        "RequestLimitExceeded",
        "InternalServerError",
        "ServiceUnavailable",
        "TransactionConflictException",
    }
)

TRANSIENT_TRANSPORT_ERRORS = (
    EndpointConnectionError,
    ConnectTimeoutError,
    ReadTimeoutError,
    ConnectionClosedError,
)

HISTORY_PROJECTION = "#N, Surname, #T, TotalPrice, OrderStatus, OrderList, Email, Address, TelNumber"
HISTORY_ATTRIBUTE_NAMES = {"#N": "Name", "#T": "TimeStamp"}
USER_KEY_CONDITION = "UserId = :v_userId"


@dataclass(frozen=True)
class StoreConnection:
    """A client bound to one region and one table."""

    region: str
    table_name: str
    client: Any = field(repr=False, compare=False)


class StoreConfigSource(Protocol):
    def current(self) -> tuple[str, str]:
        """Return the configured ``(region, table_name)``."""
        ...


class MutableStoreConfig:
    """Region and table that operators can change while the service runs.

    Both values are replaced together, so readers never see a new region
    paired with an old table.
    """

    def __init__(self, region: str, table_name: str):
        self._lock = threading.Lock()
        self._value = (region, table_name)

    def current(self) -> tuple[str, str]:
        with self._lock:
            return self._value

    def update(self, region: str | None = None, table_name: str | None = None) -> None:
        with self._lock:
            old_region, old_table = self._value
            value = (region or old_region, table_name or old_table)
            self._value = value
        logger.info("store_config_updated", region=value[0], table=value[1])


def dynamodb_client_factory(endpoint_url: str | None = None) -> Callable[[str], Any]:
    """Build a factory producing DynamoDB clients for a region.

    Botocore's own retries are disabled; retrying is the pipeline's job.
    """
    client_config = Config(retries={"total_max_attempts": 1, "mode": "standard"})

    def build(region: str) -> Any:
        client_kwargs: dict[str, Any] = {
            "service_name": "dynamodb",
            "region_name": region,
            "config": client_config,
        }
        if endpoint_url:
            client_kwargs["endpoint_url"] = endpoint_url
        return boto3.client(**client_kwargs)

    return build


def classify_store_error(
    error: Exception,
    *,
    operation: str,
    table: str | None = None,
) -> OrderSpineError:
    """Translate a botocore exception into the store error taxonomy."""
    context = ErrorContext(table=table, metadata={"store_operation": operation})

    if isinstance(error, ClientError):
        code = error.response.get("Error", {}).get("Code", "")
        status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        context.http_status = status
        context.metadata["error_code"] = code
        message = f"DynamoDB {operation} failed: {code or 'unknown error'}"
        if code in TRANSIENT_ERROR_CODES or (status is not None and status >= 500):
            return TransientStoreError(message, context=context, cause=error)
        return FatalStoreError(message, context=context, cause=error)

    if isinstance(error, TRANSIENT_TRANSPORT_ERRORS):
        return TransientStoreError(
            f"DynamoDB {operation} could not reach the endpoint: {error}",
            context=context,
            cause=error,
        )

    return FatalStoreError(f"DynamoDB {operation} failed: {error}", context=context, cause=error)


class DynamoOrderStore:
    """``OrderStore`` backed by a DynamoDB table keyed by ``UserId``/``HashKey``."""

    def __init__(
        self,
        config: StoreConfigSource,
        client_factory: Callable[[str], Any] | None = None,
    ):
        self._config = config
        self._client_factory = client_factory or dynamodb_client_factory()
        self._lock = threading.Lock()
        self._connection: StoreConnection | None = None
        self._serializer = TypeSerializer()
        self._deserializer = TypeDeserializer()

    @property
    def config(self) -> StoreConfigSource:
        """Source of the configured region and table."""
        return self._config

    @property
    def connection(self) -> StoreConnection | None:
        """Currently bound handle, or None before the first call."""
        return self._connection

    def _current_connection(self) -> StoreConnection:
        region, table_name = self._config.current()

        connection = self._connection
        if connection is not None and (connection.region, connection.table_name) == (region, table_name):
            return connection

        with self._lock:
            connection = self._connection
            if connection is not None and (connection.region, connection.table_name) == (region, table_name):
                return connection

            if connection is None or connection.region != region:
                try:
                    client = self._client_factory(region)
                except (BotoCoreError, ValueError) as e:
                    raise FatalStoreError(
                        f"Error while creating DynamoDB client: {e}",
                        context=ErrorContext(table=table_name, metadata={"region": region}),
                        cause=e,
                    ) from e
                logger.info(
                    "store_client_rebuilt",
                    region=region,
                    table=table_name,
                    previous_region=connection.region if connection else None,
                )
                connection = StoreConnection(region=region, table_name=table_name, client=client)
            else:
                logger.info(
                    "store_table_rebound",
                    region=region,
                    table=table_name,
                    previous_table=connection.table_name,
                )
                connection = StoreConnection(
                    region=region, table_name=table_name, client=connection.client
                )

            self._connection = connection
            return connection

    def _call(self, connection: StoreConnection, operation: str, **kwargs: Any) -> dict[str, Any]:
        try:
            return getattr(connection.client, operation)(**kwargs)
        except (ClientError, BotoCoreError) as e:
            error = classify_store_error(e, operation=operation, table=connection.table_name)
            logger.warning(
                "store_call_failed",
                operation=operation,
                table=connection.table_name,
                region=connection.region,
                error_type=type(error).__name__,
                retryable=error.retryable,
                error=str(e),
            )
            raise error from e

    def _decode(self, item: dict[str, Any]) -> dict[str, Any]:
        return {key: self._deserializer.deserialize(value) for key, value in item.items()}

    def _encode(self, item: dict[str, Any]) -> dict[str, Any]:
        return {key: self._serializer.serialize(value) for key, value in item.items()}

    def query(self, user_id: str) -> list[OrderRecord]:
        """Fetch every record for ``user_id``, following result pages."""
        connection = self._current_connection()
        request: dict[str, Any] = {
            "TableName": connection.table_name,
            "KeyConditionExpression": USER_KEY_CONDITION,
            "ExpressionAttributeValues": {":v_userId": {"S": user_id}},
            "ExpressionAttributeNames": dict(HISTORY_ATTRIBUTE_NAMES),
            "ProjectionExpression": HISTORY_PROJECTION,
        }

        records: list[OrderRecord] = []
        pages = 0
        while True:
            response = self._call(connection, "query", **request)
            pages += 1
            records.extend(OrderRecord.from_item(self._decode(item)) for item in response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                break
            request["ExclusiveStartKey"] = last_key

        logger.debug(
            "store_query_completed",
            table=connection.table_name,
            records=len(records),
            pages=pages,
        )
        return records

    def put(self, record: OrderRecord) -> None:
        """Write one record."""
        connection = self._current_connection()
        self._call(
            connection,
            "put_item",
            TableName=connection.table_name,
            Item=self._encode(record.to_item()),
        )
        logger.info("store_record_written", table=connection.table_name, hash_key=record.hash_key)
