"""Tests for the DynamoDB order store.

Uses ``botocore.stub.Stubber`` against a real client so request shapes are
validated by botocore itself; no network access is needed.
"""

import threading
from decimal import Decimal

import boto3
import pytest
from botocore.exceptions import EndpointConnectionError, NoRegionError
from botocore.stub import Stubber

from order_spine.core.errors import FatalStoreError, TransientStoreError
from order_spine.core.models import OrderRecord
from order_spine.storage.dynamo import (
    HISTORY_ATTRIBUTE_NAMES,
    HISTORY_PROJECTION,
    DynamoOrderStore,
    MutableStoreConfig,
    dynamodb_client_factory,
)
from tests._support.fakes import FakeDynamoClient, make_order


def _client(region: str = "us-east-1"):
    return boto3.client(
        "dynamodb",
        region_name=region,
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


def _item(name: str, timestamp: str, price: str = "10.5") -> dict:
    return {
        "Name": {"S": name},
        "Surname": {"S": "Lovelace"},
        "TimeStamp": {"S": timestamp},
        "TotalPrice": {"N": price},
        "OrderStatus": {"S": "COMPLETED"},
        "OrderList": {"S": "[]"},
        "Email": {"S": "ada@example.com"},
        "Address": {"S": "London"},
        "TelNumber": {"S": "123"},
    }


def _query_params(user_id: str, table: str = "orders", start_key: dict | None = None) -> dict:
    params = {
        "TableName": table,
        "KeyConditionExpression": "UserId = :v_userId",
        "ExpressionAttributeValues": {":v_userId": {"S": user_id}},
        "ExpressionAttributeNames": HISTORY_ATTRIBUTE_NAMES,
        "ProjectionExpression": HISTORY_PROJECTION,
    }
    if start_key is not None:
        params["ExclusiveStartKey"] = start_key
    return params


@pytest.fixture
def client():
    return _client()


@pytest.fixture
def stubber(client):
    with Stubber(client) as stub:
        yield stub
        stub.assert_no_pending_responses()


@pytest.fixture
def dynamo_store(client):
    return DynamoOrderStore(MutableStoreConfig("us-east-1", "orders"), client_factory=lambda region: client)


class TestQuery:
    def test_decodes_items(self, dynamo_store, stubber):
        stubber.add_response(
            "query",
            {"Items": [_item("Ada", "2025-01-09T14:03:11.000000Z", "299.99")]},
            _query_params("u1"),
        )

        records = dynamo_store.query("u1")

        assert len(records) == 1
        assert records[0].name == "Ada"
        assert records[0].total_price == Decimal("299.99")
        assert records[0].timestamp == "2025-01-09T14:03:11.000000Z"
        assert records[0].user_id is None

    def test_follows_last_evaluated_key(self, dynamo_store, stubber):
        last_key = {"UserId": {"S": "u1"}, "HashKey": {"S": "k1"}}
        stubber.add_response(
            "query",
            {"Items": [_item("One", "2025-01-01T00:00:00.000000Z")], "LastEvaluatedKey": last_key},
            _query_params("u1"),
        )
        stubber.add_response(
            "query",
            {"Items": [_item("Two", "2025-01-02T00:00:00.000000Z")]},
            _query_params("u1", start_key=last_key),
        )

        records = dynamo_store.query("u1")

        assert [r.name for r in records] == ["One", "Two"]

    def test_empty_history(self, dynamo_store, stubber):
        stubber.add_response("query", {"Items": []}, _query_params("nobody"))

        assert dynamo_store.query("nobody") == []


class TestPut:
    def test_writes_encoded_item(self, dynamo_store, stubber):
        record = OrderRecord.from_order(
            make_order(), user_id="u1", hash_key="abc=", timestamp="2025-01-09T14:03:11.000000Z"
        )
        stubber.add_response(
            "put_item",
            {},
            {
                "TableName": "orders",
                "Item": {
                    "UserId": {"S": "u1"},
                    "HashKey": {"S": "abc="},
                    "Email": {"S": "ada@example.com"},
                    "Name": {"S": "Ada"},
                    "Surname": {"S": "Lovelace"},
                    "Address": {"S": "12 St James's Square, London"},
                    "TelNumber": {"S": "+44 20 7946 0000"},
                    "OrderList": {"S": '[{"productId": "p1", "quantity": 2}]'},
                    "TotalPrice": {"N": "299.99"},
                    "OrderStatus": {"S": "COMPLETED"},
                    "TimeStamp": {"S": "2025-01-09T14:03:11.000000Z"},
                },
            },
        )

        dynamo_store.put(record)


class TestErrorClassification:
    @pytest.mark.parametrize(
        "code,status",
        [
            ("ProvisionedThroughputExceededException", 400),
            ("ThrottlingException", 400),
            ("InternalServerError", 500),
        ],
    )
    def test_transient_codes(self, dynamo_store, stubber, code, status):
        stubber.add_client_error("query", service_error_code=code, http_status_code=status)

        with pytest.raises(TransientStoreError) as exc_info:
            dynamo_store.query("u1")

        assert exc_info.value.retryable is True
        assert exc_info.value.context.table == "orders"
        assert exc_info.value.context.metadata["error_code"] == code

    @pytest.mark.parametrize("code", ["ValidationException", "ResourceNotFoundException"])
    def test_fatal_codes(self, dynamo_store, stubber, code):
        stubber.add_client_error("query", service_error_code=code, http_status_code=400)

        with pytest.raises(FatalStoreError) as exc_info:
            dynamo_store.query("u1")

        assert exc_info.value.retryable is False

    def test_connectivity_is_transient(self):
        class Unreachable(FakeDynamoClient):
            def query(self, **kwargs):
                raise EndpointConnectionError(endpoint_url="http://localhost:8000")

        store = DynamoOrderStore(MutableStoreConfig("us-east-1", "orders"), client_factory=Unreachable)

        with pytest.raises(TransientStoreError):
            store.query("u1")

    def test_client_creation_failure_is_fatal(self):
        def factory(region):
            raise NoRegionError()

        store = DynamoOrderStore(MutableStoreConfig("us-east-1", "orders"), client_factory=factory)

        with pytest.raises(FatalStoreError, match="Error while creating DynamoDB client"):
            store.query("u1")


class TestConnectionManagement:
    @pytest.fixture
    def built(self) -> list[FakeDynamoClient]:
        return []

    @pytest.fixture
    def config(self) -> MutableStoreConfig:
        return MutableStoreConfig("us-east-1", "orders")

    @pytest.fixture
    def managed_store(self, config, built) -> DynamoOrderStore:
        def factory(region):
            client = FakeDynamoClient(region)
            built.append(client)
            return client

        return DynamoOrderStore(config, client_factory=factory)

    def test_client_is_built_lazily_and_reused(self, managed_store, built):
        assert managed_store.connection is None

        managed_store.query("u1")
        managed_store.query("u2")

        assert len(built) == 1

    def test_region_change_rebuilds_client(self, managed_store, config, built):
        managed_store.query("u1")
        config.update(region="eu-west-1")
        managed_store.query("u1")

        assert [c.region for c in built] == ["us-east-1", "eu-west-1"]
        assert managed_store.connection.region == "eu-west-1"
        assert built[1].calls[0][1]["TableName"] == "orders"

    def test_table_change_keeps_client(self, managed_store, config, built):
        managed_store.query("u1")
        config.update(table_name="orders-v2")
        managed_store.query("u1")

        assert len(built) == 1
        assert [call[1]["TableName"] for call in built[0].calls] == ["orders", "orders-v2"]
        assert managed_store.connection.table_name == "orders-v2"

    def test_put_uses_current_table(self, managed_store, config, built):
        config.update(table_name="archive")
        managed_store.put(
            OrderRecord.from_order(make_order(), user_id="u1", hash_key="k", timestamp="2025-01-01T00:00:00Z")
        )

        name, kwargs = built[0].calls[0]
        assert name == "put_item"
        assert kwargs["TableName"] == "archive"
        assert kwargs["Item"]["TotalPrice"] == {"N": "299.99"}


class TestConcurrentConnectionSwap:
    """Region/table changes racing with queries from many threads."""

    TABLES = {"us-east-1": "orders-us", "eu-west-1": "orders-eu"}
    THREADS = 8

    @pytest.fixture
    def built(self) -> list[FakeDynamoClient]:
        return []

    @pytest.fixture
    def config(self) -> MutableStoreConfig:
        return MutableStoreConfig("us-east-1", "orders-us")

    @pytest.fixture
    def managed_store(self, config, built) -> DynamoOrderStore:
        def factory(region):
            client = FakeDynamoClient(region)
            built.append(client)
            return client

        return DynamoOrderStore(config, client_factory=factory)

    def _assert_consistent(self, built):
        for client in built:
            tables = {kwargs["TableName"] for _, kwargs in client.calls}
            assert tables <= {self.TABLES[client.region]}

    def test_each_region_client_built_once(self, managed_store, config, built):
        barrier = threading.Barrier(self.THREADS + 1)

        def worker():
            for _ in range(25):
                managed_store.query("u1")
            barrier.wait()
            barrier.wait()
            for _ in range(25):
                managed_store.query("u1")

        threads = [threading.Thread(target=worker) for _ in range(self.THREADS)]
        for t in threads:
            t.start()
        barrier.wait()
        config.update(region="eu-west-1", table_name="orders-eu")
        barrier.wait()
        for t in threads:
            t.join()

        assert [c.region for c in built] == ["us-east-1", "eu-west-1"]
        assert len(built[0].calls) == len(built[1].calls) == 25 * self.THREADS
        self._assert_consistent(built)
        assert managed_store.connection.table_name == "orders-eu"

    def test_flips_during_queries_never_mix_region_and_table(self, managed_store, config, built):
        start = threading.Barrier(self.THREADS + 1)

        def worker():
            start.wait()
            for _ in range(200):
                managed_store.query("u1")

        threads = [threading.Thread(target=worker) for _ in range(self.THREADS)]
        for t in threads:
            t.start()
        start.wait()
        regions = ["eu-west-1", "us-east-1"] * 25
        for region in regions:
            config.update(region=region, table_name=self.TABLES[region])
        for t in threads:
            t.join()

        assert sum(len(c.calls) for c in built) == 200 * self.THREADS
        assert len(built) <= len(regions) + 1
        self._assert_consistent(built)
        for before, after in zip(built, built[1:]):
            assert before.region != after.region


class TestClientFactory:
    def test_builds_regional_client(self):
        client = dynamodb_client_factory()("eu-central-1")

        assert client.meta.region_name == "eu-central-1"

    def test_endpoint_override(self):
        client = dynamodb_client_factory("http://localhost:8000")("us-east-1")

        assert client.meta.endpoint_url == "http://localhost:8000"
