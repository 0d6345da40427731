"""
In-memory collaborators and builders for order-spine tests.

Usage in test code::

    from tests._support.fakes import InMemoryOrderStore, FakeCart, make_order
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from decimal import Decimal

from order_spine.core.models import Order, OrderRecord
from order_spine.core.timestamps import to_iso8601


class ManualClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class SteppingClock:
    """UTC clock that moves forward one second per reading."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2025, 1, 9, 14, 3, 11, tzinfo=UTC)

    def __call__(self) -> datetime:
        value = self.current
        self.current += timedelta(seconds=1)
        return value


class InMemoryOrderStore:
    """``OrderStore`` fake.

    ``fail_with`` is raised (or called, if it is a plain callable) on every
    operation until cleared.  ``put_calls`` / ``query_calls`` count
    invocations, including failed ones.
    """

    def __init__(self):
        self.records: dict[str, list[OrderRecord]] = {}
        self.fail_with: Exception | Callable[[], None] | None = None
        self.put_calls = 0
        self.query_calls = 0
        self._lock = threading.Lock()

    def _maybe_fail(self) -> None:
        if self.fail_with is None:
            return
        if isinstance(self.fail_with, Exception):
            raise self.fail_with
        self.fail_with()

    def query(self, user_id: str) -> list[OrderRecord]:
        with self._lock:
            self.query_calls += 1
        self._maybe_fail()
        return list(self.records.get(user_id, []))

    def put(self, record: OrderRecord) -> None:
        with self._lock:
            self.put_calls += 1
        self._maybe_fail()
        with self._lock:
            self.records.setdefault(record.user_id, []).append(record)


class FakeCart:
    """``CartClient`` fake recording forwarded tokens."""

    def __init__(self, fail_with: Exception | None = None, enabled: bool = True):
        self.fail_with = fail_with
        self.enabled = enabled
        self.tokens: list[str | None] = []

    def clear_cart(self, auth_token: str | None) -> bool:
        if not self.enabled:
            return False
        self.tokens.append(auth_token)
        if self.fail_with is not None:
            raise self.fail_with
        return True


def make_order(**overrides) -> Order:
    fields = {
        "email": "ada@example.com",
        "name": "Ada",
        "surname": "Lovelace",
        "address": "12 St James's Square, London",
        "tel_number": "+44 20 7946 0000",
        "order_list": '[{"productId": "p1", "quantity": 2}]',
        "total_price": Decimal("299.99"),
    }
    fields.update(overrides)
    return Order(**fields)


def make_record(user_id: str, index: int, base: datetime | None = None) -> OrderRecord:
    """Record number ``index``, created ``index`` days after ``base``."""
    base = base or datetime(2025, 1, 1, 12, 0, tzinfo=UTC)
    return OrderRecord.from_order(
        make_order(name=f"Customer {index:02d}"),
        user_id=user_id,
        hash_key=f"key-{index:02d}",
        timestamp=to_iso8601(base + timedelta(days=index)),
    )


class FakeDynamoClient:
    """Low-level DynamoDB client double recording which region built it."""

    def __init__(self, region: str):
        self.region = region
        self.calls: list[tuple[str, dict]] = []

    def query(self, **kwargs):
        self.calls.append(("query", kwargs))
        return {"Items": []}

    def put_item(self, **kwargs):
        self.calls.append(("put_item", kwargs))
        return {}
