"""
Shared pytest fixtures for order-spine tests.

This module provides:
- A manual monotonic clock for breaker timing
- In-memory store and cart fakes (see ``tests/_support/fakes.py``)
- A fast ``ResiliencePipeline`` that records retry pauses instead of sleeping
- An ``OrderService`` wired to all of the above
"""

from __future__ import annotations

import pytest

from order_spine.execution.pipeline import ResiliencePipeline, ResiliencePolicy
from order_spine.services.orders import ADD_ORDER, GET_ORDERS, OrderService
from tests._support.fakes import FakeCart, InMemoryOrderStore, ManualClock, SteppingClock


@pytest.fixture
def manual_clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def policy() -> ResiliencePolicy:
    """Production-shaped policy with a short timeout."""
    return ResiliencePolicy(
        timeout_seconds=1.0,
        max_retries=3,
        retry_delay_seconds=0.0,
        request_volume_threshold=4,
        failure_ratio=0.5,
        breaker_delay_seconds=2.0,
        bulkhead_limit=5,
    )


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def pipeline(policy, manual_clock, sleeps) -> ResiliencePipeline:
    return ResiliencePipeline(
        {GET_ORDERS: policy, ADD_ORDER: policy},
        clock=manual_clock,
        sleep=sleeps.append,
    )


@pytest.fixture
def store() -> InMemoryOrderStore:
    return InMemoryOrderStore()


@pytest.fixture
def cart() -> FakeCart:
    return FakeCart()


@pytest.fixture
def order_service(store, cart, pipeline) -> OrderService:
    return OrderService(store, cart, pipeline, clock=SteppingClock())
