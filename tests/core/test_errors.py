"""
Tests for order_spine.core.errors.

Tests cover:
- Retry semantics per error type
- Categories
- Context attachment and serialization
"""

import pytest

from order_spine.core.errors import (
    AuthError,
    BulkheadFullError,
    CircuitOpenError,
    ConfigError,
    DownstreamError,
    ErrorCategory,
    FatalStoreError,
    OrderSpineError,
    TimeoutExpired,
    TransientStoreError,
    ValidationError,
)


class TestRetrySemantics:
    """Which errors the pipeline may retry."""

    @pytest.mark.parametrize(
        "error",
        [
            TransientStoreError("throttled"),
            DownstreamError("cart down"),
            TimeoutExpired(timeout=20.0, operation="addOrder"),
        ],
    )
    def test_transient_errors_are_retryable(self, error):
        assert error.retryable is True

    @pytest.mark.parametrize(
        "error",
        [
            ValidationError("bad page", field="page"),
            FatalStoreError("no such table"),
            ConfigError("missing region"),
            AuthError("no identity"),
            CircuitOpenError(),
            BulkheadFullError(),
        ],
    )
    def test_other_errors_are_not_retryable(self, error):
        assert error.retryable is False

    def test_retryable_can_be_overridden(self):
        """A 404 from the cart service is a downstream error that must not be retried."""
        error = DownstreamError("not found", retryable=False)

        assert error.retryable is False
        assert error.category == ErrorCategory.DOWNSTREAM


class TestCategories:
    def test_store_errors_are_storage(self):
        assert TransientStoreError("x").category == ErrorCategory.STORAGE
        assert FatalStoreError("x").category == ErrorCategory.STORAGE

    def test_rejections_are_resilience(self):
        assert CircuitOpenError().category == ErrorCategory.RESILIENCE
        assert BulkheadFullError().category == ErrorCategory.RESILIENCE

    def test_all_errors_share_base(self):
        for cls in (ValidationError, TransientStoreError, FatalStoreError, CircuitOpenError):
            assert issubclass(cls, OrderSpineError)


class TestContextAndSerialization:
    def test_with_context_sets_known_fields_and_metadata(self):
        error = TransientStoreError("throttled").with_context(op_kind="addOrder", shard=3)

        assert error.context.op_kind == "addOrder"
        assert error.context.metadata == {"shard": 3}

    def test_to_dict(self):
        cause = RuntimeError("boom")
        error = FatalStoreError("write failed", cause=cause).with_context(table="orders")

        data = error.to_dict()

        assert data["error_type"] == "FatalStoreError"
        assert data["category"] == "STORAGE"
        assert data["retryable"] is False
        assert data["context"] == {"table": "orders"}
        assert data["cause"] == "boom"
        assert error.__cause__ is cause

    def test_validation_error_carries_field(self):
        data = ValidationError("pageSize must be >= 1", field="pageSize", value=0).to_dict()

        assert data["field"] == "pageSize"
        assert data["value"] == "0"

    def test_timeout_message(self):
        error = TimeoutExpired(timeout=20.0, elapsed=20.01, operation="getOrders")

        assert "getOrders" in str(error)
        assert "20.0s" in str(error)
