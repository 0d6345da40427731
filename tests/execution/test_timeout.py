"""Tests for run_with_timeout."""

import threading
import time

import pytest
import structlog

from order_spine.core.errors import TimeoutExpired, TransientStoreError
from order_spine.execution.timeout import run_with_timeout


class TestRunWithTimeout:
    def test_returns_result(self):
        assert run_with_timeout(lambda: 42, 1.0) == 42

    def test_passes_arguments(self):
        assert run_with_timeout(lambda a, b=0: a + b, 1.0, args=(1,), kwargs={"b": 2}) == 3

    def test_propagates_exceptions(self):
        def op():
            raise TransientStoreError("throttled")

        with pytest.raises(TransientStoreError):
            run_with_timeout(op, 1.0)

    def test_raises_timeout_expired(self):
        release = threading.Event()

        with pytest.raises(TimeoutExpired) as exc_info:
            run_with_timeout(lambda: release.wait(5), 0.05, operation="addOrder")

        release.set()
        assert exc_info.value.operation == "addOrder"
        assert exc_info.value.retryable is True

    def test_caller_is_not_blocked_by_hung_operation(self):
        """The wait ends at the deadline even though the worker is still blocked."""
        release = threading.Event()
        start = time.monotonic()

        with pytest.raises(TimeoutExpired):
            run_with_timeout(lambda: release.wait(5), 0.1)

        assert time.monotonic() - start < 1.0
        release.set()

    @pytest.mark.parametrize("timeout", [0, -1])
    def test_rejects_non_positive_timeout(self, timeout):
        with pytest.raises(ValueError):
            run_with_timeout(lambda: None, timeout)

    def test_log_context_reaches_worker(self):
        structlog.contextvars.bind_contextvars(request_id="req-1")
        try:
            seen = run_with_timeout(lambda: structlog.contextvars.get_contextvars().get("request_id"), 1.0)
        finally:
            structlog.contextvars.clear_contextvars()

        assert seen == "req-1"
