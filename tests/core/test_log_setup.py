"""Tests for order_spine.core.logging."""

from __future__ import annotations

import json
import logging

import pytest
import structlog

from order_spine.core.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    clear_context()
    structlog.reset_defaults()


class TestContext:
    def test_bind_and_unbind(self):
        bind_context(request_id="req-1", user_id="u1")
        assert structlog.contextvars.get_contextvars() == {"request_id": "req-1", "user_id": "u1"}

        unbind_context("user_id")
        assert structlog.contextvars.get_contextvars() == {"request_id": "req-1"}

    def test_log_context_is_scoped(self):
        with LogContext(request_id="abc"):
            assert structlog.contextvars.get_contextvars()["request_id"] == "abc"

        assert "request_id" not in structlog.contextvars.get_contextvars()


class TestConfigureLogging:
    def test_events_keep_their_fields(self):
        configure_logging(level="INFO", json_format=True, service="order-spine-test")
        log = get_logger("order_spine.tests")

        with structlog.testing.capture_logs() as captured:
            log.info("orders_listed", total=3)

        assert captured[0]["event"] == "orders_listed"
        assert captured[0]["total"] == 3
        assert captured[0]["log_level"] == "info"

    def test_service_metadata_processor(self):
        configure_logging(level="INFO", json_format=True, service="order-spine-test")
        processors = structlog.get_config()["processors"]

        event = {"event": "x"}
        for processor in processors[:-1]:
            event = processor(logging.getLogger("order_spine.tests"), "info", event)

        assert event["service.name"] == "order-spine-test"
        assert event["log.level"] == "info"
        assert "@timestamp" in event

    def test_level_filtering(self):
        configure_logging(level="WARNING", json_format=True)
        log = get_logger("order_spine.tests")

        with structlog.testing.capture_logs() as captured:
            log.info("hidden")
            log.warning("fallback_activated")

        assert [entry["event"] for entry in captured] == ["fallback_activated"]

    def test_renders_json(self):
        configure_logging(level="INFO", json_format=True, service="order-spine-test", add_timestamp=False)
        processors = structlog.get_config()["processors"]

        rendered = processors[-1](None, "info", {"event": "cart_cleared", "status": 204})

        assert json.loads(rendered) == {"event": "cart_cleared", "status": 204}
