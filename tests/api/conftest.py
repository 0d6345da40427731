"""
Fixtures for API tests: an app wired to in-memory fakes and a TestClient.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from order_spine.api.app import create_app
from order_spine.core.settings import OrderSpineSettings


@pytest.fixture
def api_settings() -> OrderSpineSettings:
    return OrderSpineSettings(
        cors_origins=["http://shop.example"],
        cart_service_url=None,
        debug=False,
    )


@pytest.fixture
def app(api_settings, order_service):
    return create_app(settings=api_settings, service=order_service)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
