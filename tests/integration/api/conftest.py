"""API-level integration test fixtures.

Provides a TestClient running the full application lifespan, so every
test starts with a fresh workflow service and connection registry.
"""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from fix_trade_sim.api.main import app
from fix_trade_sim.infrastructure.config.loader import CONFIG_ENV_VAR

CONFIG_PATH = Path(__file__).parents[3] / "config" / "default.yaml"


@pytest.fixture
def client(monkeypatch):
    """TestClient with startup and shutdown run around the test.

    The config path is pinned so the tests do not depend on the working
    directory pytest was started from.
    """
    monkeypatch.setenv(CONFIG_ENV_VAR, str(CONFIG_PATH))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def new_order_frame():
    """An order.new frame for 100 AAPL at 10."""
    return {
        "type": "order.new",
        "data": {
            "symbol": "AAPL",
            "side": "Buy",
            "quantity": 100,
            "order_type": "Limit",
            "price": 10.0,
        },
    }
