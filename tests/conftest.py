"""Shared fixtures for the order dashboard tests."""

import os
from datetime import datetime, timedelta

import pytest

# Keep the tests independent of any local .env / shell configuration
os.environ["ENV_MODE"] = "development"
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["EXCEL_EXPORT_ENABLED"] = "false"

from app.core.config import Settings  # noqa: E402
from app.services.order_service import OrderService  # noqa: E402
from app.services.storage.memory import InMemoryOrderStore  # noqa: E402

from tests.factories import START  # noqa: E402


class FakeClock:
    """Deterministic clock; advance it explicitly."""

    def __init__(self, start: datetime = START):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings(tmp_path):
    return Settings(_env_file=None, data_directory=str(tmp_path / "data"))


@pytest.fixture
def store():
    return InMemoryOrderStore()


@pytest.fixture
def service(store, settings, clock):
    return OrderService(store, settings=settings, clock=clock)


@pytest.fixture
def sample_payload():
    """The worked pricing example: 2 × 12.99 + 1 × 8.99, dine-in, 2.00 extra."""
    return {
        "customer_first_name": "Jane",
        "customer_last_name": "Doe",
        "pickup_type": "Dine-In",
        "items": [
            {"name": "Margherita Pizza", "price": 12.99, "quantity": 2},
            {"name": "Caesar Salad", "price": 8.99, "quantity": 1},
            {"name": "Garlic Bread", "price": 5.99, "quantity": 0},
        ],
        "extra_charges": 2.00,
        "notes": "Window seat",
    }
