"""Pytest configuration and fixtures."""

from typing import Any

import pytest

from marta.client import MartaClient

from .fixtures.marta_fixture import BUS_ALL_URL, BUS_ROUTE_URL, TRAIN_URL


@pytest.fixture(autouse=True)
def no_env_api_key(monkeypatch: Any) -> None:
    """Keep a developer's MARTA_API_KEY out of the tests."""
    monkeypatch.delenv("MARTA_API_KEY", raising=False)


@pytest.fixture
def make_client() -> Any:
    """Factory for clients pointed at the test endpoints."""

    def factory(transport: Any, **kwargs: Any) -> MartaClient:
        return MartaClient(
            train_url=TRAIN_URL,
            bus_all_url=BUS_ALL_URL,
            bus_route_url=BUS_ROUTE_URL,
            transport=transport,
            **kwargs,
        )

    return factory
