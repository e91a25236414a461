"""
Unit tests for FastAPI dependency injection.
"""

from __future__ import annotations

from typing import Optional
from unittest.mock import Mock

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from listing_lifecycle.dependencies import (
    build_coordinator,
    get_actor_id,
    get_coordinator,
    get_db_engine,
)
from listing_lifecycle.services.coordinator import ListingLifecycleCoordinator


@pytest.mark.unit
def test_get_db_engine_dependency() -> None:
    """Test that get_db_engine returns the engine instance."""
    engine_gen = get_db_engine()
    engine = next(engine_gen)

    assert engine is not None
    assert isinstance(engine, Engine)


@pytest.mark.unit
def test_dependency_injection_provides_same_engine() -> None:
    """Test that multiple calls get the same engine instance."""
    engine1 = next(get_db_engine())
    engine2 = next(get_db_engine())

    assert engine1 is engine2


@pytest.mark.unit
def test_get_coordinator_is_a_singleton() -> None:
    first = get_coordinator()
    second = get_coordinator()

    assert isinstance(first, ListingLifecycleCoordinator)
    assert first is second
    assert sorted(first.sweeper.kinds) == ["notifications", "payments", "reviews"]


@pytest.mark.unit
def test_build_coordinator_uses_given_engine() -> None:
    engine = Mock(spec=Engine)

    coordinator = build_coordinator(engine)

    assert coordinator.listings.engine is engine
    assert coordinator.payments.engine is engine


@pytest.mark.unit
def test_coordinator_dependency_can_be_overridden() -> None:
    app = FastAPI()

    @app.get("/test")
    def endpoint(coordinator: ListingLifecycleCoordinator = Depends(get_coordinator)) -> dict[str, str]:
        return {"coordinator": coordinator.name}  # type: ignore[attr-defined]

    fake = Mock()
    fake.name = "fake"
    app.dependency_overrides[get_coordinator] = lambda: fake

    response = TestClient(app).get("/test")

    assert response.json() == {"coordinator": "fake"}


@pytest.fixture
def actor_client() -> TestClient:
    app = FastAPI()

    @app.get("/whoami")
    def whoami(actor_id: Optional[str] = Depends(get_actor_id)) -> dict[str, Optional[str]]:
        return {"actor": actor_id}

    return TestClient(app)


@pytest.mark.unit
def test_actor_id_read_from_header(actor_client: TestClient) -> None:
    response = actor_client.get("/whoami", headers={"X-User-Id": " user_2abc "})

    assert response.json() == {"actor": "user_2abc"}


@pytest.mark.unit
@pytest.mark.parametrize("headers", [{}, {"X-User-Id": "   "}])
def test_missing_actor_id_is_none(actor_client: TestClient, headers: dict[str, str]) -> None:
    response = actor_client.get("/whoami", headers=headers)

    assert response.json() == {"actor": None}
