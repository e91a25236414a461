"""
Shared fixtures for unit and integration tests.

DATABASE_URL must exist before listing_lifecycle.config is imported, so it is
seeded here at collection time. Integration tests never touch that URL; each one
gets its own SQLite file under tmp_path built from the ORM metadata.
"""

from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./.pytest-listings.db")

from pathlib import Path
from typing import Generator

import pytest
from sqlalchemy.engine import Engine

from listing_lifecycle.config import AssetHostConfig
from listing_lifecycle.db.engine import build_engine
from listing_lifecycle.models.base import Base
from listing_lifecycle.models.listings import Listing  # noqa: F401
from listing_lifecycle.models.notifications import Notification  # noqa: F401
from listing_lifecycle.models.payments import Payment  # noqa: F401
from listing_lifecycle.models.reviews import Review  # noqa: F401
from listing_lifecycle.services.asset_uploader import AssetBatchUploader
from listing_lifecycle.services.coordinator import ListingLifecycleCoordinator
from listing_lifecycle.services.repository import ListingRepository, PaymentRepository
from listing_lifecycle.services.sweeper import build_default_sweeper
from tests.factories import FakeAssetStore


@pytest.fixture
def asset_config() -> AssetHostConfig:
    return AssetHostConfig(
        api_url="https://assets.example.test:2083",
        username="market",
        token="s3cret-token",
        public_base_url="https://cdn.example.test",
    )


@pytest.fixture
def db_engine(tmp_path: Path) -> Generator[Engine, None, None]:
    """Fresh SQLite database with every table created."""
    engine = build_engine(f"sqlite:///{tmp_path / 'listings.db'}")
    Base.metadata.create_all(engine)

    yield engine

    engine.dispose()


@pytest.fixture
def asset_store() -> FakeAssetStore:
    return FakeAssetStore()


@pytest.fixture
def listing_repo(db_engine: Engine) -> ListingRepository:
    return ListingRepository(db_engine)


@pytest.fixture
def coordinator(db_engine: Engine, asset_store: FakeAssetStore) -> ListingLifecycleCoordinator:
    return ListingLifecycleCoordinator(
        listings=ListingRepository(db_engine),
        payments=PaymentRepository(db_engine),
        uploader=AssetBatchUploader(asset_store),  # type: ignore[arg-type]
        sweeper=build_default_sweeper(db_engine),
    )
