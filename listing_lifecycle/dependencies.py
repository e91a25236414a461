"""
FastAPI dependency injection providers.

Routes never build services themselves; they ask for them here. Every provider
can be replaced in tests through app.dependency_overrides.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Generator, Optional

from fastapi import Header
from sqlalchemy.engine import Engine

from listing_lifecycle.config import load_asset_host_config
from listing_lifecycle.db.engine import engine
from listing_lifecycle.services.asset_store import AssetStoreClient
from listing_lifecycle.services.asset_uploader import AssetBatchUploader
from listing_lifecycle.services.coordinator import ListingLifecycleCoordinator
from listing_lifecycle.services.repository import ListingRepository, PaymentRepository
from listing_lifecycle.services.sweeper import build_default_sweeper


def get_db_engine() -> Generator[Engine, None, None]:
    """
    Provide database engine for dependency injection.

    Yields:
        Engine: SQLAlchemy database engine
    """
    yield engine


def build_coordinator(target: Engine) -> ListingLifecycleCoordinator:
    """
    Wire a coordinator against one engine and the configured asset host.

    Args:
        target: Engine shared by the listing, payment and dependent stores

    Returns:
        ListingLifecycleCoordinator: Ready to serve requests
    """
    client = AssetStoreClient(load_asset_host_config())
    return ListingLifecycleCoordinator(
        listings=ListingRepository(target),
        payments=PaymentRepository(target),
        uploader=AssetBatchUploader(client),
        sweeper=build_default_sweeper(target),
    )


@lru_cache(maxsize=1)
def _default_coordinator() -> ListingLifecycleCoordinator:
    return build_coordinator(engine)


def get_coordinator() -> ListingLifecycleCoordinator:
    """
    Provide the process-wide coordinator.

    Example:
        >>> app.dependency_overrides[get_coordinator] = lambda: build_coordinator(test_engine)
    """
    return _default_coordinator()


def get_actor_id(x_user_id: Optional[str] = Header(None)) -> Optional[str]:
    """
    Actor id set by the upstream auth gateway.

    Credentials are never checked here; a missing header means an anonymous
    caller, which the coordinator rejects for anything but admin requests.
    """
    return x_user_id.strip() if x_user_id and x_user_id.strip() else None
