"""Pytest configuration and fixtures."""

import os
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

FIXTURE_CATALOG_DIR = Path(__file__).parent / "fixtures" / "catalog"
ADMIN_TOKEN = "test-admin-token"

# Set test environment variables before importing application modules
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("SESSION_COOKIE_SECURE", "false")
os.environ.setdefault("ADMIN_TOKEN", ADMIN_TOKEN)
os.environ.setdefault("CATALOG_DATA_DIR", str(FIXTURE_CATALOG_DIR))

from src.core.config import get_settings  # noqa: E402
from src.core.store import InMemoryKeyValueStore, reset_store  # noqa: E402
from src.services.catalog_service import Catalog, get_catalog, load_catalog  # noqa: E402


@pytest.fixture(autouse=True)
def store() -> Generator[InMemoryKeyValueStore, None, None]:
    """Give every test a fresh in-memory store and fresh cached settings.

    Yields:
        InMemoryKeyValueStore: The store returned by get_store().
    """
    get_settings.cache_clear()
    get_catalog.cache_clear()
    memory_store = InMemoryKeyValueStore()
    reset_store(memory_store)
    yield memory_store
    reset_store()
    get_settings.cache_clear()
    get_catalog.cache_clear()


@pytest.fixture
def test_settings() -> Any:
    """Provide test settings.

    Returns:
        Settings: Test configuration settings.
    """
    return get_settings()


@pytest.fixture
def override_settings(monkeypatch: pytest.MonkeyPatch) -> Any:
    """Return a function that sets env overrides and reloads settings.

    Services read settings when constructed, so build them after calling it.
    """

    def apply(**values: Any) -> Any:
        for name, value in values.items():
            monkeypatch.setenv(name.upper(), str(value))
        get_settings.cache_clear()
        return get_settings()

    return apply


@pytest.fixture
def catalog() -> Catalog:
    """The small fixture catalog (five products, three categories)."""
    return load_catalog(FIXTURE_CATALOG_DIR)


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Provide a test client for the FastAPI application.

    Entering the client runs the lifespan, which seeds the stock ledger.

    Yields:
        TestClient: FastAPI test client.
    """
    from src.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-Admin-Token": ADMIN_TOKEN}


@pytest_asyncio.fixture
async def shop(catalog: Catalog) -> Any:
    """OrderService wired to the fixture catalog with a seeded stock ledger.

    Its collaborators are reachable as attributes (cart_service,
    stock_service, user_service, activity_service).
    """
    from src.services.activity_service import ActivityService
    from src.services.cart_service import CartService
    from src.services.catalog_service import CatalogService
    from src.services.order_service import OrderService
    from src.services.stock_service import StockLedgerService
    from src.services.user_service import UserService

    activity = ActivityService()
    catalog_service = CatalogService(catalog=catalog)
    stock_service = StockLedgerService(catalog=catalog, activity_service=activity)
    await stock_service.initialize()
    user_service = UserService(activity_service=activity)
    cart_service = CartService(
        catalog_service=catalog_service,
        stock_service=stock_service,
        user_service=user_service,
        activity_service=activity,
    )
    return OrderService(
        catalog_service=catalog_service,
        stock_service=stock_service,
        user_service=user_service,
        cart_service=cart_service,
        activity_service=activity,
    )


@pytest_asyncio.fixture
async def member(shop: Any) -> dict:
    """A registered member with the default signup bonus."""
    return await shop.user_service.register(email="taro@example.com", password="password123", name="Taro")
