"""Pytest fixtures for the Flash Delivery API tests."""
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from auth import StaticTokenAuthenticator
from catalog import default_catalog
from config import Settings
from database import JsonFileOrderStore, MongoOrderStore
from main import create_app

ADMIN_PASSWORD = "s3cret-pass"


@pytest.fixture
def orders_path(tmp_path: Path) -> Path:
    return tmp_path / "storage" / "orders.json"


@pytest.fixture
def store(orders_path: Path) -> JsonFileOrderStore:
    return JsonFileOrderStore(str(orders_path))


@pytest.fixture
def catalog():
    return default_catalog()


@pytest.fixture
def settings(orders_path: Path) -> Settings:
    return Settings(admin_password=ADMIN_PASSWORD, orders_file=str(orders_path))


@pytest.fixture
def authenticator() -> StaticTokenAuthenticator:
    return StaticTokenAuthenticator(ADMIN_PASSWORD)


@pytest.fixture
def client(settings, store, authenticator, catalog) -> TestClient:
    app = create_app(settings=settings, store=store, authenticator=authenticator, catalog=catalog)
    return TestClient(app)


@pytest.fixture
def admin_headers(authenticator) -> dict:
    return {"Authorization": f"Bearer {authenticator.login(ADMIN_PASSWORD)}"}


@pytest.fixture
def order_payload() -> dict:
    """A valid order: two Classic Wagyu Cheeseburgers with no options."""
    return {
        "address": "  428 Teheran-ro, Gangnam-gu  ",
        "phone": "010-1234-5678",
        "payment_method": "card",
        "items": [{"menu_id": 1, "quantity": 2, "options": []}],
    }


@pytest.fixture
def mongo_collection() -> MagicMock:
    return MagicMock()


@pytest.fixture
def mongo_store(mongo_collection) -> MongoOrderStore:
    return MongoOrderStore(mongo_collection)
