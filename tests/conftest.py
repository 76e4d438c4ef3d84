"""Shared fixtures: mocked backends wired into the FastAPI app."""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from catalog_api.main import app, get_index, get_store
from catalog_api.schemas import Product
from catalog_api.search import ProductIndex
from catalog_api.store import CatalogStore


@pytest.fixture
def es_client():
    """Mock Elasticsearch client; tests set search.return_value per case."""
    return MagicMock()


@pytest.fixture
def product_index(es_client):
    return ProductIndex(es_client, "products")


@pytest.fixture
def store():
    return MagicMock(spec=CatalogStore)


@pytest.fixture
def client(store, product_index):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_index] = lambda: product_index
    yield TestClient(app)
    app.dependency_overrides.clear()


def _make_product(pid, **overrides):
    fields = {
        "id": pid,
        "title": f"Product {pid}",
        "description": "A product",
        "category": "beauty",
        "price": 9.99,
        "discountPercentage": 7.17,
        "rating": 4.94,
        "stock": 5,
        "brand": "Essence",
        "sku": f"SKU-{pid}",
        "thumbnail": f"https://cdn.example.com/{pid}.png",
        "tags": ["beauty", "mascara"],
        "images": [f"https://cdn.example.com/{pid}/1.png"],
    }
    fields.update(overrides)
    return Product(**fields)


@pytest.fixture
def products():
    return [_make_product(i) for i in range(1, 46)]


@pytest.fixture
def make_product():
    return _make_product
