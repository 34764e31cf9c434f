import asyncio

import pytest

from fakes import FakeRESTClient
from shop.api import ShopAPI
from shop.notifications import Notifier
from shop.schemas import Product
from shop.storage import KeyValueStorage
from shop.storefront import Storefront

PRODUCTS = [
    {
        "id": 1,
        "name": "Premium Wireless Headphones",
        "description": "Noise-cancelling over-ear headphones with 30-hour battery life.",
        "price": 299.99,
        "category": "Electronics",
        "rating": 4.5,
        "stock": 45,
        "image": "/images/headphones.jpg",
        "specs": {"Battery": "30 hours", "Connectivity": "Bluetooth 5.0"},
    },
    {
        "id": 2,
        "name": "Wireless Gaming Mouse",
        "description": "High-precision wireless mouse with 16000 DPI.",
        "price": 79.99,
        "category": "Electronics",
        "rating": 4.4,
        "stock": 3,
        "specs": {"DPI": "16000"},
    },
    {
        "id": 3,
        "name": "Yoga Mat",
        "description": "Non-slip mat for home workouts.",
        "price": 39.99,
        "category": "Sports",
        "rating": 4.8,
        "stock": 10,
    },
    {
        "id": 4,
        "name": "Coffee Maker",
        "description": "Programmable drip coffee maker.",
        "price": 129.99,
        "category": "Home",
        "rating": 4.1,
        "stock": 0,
    },
]


@pytest.fixture
def backend() -> FakeRESTClient:
    client = FakeRESTClient()
    client.seed("products", PRODUCTS)
    return client


@pytest.fixture
def api(backend) -> ShopAPI:
    return ShopAPI(backend)


@pytest.fixture
def storage() -> KeyValueStorage:
    return KeyValueStorage(":memory:")


@pytest.fixture
def notifier() -> Notifier:
    return Notifier()


@pytest.fixture
def shop(api, storage, notifier) -> Storefront:
    return Storefront(api=api, storage=storage, notifier=notifier)


@pytest.fixture
def signed_in(shop) -> Storefront:
    result = asyncio.run(shop.register("ada@example.com", "secret123", "Ada"))
    assert result.success
    return shop


@pytest.fixture
def products():
    return {row["id"]: Product.model_validate(row) for row in PRODUCTS}
