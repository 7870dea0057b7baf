import pytest
from fastapi.testclient import TestClient

from storefront.cart_store import CartStore
from storefront.main import app
from storefront.schemas import CustomerInfo
from storefront.storage import MemoryStorage


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def cart(storage):
    return CartStore(storage)


@pytest.fixture
def customer():
    return CustomerInfo(
        email="ada@example.com",
        name="Ada Lovelace",
        phone="555-0100",
        address="12 Analytical Way",
        city="London",
        state="LDN",
        zip_code="N1 9GU",
    )


@pytest.fixture
def api():
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
