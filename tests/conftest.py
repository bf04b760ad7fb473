# tests/conftest.py
import importlib
import os
import tempfile

# logger and config read these at import time
os.environ.setdefault("APP_LOG_DIR", tempfile.mkdtemp(prefix="saree-store-logs-"))
os.environ["APP_ENV"] = "testing"

import mongomock
import pytest

from saree_store import create_storefront_app, create_backoffice_app
from saree_store.constants.service_code import ROLES
from saree_store.models.catalog import Category, Store
from saree_store.models.shopping import ServiceablePincode
from saree_store.models.user import User
from saree_store.services.auth_service import AuthService, hash_password
from saree_store.services.cart_service import CartService
from saree_store.services.inventory_service import InventoryService

db_module = importlib.import_module("saree_store.extensions.db")

PASSWORD = "Secret123!"

SHIPPING_ADDRESS = {
    "name": "Meera Iyer",
    "phone": "9876543210",
    "address_line1": "12 Temple Street",
    "city": "Chennai",
    "state": "Tamil Nadu",
    "pincode": "600001",
}


@pytest.fixture
def mongo_client(monkeypatch):
    client = mongomock.MongoClient()
    monkeypatch.setattr(db_module, "MongoClient", lambda *args, **kwargs: client)
    return client


@pytest.fixture
def app(mongo_client):
    app = create_backoffice_app("testing")
    with app.app_context():
        yield app


@pytest.fixture
def storefront_app(mongo_client):
    return create_storefront_app("testing")


@pytest.fixture
def backoffice_client(app):
    return app.test_client()


@pytest.fixture
def storefront_client(app, storefront_app):
    return storefront_app.test_client()


@pytest.fixture
def make_user(app):
    counter = {"n": 0}

    def _make(role=ROLES["USER"], store_id=None, email=None, is_active=True):
        counter["n"] += 1
        user = User(
            email=email or f"{role}{counter['n']}@example.com",
            password=hash_password(PASSWORD),
            name=f"{role.title()} {counter['n']}",
            role=role,
            store_id=store_id,
            is_active=is_active,
        )
        return User.get_by_id(user.save())

    return _make


@pytest.fixture
def auth_header(app):
    def _header(user):
        return {"Authorization": f"Bearer {AuthService.generate_access_token(user)}"}
    return _header


@pytest.fixture
def make_store(app):
    counter = {"n": 0}

    def _make(name=None):
        counter["n"] += 1
        store_id = Store(name=name or f"Store {counter['n']}", address="MG Road").save()
        return Store.get_by_id(store_id)

    return _make


@pytest.fixture
def make_category(app):
    def _make(name="Silk"):
        return Category.get_by_id(Category(name=name).save())
    return _make


@pytest.fixture
def make_saree(app):
    counter = {"n": 0}

    def _make(total_stock=10, online_stock=None, channel="online", allocations=None, price=1000, **extra):
        counter["n"] += 1
        data = {
            "name": extra.pop("name", f"Kanjivaram {counter['n']}"),
            "price": price,
            "total_stock": total_stock,
            "online_stock": total_stock if online_stock is None else online_stock,
            "distribution_channel": channel,
        }
        data.update(extra)
        return InventoryService.create_saree(data, allocations=allocations)

    return _make


@pytest.fixture
def serviceable_pincode(app):
    pincode_id = ServiceablePincode(pincode=SHIPPING_ADDRESS["pincode"], city="Chennai", state="Tamil Nadu").save()
    return ServiceablePincode.get_by_id(pincode_id)


@pytest.fixture
def fill_cart(app):
    def _fill(user, *lines):
        for saree, quantity in lines:
            CartService.add_item(user["_id"], saree["_id"], quantity)
    return _fill
