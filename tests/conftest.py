# tests/conftest.py
import io
import os
import sys
import tempfile
import uuid
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from PIL import Image

# ensure project root is importable
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

# point the data dir at a temp location before storefront.config is imported,
# so importing the app never creates ./data in the working tree
_tmp_root = tempfile.mkdtemp(prefix="storefront_test_")
os.environ["DATA_DIR"] = os.path.join(_tmp_root, "data")
os.environ["IMAGE_DIR"] = os.path.join(_tmp_root, "images")

from storefront.config import settings  # noqa: E402
from storefront import database as app_database  # noqa: E402
from storefront.main import app  # noqa: E402
from storefront.core.security import create_access_token, hash_password  # noqa: E402
from storefront.models.product import Product  # noqa: E402
from storefront.models.user import Identity  # noqa: E402
from storefront.services.cart import CartService  # noqa: E402
from storefront.services.catalog import ProductCatalog  # noqa: E402
from storefront.services.checkout import CheckoutService  # noqa: E402

# hashing is the slow part of creating users; hash the shared test password once
TEST_PASSWORD = "testpass"
_TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


@pytest.fixture(autouse=True)
def isolated_store(tmp_path, monkeypatch):
    """
    Every test gets its own empty data directory and image directory.
    """
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    monkeypatch.setattr(app_database.db, "data_dir", data_dir)
    monkeypatch.setattr(settings, "image_dir", str(tmp_path / "images"))
    yield app_database.db


@pytest.fixture
def store(isolated_store):
    return isolated_store


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def catalog(store):
    return ProductCatalog(store)


@pytest.fixture
def carts(store, catalog):
    return CartService(store, catalog)


@pytest.fixture
def checkout_service(store, carts, catalog):
    return CheckoutService(store, carts, catalog)


@pytest.fixture
def make_product(store):
    """
    Insert a product row directly and return it as a Product.
    Usage: p = make_product(name="Lamp", price="10.00", stock=5)
    """
    def _fn(name="Widget", price="10.00", stock=5, brand="Acme", category="general"):
        product = Product(name=name, brand=brand, category=category, price=Decimal(str(price)), stock=stock)
        row = store.create_record("products", product.to_dict(), id_field="id")
        return Product.from_dict(row)
    return _fn


@pytest.fixture
def product_stock(store):
    """Read the persisted stock of a product."""
    def _fn(product_id):
        return Product.from_dict(store.get_record("products", "id", product_id)).stock
    return _fn


@pytest.fixture
def set_stock(store):
    """Change a product's stock behind the cart's back (another sale, an admin edit...)."""
    def _fn(product_id, stock):
        assert store.update_record("products", "id", product_id, {"stock": stock})
    return _fn


@pytest.fixture
def make_user(store):
    """
    Create a user row directly in the file-backed DB. Returns the row dict.
    The plain password is TEST_PASSWORD.
    """
    def _fn(email=None, name="Test User", is_admin=False):
        if email is None:
            email = f"user_{uuid.uuid4().hex[:8]}@example.com"
        return store.create_record(
            "users",
            {
                "name": name,
                "email": email,
                "password_hash": _TEST_PASSWORD_HASH,
                "is_admin": is_admin,
                "created_at": datetime.now(timezone.utc).isoformat(sep=" "),
            },
            id_field="id",
        )
    return _fn


@pytest.fixture
def identity():
    """A fresh caller identity; cart services do not need a users row."""
    return Identity(user_id=f"u_{uuid.uuid4().hex[:8]}")


@pytest.fixture
def other_identity():
    return Identity(user_id=f"u_{uuid.uuid4().hex[:8]}")


@pytest.fixture
def auth_header():
    """
    Build an Authorization header for a user row.
    Usage: hdr = auth_header(user_row)
    """
    def _h(user_row):
        return {"Authorization": f"Bearer {create_access_token(subject=user_row['id'])}"}
    return _h


@pytest.fixture
def user_headers(make_user, auth_header):
    return auth_header(make_user())


@pytest.fixture
def admin_headers(make_user, auth_header):
    return auth_header(make_user(email="admin@example.com", name="Admin", is_admin=True))


@pytest.fixture
def make_sample_jpeg_bytes():
    """
    Return a callable that generates JPEG bytes for tests that need image uploads.
    Usage: jpg = make_sample_jpeg_bytes(size=(200,200))
    """
    def _fn(size=(200, 200), color=(180, 120, 60)):
        bio = io.BytesIO()
        im = Image.new("RGB", size, color)
        im.save(bio, format="JPEG", quality=85)
        bio.seek(0)
        return bio.read()
    return _fn


@pytest.fixture
def user_password():
    """Plain password of every user created through make_user."""
    return TEST_PASSWORD
