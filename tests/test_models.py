# tests/test_models.py
from decimal import Decimal

import pytest

from storefront.core.errors import InsufficientStock, ProductNotFound
from storefront.models.cart import CartItem, compute_totals
from storefront.models.product import Product
from storefront.models.user import User


def test_compute_totals_rounds_to_cents():
    items = [
        CartItem(product_id="a", quantity=2, price_at_time=Decimal("10.00")),
        CartItem(product_id="b", quantity=3, price_at_time=Decimal("0.333")),
    ]
    totals = compute_totals(items)
    assert totals.total_items == 5
    assert totals.total_price == Decimal("21.00")
    assert compute_totals([]).total_price == Decimal("0.00")


def test_product_from_csv_row():
    row = {"id": "p1", "name": "Lamp", "price": "12.5", "stock": "3", "images": '["a.jpg", "b.png"]', "brand": ""}
    product = Product.from_dict(row)
    assert product.price == Decimal("12.5")
    assert product.stock == 3
    assert product.images == ["a.jpg", "b.png"]
    assert Product.from_dict(product.to_dict()).images == ["a.jpg", "b.png"]


def test_cart_item_from_csv_row():
    item = CartItem.from_dict({"id": "i1", "cart_id": "c1", "product_id": "p1", "quantity": "2", "price_at_time": "4.20"})
    assert item.quantity == 2
    assert item.line_total() == Decimal("8.40")


def test_user_masks_password_hash():
    user = User.from_dict({"id": "u1", "name": "A", "email": "a@example.com", "password_hash": "x", "is_admin": "True"})
    assert user.is_admin is True
    assert "password_hash" not in user.mask_secret()


def test_error_payloads():
    err = InsufficientStock("p1", 2, 3, "Lamp")
    assert str(err) == "Insufficient stock for Lamp. Available: 2, requested: 3"
    assert err.to_dict() == {
        "detail": str(err),
        "error": "insufficient_stock",
        "product_id": "p1",
        "available": 2,
        "requested": 3,
    }
    missing = ProductNotFound("p9")
    assert missing.status_code == 404
    assert missing.to_dict()["product_id"] == "p9"


@pytest.mark.parametrize("raw", ["", None])
def test_blank_price_defaults_to_zero(raw):
    assert Product.from_dict({"id": "p", "name": "x", "price": raw}).price == Decimal("0")
