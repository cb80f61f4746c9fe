# tests/test_checkout.py
import threading
from decimal import Decimal

import pytest

from storefront.core.errors import EmptyCart, InsufficientStock, ProductNotFound, StoreError
from storefront.database import Transaction
from storefront.models.user import Identity
from storefront.services.checkout import CHECKOUT_MESSAGE


def test_checkout_empty_cart(checkout_service, make_product, product_stock, identity):
    lamp = make_product(stock=5)
    with pytest.raises(EmptyCart):
        checkout_service.checkout(identity)
    assert product_stock(lamp.id) == 5


def test_checkout_decrements_stock_and_clears_cart(checkout_service, carts, make_product, product_stock, identity):
    a = make_product(name="A", price="10.00", stock=5)
    b = make_product(name="B", price="5.00", stock=1)
    carts.add_to_cart(identity, a.id, 2)
    carts.add_to_cart(identity, b.id, 1)

    summary = checkout_service.checkout(identity)

    assert summary.success is True
    assert summary.message == CHECKOUT_MESSAGE
    assert summary.timestamp
    # total_items counts lines, not units
    assert summary.total_items == 2
    assert summary.total_price == Decimal("25.00")
    assert product_stock(a.id) == 3
    assert product_stock(b.id) == 0
    assert carts.get_cart_by_user_id(identity).cart.items == []


def test_checkout_uses_captured_prices(checkout_service, carts, catalog, make_product, identity):
    lamp = make_product(price="10.00", stock=5)
    carts.add_to_cart(identity, lamp.id, 2)
    catalog.update_product(lamp.id, {"price": Decimal("99.00")})

    assert checkout_service.checkout(identity).total_price == Decimal("20.00")


def test_checkout_insufficient_stock_changes_nothing(checkout_service, carts, make_product, product_stock, set_stock, identity):
    a = make_product(name="A", stock=5)
    c = make_product(name="C", stock=5)
    carts.add_to_cart(identity, a.id, 1)
    carts.add_to_cart(identity, c.id, 3)
    set_stock(c.id, 2)

    with pytest.raises(InsufficientStock) as exc:
        checkout_service.checkout(identity)

    assert exc.value.product_id == c.id
    assert exc.value.available == 2
    assert exc.value.requested == 3
    assert product_stock(a.id) == 5
    assert product_stock(c.id) == 2
    assert [it.quantity for it in carts.get_cart_by_user_id(identity).cart.items] == [1, 3]


def test_checkout_deleted_product(checkout_service, carts, catalog, make_product, product_stock, identity):
    a = make_product(name="A", stock=5)
    gone = make_product(name="Gone", stock=5)
    carts.add_to_cart(identity, a.id, 1)
    carts.add_to_cart(identity, gone.id, 1)
    catalog.delete_product(gone.id)

    with pytest.raises(ProductNotFound) as exc:
        checkout_service.checkout(identity)
    assert exc.value.product_id == gone.id
    assert product_stock(a.id) == 5
    assert len(carts.get_cart_by_user_id(identity).cart.items) == 2


def test_checkout_rolls_back_when_a_decrement_fails(checkout_service, carts, make_product, product_stock, identity, monkeypatch):
    first = make_product(name="First", stock=5)
    second = make_product(name="Second", stock=5)
    carts.add_to_cart(identity, first.id, 2)
    carts.add_to_cart(identity, second.id, 1)

    orig_decrement = Transaction.decrement_field

    def flaky_decrement(self, table, key, value, field, amount):
        if value == second.id:
            raise OSError("disk went away")
        return orig_decrement(self, table, key, value, field, amount)

    monkeypatch.setattr(Transaction, "decrement_field", flaky_decrement)

    with pytest.raises(OSError):
        checkout_service.checkout(identity)

    assert product_stock(first.id) == 5
    assert product_stock(second.id) == 5
    assert len(carts.get_cart_by_user_id(identity).cart.items) == 2


def test_concurrent_checkouts_sell_last_unit_once(checkout_service, carts, make_product, product_stock):
    last = make_product(name="Last one", stock=1)
    buyers = [Identity(user_id="buyer_a"), Identity(user_id="buyer_b")]
    for buyer in buyers:
        carts.add_to_cart(buyer, last.id, 1)

    barrier = threading.Barrier(len(buyers))
    results, failures = [], []

    def buy(identity):
        barrier.wait()
        try:
            results.append(checkout_service.checkout(identity))
        except StoreError as exc:
            failures.append(exc)

    threads = [threading.Thread(target=buy, args=(b,)) for b in buyers]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == 1
    assert len(failures) == 1
    assert isinstance(failures[0], InsufficientStock)
    assert product_stock(last.id) == 0
