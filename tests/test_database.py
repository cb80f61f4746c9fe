# tests/test_database.py
import pytest

from storefront.database import UniqueViolation


def test_create_record_generates_id_and_stores_strings(store):
    row = store.create_record("products", {"name": "Mug", "price": "4.50", "stock": 3})
    assert row["id"]
    fetched = store.get_record("products", "id", row["id"])
    assert fetched["name"] == "Mug"
    assert fetched["stock"] == "3"
    assert fetched["price"] == "4.50"


def test_unique_insert_rejects_duplicates(store):
    store.create_record("carts", {"user_id": "u1"}, unique=("user_id",))
    with pytest.raises(UniqueViolation):
        store.create_record("carts", {"user_id": "u1"}, unique=("user_id",))
    store.create_record("carts", {"user_id": "u2"}, unique=("user_id",))
    assert len(store.list_records("carts")) == 2


def test_unique_on_column_pair(store):
    store.create_record("cart_items", {"cart_id": "c1", "product_id": "p1"}, unique=("cart_id", "product_id"))
    # same product in another cart is fine
    store.create_record("cart_items", {"cart_id": "c2", "product_id": "p1"}, unique=("cart_id", "product_id"))
    with pytest.raises(UniqueViolation):
        store.create_record("cart_items", {"cart_id": "c1", "product_id": "p1"}, unique=("cart_id", "product_id"))


def test_find_records_matches_all_criteria(store):
    store.create_record("cart_items", {"cart_id": "c1", "product_id": "p1", "quantity": 1})
    store.create_record("cart_items", {"cart_id": "c1", "product_id": "p2", "quantity": 2})
    store.create_record("cart_items", {"cart_id": "c2", "product_id": "p1", "quantity": 3})

    rows = store.find_records("cart_items", cart_id="c1", product_id="p1")
    assert [r["quantity"] for r in rows] == ["1"]
    assert store.find_records("cart_items", cart_id="c1", missing_column="x") == []
    assert store.find_records("never_written") == []


def test_delete_records_returns_count(store):
    for pid in ("p1", "p2", "p3"):
        store.create_record("cart_items", {"cart_id": "c1", "product_id": pid})
    store.create_record("cart_items", {"cart_id": "c2", "product_id": "p1"})

    assert store.delete_records("cart_items", cart_id="c1") == 3
    assert store.delete_records("cart_items", cart_id="c1") == 0
    assert len(store.list_records("cart_items")) == 1


def test_decrement_field_is_conditional(store):
    row = store.create_record("products", {"name": "Lamp", "stock": 2})

    assert store.decrement_field("products", "id", row["id"], "stock", 3) is None
    assert store.get_record("products", "id", row["id"])["stock"] == "2"

    updated = store.decrement_field("products", "id", row["id"], "stock", 2)
    assert updated["stock"] == "0"
    assert store.decrement_field("products", "id", row["id"], "stock", 1) is None
    assert store.decrement_field("products", "id", "nope", "stock", 1) is None


def test_transaction_commits_on_clean_exit(store):
    with store.transaction("carts", "cart_items") as tx:
        cart = tx.create_record("carts", {"user_id": "u1"})
        tx.create_record("cart_items", {"cart_id": cart["id"], "product_id": "p1"})
        # staged rows are visible inside the transaction only
        assert tx.get_record("carts", "user_id", "u1") is not None
        assert store.get_record("carts", "user_id", "u1") is None

    assert store.get_record("carts", "user_id", "u1") is not None
    assert len(store.list_records("cart_items")) == 1


def test_transaction_that_raises_writes_nothing(store):
    product = store.create_record("products", {"name": "Chair", "stock": 5})

    with pytest.raises(RuntimeError):
        with store.transaction("products", "carts") as tx:
            tx.decrement_field("products", "id", product["id"], "stock", 2)
            tx.create_record("carts", {"user_id": "u1"})
            raise RuntimeError("boom")

    assert store.get_record("products", "id", product["id"])["stock"] == "5"
    assert store.list_records("carts") == []


def test_transaction_rejects_tables_outside_its_scope(store):
    with store.transaction("carts") as tx:
        with pytest.raises(ValueError):
            tx.list_records("products")


def test_nested_transaction_reuses_parent(store):
    with store.transaction("carts", "cart_items") as outer:
        with store.transaction("carts", parent=outer) as inner:
            assert inner is outer
            inner.create_record("carts", {"user_id": "u1"})
        # the inner block does not commit on its own
        assert store.list_records("carts") == []
    assert len(store.list_records("carts")) == 1


def test_nested_transaction_must_be_covered_by_parent(store):
    with store.transaction("carts") as outer:
        with pytest.raises(ValueError):
            with store.transaction("carts", "products", parent=outer):
                pass


def test_create_record_leaves_caller_data_alone(store):
    data = {"name": "Mug", "stock": 1}
    row = store.create_record("products", data)
    assert row["id"]
    assert data == {"name": "Mug", "stock": 1}
