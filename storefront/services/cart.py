"""
Cart engine: per-user cart resolution, line item mutation and read aggregates.

Every mutating operation runs inside one record-store transaction covering the
carts, cart_items and products tables. Validation failures therefore leave no
trace: not even the lazily created cart is written. Each method also accepts
an enclosing transaction (`tx`) so checkout can compose them.
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Union

from storefront.core.errors import InsufficientStock, InvalidArgument, NotFound
from storefront.database import FileBackedDB, Transaction, UniqueViolation
from storefront.models.cart import Cart, CartItem, CartView, compute_totals
from storefront.models.product import Product
from storefront.models.user import Identity
from storefront.services.catalog import ProductCatalog

logger = logging.getLogger(__name__)

Store = Union[FileBackedDB, Transaction]

CARTS = "carts"
CART_ITEMS = "cart_items"
PRODUCTS = "products"
CART_TABLES = (CARTS, CART_ITEMS, PRODUCTS)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(sep=" ")


def _require_positive(quantity) -> int:
    # bool is an int subclass; True must not count as a quantity of 1
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidArgument("Quantity must be an integer")
    if quantity <= 0:
        raise InvalidArgument("Quantity must be greater than zero")
    return quantity


class CartService:
    def __init__(self, db: FileBackedDB, catalog: ProductCatalog):
        self.db = db
        self.catalog = catalog

    # --- cart resolution ---

    def _resolve_cart_row(self, identity: Identity, store: Store) -> Dict:
        """
        Find-or-insert the caller's cart row. The insert carries a unique
        constraint on user_id; losing a creation race means re-fetching the
        winner's row instead of creating a second cart.
        """
        row = store.get_record(CARTS, "user_id", identity.user_id)
        if row:
            return row
        try:
            row = store.create_record(
                CARTS, {"user_id": identity.user_id, "created_at": _now()}, id_field="id", unique=("user_id",)
            )
            logger.info("Created cart %s for user %s", row["id"], identity.user_id)
            return row
        except UniqueViolation:
            row = store.get_record(CARTS, "user_id", identity.user_id)
            if row is None:
                raise
            return row

    def _load_items(self, cart_id: str, store: Store, with_products: bool = True) -> List[CartItem]:
        items = [CartItem.from_dict(r) for r in store.find_records(CART_ITEMS, cart_id=cart_id)]
        if with_products:
            for it in items:
                it.product = self.catalog.find_product_by_id(it.product_id, store=store)
        return items

    def _find_own_item(self, cart_id: str, item_id: str, store: Store) -> CartItem:
        rows = store.find_records(CART_ITEMS, id=item_id, cart_id=cart_id)
        if not rows:
            # also covers items that exist but belong to another user's cart
            raise NotFound("Cart item not found")
        return CartItem.from_dict(rows[0])

    def get_or_create_cart(self, identity: Identity, tx: Optional[Transaction] = None) -> Cart:
        """
        Return the caller's cart with items (each carrying its product), creating it if needed.
        An existing cart is read without taking any lock; only the first access
        goes through the locked find-or-insert.
        """
        if tx is None:
            row = self.db.get_record(CARTS, "user_id", identity.user_id)
            if row:
                return Cart.from_dict(row, items=self._load_items(row["id"], self.db))
        with self.db.transaction(CARTS, CART_ITEMS, PRODUCTS, parent=tx) as store:
            row = self._resolve_cart_row(identity, store)
            return Cart.from_dict(row, items=self._load_items(row["id"], store))

    def get_cart_by_user_id(self, identity: Identity, tx: Optional[Transaction] = None) -> CartView:
        cart = self.get_or_create_cart(identity, tx=tx)
        return CartView(cart=cart, totals=compute_totals(cart.items))

    # --- item mutation ---

    def add_to_cart(self, identity: Identity, product_id: str, quantity: int,
                    tx: Optional[Transaction] = None) -> CartItem:
        """
        Add `quantity` of a product. A product already in the cart is merged into
        its existing line (combined quantity re-checked against stock); the
        line keeps the price captured when it was first added.
        """
        _require_positive(quantity)
        with self.db.transaction(*CART_TABLES, parent=tx) as store:
            product = self.catalog.find_product_by_id(product_id, store=store)
            if product is None:
                raise NotFound("Product not found")
            if product.stock < quantity:
                raise InsufficientStock(product.id, product.stock, quantity, product.name)

            cart_row = self._resolve_cart_row(identity, store)
            existing = store.find_records(CART_ITEMS, cart_id=cart_row["id"], product_id=product.id)
            if existing:
                line = CartItem.from_dict(existing[0])
                combined = line.quantity + quantity
                if product.stock < combined:
                    raise InsufficientStock(product.id, product.stock, combined, product.name)
                row = store.update_record(CART_ITEMS, "id", line.id, {"quantity": combined, "updated_at": _now()})
            else:
                now = _now()
                row = store.create_record(
                    CART_ITEMS,
                    {
                        "cart_id": cart_row["id"],
                        "product_id": product.id,
                        "quantity": quantity,
                        "price_at_time": str(product.price),
                        "created_at": now,
                        "updated_at": now,
                    },
                    id_field="id",
                    unique=("cart_id", "product_id"),
                )

        item = CartItem.from_dict(row)
        item.product = product
        logger.info("User %s cart: %s x%d (line quantity now %d)", identity.user_id, product.id, quantity, item.quantity)
        return item

    def update_cart_item(self, identity: Identity, item_id: str, quantity: int,
                         tx: Optional[Transaction] = None) -> CartItem:
        """Overwrite a line's quantity; price_at_time is left untouched."""
        _require_positive(quantity)
        with self.db.transaction(*CART_TABLES, parent=tx) as store:
            cart_row = self._resolve_cart_row(identity, store)
            line = self._find_own_item(cart_row["id"], item_id, store)
            product: Product = self.catalog.require_product(line.product_id, store=store)
            if product.stock < quantity:
                raise InsufficientStock(product.id, product.stock, quantity, product.name)
            row = store.update_record(CART_ITEMS, "id", line.id, {"quantity": quantity, "updated_at": _now()})

        item = CartItem.from_dict(row)
        item.product = product
        logger.info("User %s cart: line %s set to %d", identity.user_id, item_id, quantity)
        return item

    def remove_from_cart(self, identity: Identity, item_id: str, tx: Optional[Transaction] = None) -> None:
        with self.db.transaction(CARTS, CART_ITEMS, parent=tx) as store:
            cart_row = self._resolve_cart_row(identity, store)
            line = self._find_own_item(cart_row["id"], item_id, store)
            store.delete_records(CART_ITEMS, id=line.id, cart_id=cart_row["id"])
        logger.info("User %s cart: removed line %s", identity.user_id, item_id)

    def clear_cart(self, identity: Identity, tx: Optional[Transaction] = None) -> Dict:
        with self.db.transaction(CARTS, CART_ITEMS, parent=tx) as store:
            cart_row = self._resolve_cart_row(identity, store)
            removed = store.delete_records(CART_ITEMS, cart_id=cart_row["id"])
        logger.info("User %s cart: cleared %d line(s)", identity.user_id, removed)
        return {"message": "Cart cleared successfully", "removed": removed}

    # --- read aggregates ---

    def _persisted_items(self, identity: Identity) -> List[CartItem]:
        row = self.db.get_record(CARTS, "user_id", identity.user_id)
        if row:
            return self._load_items(row["id"], self.db, with_products=False)
        with self.db.transaction(CARTS, CART_ITEMS) as store:
            cart_row = self._resolve_cart_row(identity, store)
            return self._load_items(cart_row["id"], store, with_products=False)

    def get_cart_item_count(self, identity: Identity) -> int:
        return compute_totals(self._persisted_items(identity)).total_items

    def get_cart_total(self, identity: Identity) -> Decimal:
        return compute_totals(self._persisted_items(identity)).total_price
