"""
Checkout: turn the caller's cart into stock decrements and an empty cart.

The whole sequence (load, validate every line, decrement, clear) runs in a
single transaction holding the carts, cart_items and products locks. If any
step raises, nothing staged is written: stock and cart stay as they were.
"""
import logging
from datetime import datetime, timezone

from storefront.core.errors import EmptyCart, InsufficientStock, StoreError
from storefront.database import FileBackedDB
from storefront.models.cart import PurchaseSummary
from storefront.models.user import Identity
from storefront.services.cart import CART_TABLES, CartService
from storefront.services.catalog import ProductCatalog

logger = logging.getLogger(__name__)

CHECKOUT_MESSAGE = "Purchase completed successfully!"


class CheckoutService:
    def __init__(self, db: FileBackedDB, carts: CartService, catalog: ProductCatalog):
        self.db = db
        self.carts = carts
        self.catalog = catalog

    def checkout(self, identity: Identity) -> PurchaseSummary:
        try:
            with self.db.transaction(*CART_TABLES) as tx:
                view = self.carts.get_cart_by_user_id(identity, tx=tx)
                items = view.cart.items
                if not items:
                    raise EmptyCart()

                # validate every line before touching stock
                for item in items:
                    product = self.catalog.require_product(item.product_id, store=tx)
                    if product.stock < item.quantity:
                        raise InsufficientStock(product.id, product.stock, item.quantity, product.name)

                for item in items:
                    self.catalog.decrement_product_stock(item.product_id, item.quantity, store=tx)

                self.carts.clear_cart(identity, tx=tx)
        except StoreError as exc:
            logger.warning("Checkout failed for user %s: %s", identity.user_id, exc)
            raise

        summary = PurchaseSummary(
            success=True,
            message=CHECKOUT_MESSAGE,
            timestamp=datetime.now(timezone.utc).isoformat(),
            total_items=len(items),
            total_price=view.total_price,
        )
        logger.info(
            "Checkout completed for user %s: %d line(s), total %s", identity.user_id, summary.total_items, summary.total_price
        )
        return summary
