import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from storefront.config import settings
from storefront.core.errors import InsufficientStock, InvalidArgument, ProductNotFound
from storefront.database import FileBackedDB, Transaction
from storefront.models.product import Product

logger = logging.getLogger(__name__)

Store = Union[FileBackedDB, Transaction]

PRODUCTS = "products"


class ProductCatalog:
    """
    Products table access. Read and decrement helpers accept an optional
    `store` so callers already inside a transaction see its staged state.
    """

    def __init__(self, db: FileBackedDB, image_dir: Optional[str] = None):
        self.db = db
        self._image_dir = image_dir

    @property
    def image_dir(self) -> str:
        return self._image_dir or settings.image_dir

    def _store(self, store: Optional[Store]) -> Store:
        return store if store is not None else self.db

    def find_product_by_id(self, product_id: str, store: Optional[Store] = None) -> Optional[Product]:
        row = self._store(store).get_record(PRODUCTS, "id", product_id)
        return Product.from_dict(row) if row else None

    def require_product(self, product_id: str, store: Optional[Store] = None) -> Product:
        product = self.find_product_by_id(product_id, store=store)
        if product is None:
            raise ProductNotFound(product_id)
        return product

    def decrement_product_stock(self, product_id: str, amount: int, store: Optional[Store] = None) -> Product:
        """
        Subtract `amount` from the product's stock only if at least that much is
        available. Raises ProductNotFound or InsufficientStock when the
        conditional update matches no row.
        """
        if amount <= 0:
            raise InvalidArgument("Decrement amount must be greater than zero")
        store = self._store(store)
        row = store.decrement_field(PRODUCTS, "id", product_id, "stock", amount)
        if row is None:
            product = self.require_product(product_id, store=store)
            raise InsufficientStock(product.id, product.stock, amount, product.name)
        return Product.from_dict(row)

    def list_products(self, limit: int = 100, offset: int = 0) -> List[Product]:
        rows = self.db.list_records(PRODUCTS)
        return [Product.from_dict(r) for r in rows[offset: offset + limit]]

    def create_product(self, data: Dict[str, Any], created_by: Optional[str] = None) -> Product:
        product = Product.from_dict(data)
        product.id = None
        product.created_by = created_by
        product.created_at = datetime.now(timezone.utc).isoformat(sep=" ")
        row = self.db.create_record(PRODUCTS, product.to_dict(), id_field="id")
        logger.info("Created product %s (%s)", row["id"], product.name)
        return Product.from_dict(row)

    def update_product(self, product_id: str, updates: Dict[str, Any]) -> Product:
        if not updates:
            return self.require_product(product_id)
        if "price" in updates:
            updates["price"] = str(updates["price"])
        updated = self.db.update_record(PRODUCTS, "id", product_id, updates)
        if not updated:
            raise ProductNotFound(product_id)
        return Product.from_dict(updated)

    def delete_product(self, product_id: str) -> None:
        if not self.db.delete_record(PRODUCTS, "id", product_id):
            raise ProductNotFound(product_id)
        logger.info("Deleted product %s", product_id)

    def add_image(self, product_id: str, filename: str) -> Product:
        with self.db.transaction(PRODUCTS) as tx:
            product = self.require_product(product_id, store=tx)
            if filename not in product.images:
                product.images.append(filename)
            tx.update_record(PRODUCTS, "id", product_id, {"images": product.to_dict()["images"]})
        return product

    def remove_image(self, product_id: str, filename: str) -> Product:
        with self.db.transaction(PRODUCTS) as tx:
            product = self.require_product(product_id, store=tx)
            product.images = [f for f in product.images if f != filename]
            tx.update_record(PRODUCTS, "id", product_id, {"images": product.to_dict()["images"]})
        return product

    def image_urls(self, product: Product) -> List[str]:
        prefix = settings.IMAGE_URL_PREFIX.rstrip("/")
        return [f"{prefix}/products/{product.id}/{fname}" for fname in product.images]
