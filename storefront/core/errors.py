from __future__ import annotations
from typing import Any, Dict, Optional


class StoreError(Exception):
    """
    Base class for errors raised by the cart and catalog services.
    Each subclass knows the HTTP status it maps to; the API layer turns any
    StoreError into a JSON body via `to_dict()`.
    """

    status_code = 400
    kind = "store_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, "error": self.kind}


class InvalidArgument(StoreError, ValueError):
    status_code = 400
    kind = "invalid_argument"


class NotFound(StoreError):
    status_code = 404
    kind = "not_found"


class ProductNotFound(NotFound):
    kind = "product_not_found"

    def __init__(self, product_id: str):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id

    def to_dict(self) -> Dict[str, Any]:
        out = super().to_dict()
        out["product_id"] = self.product_id
        return out


class InsufficientStock(StoreError):
    status_code = 400
    kind = "insufficient_stock"

    def __init__(self, product_id: str, available: int, requested: int, product_name: Optional[str] = None):
        label = product_name or product_id
        super().__init__(f"Insufficient stock for {label}. Available: {available}, requested: {requested}")
        self.product_id = product_id
        self.product_name = product_name
        self.available = int(available)
        self.requested = int(requested)

    def to_dict(self) -> Dict[str, Any]:
        out = super().to_dict()
        out.update({"product_id": self.product_id, "available": self.available, "requested": self.requested})
        return out


class EmptyCart(StoreError):
    status_code = 400
    kind = "empty_cart"

    def __init__(self, message: str = "Cart is empty"):
        super().__init__(message)


class Conflict(StoreError):
    status_code = 409
    kind = "conflict"
