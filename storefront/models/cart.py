# storefront/models/cart.py
from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Dict, Any, Iterable, Optional

from storefront.models.product import Product, to_decimal, to_int

CENTS = Decimal("0.01")


@dataclass
class CartItem:
    """
    One line of a cart. `price_at_time` is the product price captured when the
    line was first created and is never refreshed from the catalog.
    """
    product_id: str
    cart_id: Optional[str] = None
    id: Optional[str] = None
    quantity: int = 1
    price_at_time: Decimal = Decimal("0")
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    product: Optional[Product] = None  # attached on read, never persisted

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CartItem":
        if d is None:
            raise ValueError("Cannot construct CartItem from None")
        return cls(
            id=d.get("id") or None,
            cart_id=d.get("cart_id") or None,
            product_id=str(d.get("product_id") or ""),
            quantity=to_int(d.get("quantity"), default=0),
            price_at_time=to_decimal(d.get("price_at_time")),
            created_at=d.get("created_at") or None,
            updated_at=d.get("updated_at") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id or "",
            "cart_id": self.cart_id or "",
            "product_id": self.product_id,
            "quantity": int(self.quantity),
            "price_at_time": str(self.price_at_time),
            "created_at": self.created_at or "",
            "updated_at": self.updated_at or "",
        }

    def line_total(self) -> Decimal:
        return self.price_at_time * int(self.quantity)


@dataclass(frozen=True)
class CartTotals:
    total_items: int
    total_price: Decimal


def compute_totals(items: Iterable[CartItem]) -> CartTotals:
    """
    The only place cart aggregates are computed: sum of quantities and sum of
    price_at_time * quantity, rounded to cents.
    """
    total_items = 0
    total_price = Decimal("0")
    for it in items:
        total_items += int(it.quantity)
        total_price += it.line_total()
    return CartTotals(total_items=total_items, total_price=total_price.quantize(CENTS))


@dataclass
class Cart:
    """
    A user's cart. One row per user in the carts table; its lines live in the
    cart_items table and are kept in insertion order.
    """
    id: Optional[str] = None
    user_id: Optional[str] = None
    created_at: Optional[str] = None
    items: List[CartItem] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: Dict[str, Any], items: Optional[List[CartItem]] = None) -> "Cart":
        if d is None:
            raise ValueError("Cannot construct Cart from None")
        return cls(
            id=d.get("id") or None,
            user_id=d.get("user_id") or None,
            created_at=d.get("created_at") or None,
            items=list(items or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id or "", "user_id": self.user_id or "", "created_at": self.created_at or ""}

    def totals(self) -> CartTotals:
        return compute_totals(self.items)


@dataclass
class CartView:
    """Cart plus its derived totals, as returned to callers."""
    cart: Cart
    totals: CartTotals

    @property
    def total_items(self) -> int:
        return self.totals.total_items

    @property
    def total_price(self) -> Decimal:
        return self.totals.total_price


@dataclass
class PurchaseSummary:
    success: bool
    message: str
    timestamp: str
    total_items: int
    total_price: Decimal
