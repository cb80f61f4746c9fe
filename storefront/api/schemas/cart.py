from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field

from storefront.api.schemas.product import ProductOut


class AddToCartRequest(BaseModel):
    product_id: str = Field(..., min_length=1)
    # sign is checked by the cart engine so a zero/negative quantity is a 400, not a 422
    quantity: int = Field(..., description="Units to add; must be greater than zero")


class UpdateCartItemRequest(BaseModel):
    quantity: int = Field(..., description="New line quantity; must be greater than zero")


class CartItemOut(BaseModel):
    id: str
    cart_id: str
    product_id: str
    quantity: int
    price_at_time: Decimal
    line_total: Decimal
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    product: Optional[ProductOut] = None


class CartOut(BaseModel):
    id: str
    user_id: str
    created_at: Optional[str] = None
    items: List[CartItemOut] = []
    total_items: int
    total_price: Decimal


class CartCountOut(BaseModel):
    count: int


class CartTotalOut(BaseModel):
    total: Decimal


class ClearCartOut(BaseModel):
    message: str
    removed: int = 0


class PurchaseSummaryOut(BaseModel):
    success: bool
    message: str
    timestamp: str
    total_items: int
    total_price: Decimal
