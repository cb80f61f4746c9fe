# storefront/api/schemas/product.py
from decimal import Decimal
from pydantic import BaseModel, Field
from typing import List, Optional


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)
    brand: Optional[str] = ""
    category: Optional[str] = "general"
    description: Optional[str] = ""
    price: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    stock: int = Field(0, ge=0)


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    brand: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    stock: Optional[int] = Field(None, ge=0)


class ProductOut(BaseModel):
    id: str
    name: str
    brand: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    price: Decimal
    stock: int
    images: List[str] = []
    created_by: Optional[str] = None
    created_at: Optional[str] = None
