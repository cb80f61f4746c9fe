# storefront/models/product.py
from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Optional, Dict, Any, List
import json


def to_decimal(value: Any, default: str = "0") -> Decimal:
    """Parse a stored price ("10.5", 10.5, Decimal) into a Decimal; blanks become `default`."""
    if isinstance(value, Decimal):
        return value
    if value in (None, ""):
        return Decimal(default)
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Invalid decimal value: {value!r}")


def to_int(value: Any, default: int = 0) -> int:
    if value in (None, ""):
        return default
    return int(float(value))


def parse_filenames(raw: Any) -> List[str]:
    """Image filenames are stored as a JSON list in a single cell; tolerate a bare filename."""
    if not raw:
        return []
    if isinstance(raw, list):
        return [str(x) for x in raw]
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        return [str(raw)]
    if isinstance(parsed, list):
        return [str(x) for x in parsed]
    return [str(parsed)]


@dataclass
class Product:
    """
    Catalog product. The CSV-backed store keeps every cell as a string,
    so from_dict converts price to Decimal and stock to int.
    """
    id: Optional[str] = None
    name: str = ""
    brand: Optional[str] = ""
    category: Optional[str] = "general"
    description: Optional[str] = ""
    price: Decimal = Decimal("0")
    stock: int = 0
    images: List[str] = field(default_factory=list)
    created_by: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Product":
        if d is None:
            raise ValueError("Cannot construct Product from None")
        return cls(
            id=d.get("id") or None,
            name=str(d.get("name") or ""),
            brand=str(d.get("brand") or ""),
            category=str(d.get("category") or "general"),
            description=str(d.get("description") or ""),
            price=to_decimal(d.get("price")),
            stock=to_int(d.get("stock")),
            images=parse_filenames(d.get("images")),
            created_by=d.get("created_by") or None,
            created_at=d.get("created_at") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Row shape for the products table: images serialized into one JSON cell."""
        return {
            "id": self.id or "",
            "name": self.name,
            "brand": self.brand or "",
            "category": self.category or "general",
            "description": self.description or "",
            "price": str(self.price),
            "stock": int(self.stock),
            "images": json.dumps(self.images, ensure_ascii=False),
            "created_by": self.created_by or "",
            "created_at": self.created_at or "",
        }
