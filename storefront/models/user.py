# storefront/models/user.py
from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any


def parse_bool(raw: Any) -> bool:
    # CSV cells hold 'True'/'False' strings; older rows may use 1/0 or yes/no
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)):
        return bool(raw)
    if isinstance(raw, str):
        return raw.strip().lower() in ("1", "true", "yes", "y", "t")
    return False


@dataclass
class User:
    """
    Domain model for a user.
    The FileBackedDB stores values as strings; these helpers normalize/convert types.
    """
    name: str
    email: str
    password_hash: str = ""
    is_admin: bool = False
    created_at: Optional[str] = None
    id: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "User":
        if d is None:
            raise ValueError("Cannot construct User from None")
        return cls(
            id=d.get("id") or None,
            name=str(d.get("name") or ""),
            email=str(d.get("email") or ""),
            password_hash=str(d.get("password_hash") or ""),
            is_admin=parse_bool(d.get("is_admin", False)),
            created_at=d.get("created_at") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Plain dict suitable for writing back to CSV/Excel.
        Note: password_hash is included (necessary for persistence), strip it in APIs.
        """
        out = asdict(self)
        out["created_at"] = self.created_at or ""
        out["is_admin"] = bool(self.is_admin)
        return out

    def mask_secret(self) -> Dict[str, Any]:
        """
        Representation safe to expose on API responses (no password_hash).
        """
        d = self.to_dict()
        d.pop("password_hash", None)
        return d


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, passed explicitly into every cart operation."""
    user_id: str
    is_admin: bool = False

    @classmethod
    def of(cls, user: User) -> "Identity":
        if not user.id:
            raise ValueError("Cannot build an Identity for a user without id")
        return cls(user_id=str(user.id), is_admin=bool(user.is_admin))
