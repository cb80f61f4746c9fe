"""
User accounts over the users table: signup, admin management and password
changes. Passwords are only ever stored as bcrypt hashes.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from email_validator import EmailNotValidError, validate_email

from storefront.core.errors import Conflict, InvalidArgument, NotFound
from storefront.core.security import hash_password, verify_password
from storefront.database import FileBackedDB, UniqueViolation
from storefront.models.user import User

logger = logging.getLogger(__name__)

USERS = "users"
MIN_PASSWORD_LENGTH = 6


def normalize_email(raw: str) -> str:
    """Check the address syntax (no DNS lookup) and return it lowercased."""
    try:
        result = validate_email((raw or "").strip(), check_deliverability=False)
    except EmailNotValidError as exc:
        raise InvalidArgument(f"Invalid email: {exc}")
    return result.normalized.lower()


def _require_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if not name:
        raise InvalidArgument("Name is required")
    return name


def _require_password(password: Optional[str]) -> str:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise InvalidArgument(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return password


class UserService:
    def __init__(self, db: FileBackedDB):
        self.db = db

    def create_user(self, name: str, email: str, password: str, is_admin: bool = False) -> User:
        user = User(
            name=_require_name(name),
            email=normalize_email(email),
            password_hash=hash_password(_require_password(password)),
            is_admin=is_admin,
            created_at=datetime.now(timezone.utc).isoformat(sep=" "),
        )
        data = user.to_dict()
        data.pop("id", None)
        try:
            row = self.db.create_record(USERS, data, id_field="id", unique=("email",))
        except UniqueViolation:
            raise Conflict("Email is already in use")
        logger.info("Registered user %s", row["id"])
        return User.from_dict(row)

    def list_users(self) -> List[User]:
        return [User.from_dict(r) for r in self.db.list_records(USERS)]

    def get_user(self, user_id: str) -> User:
        row = self.db.get_record(USERS, "id", user_id)
        if not row:
            raise NotFound("User not found")
        return User.from_dict(row)

    def find_by_email(self, email: str) -> Optional[User]:
        row = self.db.get_record(USERS, "email", (email or "").strip().lower())
        return User.from_dict(row) if row else None

    def update_user(self, user_id: str, updates: Dict[str, Any]) -> User:
        """
        Apply the non-None fields of `updates` (name, email, password, is_admin).
        A new password is hashed; a new email must not belong to another user.
        """
        changes: Dict[str, Any] = {}
        if updates.get("name") is not None:
            changes["name"] = _require_name(updates["name"])
        if updates.get("email") is not None:
            changes["email"] = normalize_email(updates["email"])
        if updates.get("password") is not None:
            changes["password_hash"] = hash_password(_require_password(updates["password"]))
        if updates.get("is_admin") is not None:
            changes["is_admin"] = bool(updates["is_admin"])

        with self.db.transaction(USERS) as tx:
            row = tx.get_record(USERS, "id", user_id)
            if row is None:
                raise NotFound("User not found")
            if "email" in changes:
                taken = [r for r in tx.find_records(USERS, email=changes["email"]) if r["id"] != user_id]
                if taken:
                    raise Conflict("Email is already in use")
            if changes:
                row = tx.update_record(USERS, "id", user_id, changes)

        logger.info("Updated user %s (%s)", user_id, ", ".join(sorted(changes)) or "no changes")
        return User.from_dict(row)

    def delete_user(self, user_id: str) -> None:
        if not self.db.delete_record(USERS, "id", user_id):
            raise NotFound("User not found")
        logger.info("Deleted user %s", user_id)

    def update_password(self, user_id: str, current_password: str, new_password: str) -> None:
        user = self.get_user(user_id)
        if not user.password_hash or not verify_password(current_password, user.password_hash):
            raise InvalidArgument("Current password is incorrect")
        hashed = hash_password(_require_password(new_password))
        self.db.update_record(USERS, "id", user_id, {"password_hash": hashed})
        logger.info("Password changed for user %s", user_id)
