# storefront/api/deps.py
from typing import Optional

from fastapi import Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordBearer

from storefront.config import settings
from storefront.core.security import decode_access_token
from storefront.database import db, FileBackedDB
from storefront.models.user import Identity, User
from storefront.services.cart import CartService
from storefront.services.catalog import ProductCatalog
from storefront.services.checkout import CheckoutService
from storefront.services.users import UserService

# auto_error=False so the cookie fallback below gets a chance
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=settings.OAUTH2_TOKEN_URL, auto_error=False)


def get_db() -> FileBackedDB:
    """
    Dependency that returns the file-backed DB object.
    Usage:
        db = Depends(get_db)
    """
    return db


def get_catalog(store: FileBackedDB = Depends(get_db)) -> ProductCatalog:
    return ProductCatalog(store)


def get_cart_service(store: FileBackedDB = Depends(get_db), catalog: ProductCatalog = Depends(get_catalog)) -> CartService:
    return CartService(store, catalog)


def get_checkout_service(
    store: FileBackedDB = Depends(get_db),
    carts: CartService = Depends(get_cart_service),
    catalog: ProductCatalog = Depends(get_catalog),
) -> CheckoutService:
    return CheckoutService(store, carts, catalog)


def get_user_service(store: FileBackedDB = Depends(get_db)) -> UserService:
    return UserService(store)


def get_current_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    store: FileBackedDB = Depends(get_db),
) -> User:
    """
    Resolve current user from Authorization header (Bearer) or from cookie 'access_token'.
    Only signed, unexpired JWTs are accepted; the 'sub' claim is the user id.
    Raises 401 if not authenticated.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )

    raw = token or request.cookies.get("access_token")
    user_id = decode_access_token(raw) if raw else None
    if not user_id:
        raise credentials_exception

    row = store.get_record("users", "id", user_id)
    if not row:
        raise credentials_exception
    return User.from_dict(row)


def get_identity(current_user: User = Depends(get_current_user)) -> Identity:
    return Identity.of(current_user)


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """
    Dependency to require admin privileges. Raises 403 if user is not admin.
    """
    if not current_user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin privileges required")
    return current_user
