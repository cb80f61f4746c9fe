from fastapi import APIRouter, Depends, Response, status

from storefront.api.deps import get_cart_service, get_catalog, get_checkout_service, get_identity
from storefront.api.routes.products import product_out
from storefront.api.schemas.cart import (
    AddToCartRequest,
    CartCountOut,
    CartItemOut,
    CartOut,
    CartTotalOut,
    ClearCartOut,
    PurchaseSummaryOut,
    UpdateCartItemRequest,
)
from storefront.models.cart import CartItem
from storefront.models.user import Identity
from storefront.services.cart import CartService
from storefront.services.catalog import ProductCatalog
from storefront.services.checkout import CheckoutService

router = APIRouter(prefix="/api/cart", tags=["cart"])


def _item_out(item: CartItem, catalog: ProductCatalog) -> CartItemOut:
    return CartItemOut(
        id=item.id,
        cart_id=item.cart_id,
        product_id=item.product_id,
        quantity=item.quantity,
        price_at_time=item.price_at_time,
        line_total=item.line_total(),
        created_at=item.created_at,
        updated_at=item.updated_at,
        product=product_out(item.product, catalog) if item.product else None,
    )


@router.get("", response_model=CartOut)
def get_my_cart(
    identity: Identity = Depends(get_identity),
    carts: CartService = Depends(get_cart_service),
    catalog: ProductCatalog = Depends(get_catalog),
):
    """
    The caller's cart (created on first access) with items, their products and
    the derived totals.
    """
    view = carts.get_cart_by_user_id(identity)
    return CartOut(
        id=view.cart.id,
        user_id=view.cart.user_id,
        created_at=view.cart.created_at,
        items=[_item_out(it, catalog) for it in view.cart.items],
        total_items=view.total_items,
        total_price=view.total_price,
    )


@router.post("/items", status_code=status.HTTP_201_CREATED, response_model=CartItemOut)
def add_to_cart(
    payload: AddToCartRequest,
    identity: Identity = Depends(get_identity),
    carts: CartService = Depends(get_cart_service),
    catalog: ProductCatalog = Depends(get_catalog),
):
    item = carts.add_to_cart(identity, payload.product_id, payload.quantity)
    return _item_out(item, catalog)


@router.post("/checkout", response_model=PurchaseSummaryOut)
def checkout(identity: Identity = Depends(get_identity), checkout_service: CheckoutService = Depends(get_checkout_service)):
    summary = checkout_service.checkout(identity)
    return PurchaseSummaryOut(
        success=summary.success,
        message=summary.message,
        timestamp=summary.timestamp,
        total_items=summary.total_items,
        total_price=summary.total_price,
    )


@router.patch("/items/{item_id}", response_model=CartItemOut)
def update_cart_item(
    item_id: str,
    payload: UpdateCartItemRequest,
    identity: Identity = Depends(get_identity),
    carts: CartService = Depends(get_cart_service),
    catalog: ProductCatalog = Depends(get_catalog),
):
    item = carts.update_cart_item(identity, item_id, payload.quantity)
    return _item_out(item, catalog)


@router.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_from_cart(item_id: str, identity: Identity = Depends(get_identity), carts: CartService = Depends(get_cart_service)):
    carts.remove_from_cart(identity, item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("", response_model=ClearCartOut)
def clear_cart(identity: Identity = Depends(get_identity), carts: CartService = Depends(get_cart_service)):
    return carts.clear_cart(identity)


@router.get("/count", response_model=CartCountOut)
def get_cart_item_count(identity: Identity = Depends(get_identity), carts: CartService = Depends(get_cart_service)):
    return {"count": carts.get_cart_item_count(identity)}


@router.get("/total", response_model=CartTotalOut)
def get_cart_total(identity: Identity = Depends(get_identity), carts: CartService = Depends(get_cart_service)):
    return {"total": carts.get_cart_total(identity)}
