# storefront/api/routes/products.py
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from storefront.api.deps import get_catalog, require_admin
from storefront.api.schemas.product import ProductCreate, ProductOut, ProductUpdate
from storefront.models.product import Product
from storefront.models.user import User
from storefront.services.catalog import ProductCatalog
from storefront.utils.images import delete_product_image, save_image_upload

router = APIRouter(prefix="/api/products", tags=["products"])


def product_out(product: Product, catalog: ProductCatalog) -> ProductOut:
    return ProductOut(
        id=product.id,
        name=product.name,
        brand=product.brand,
        category=product.category,
        description=product.description,
        price=product.price,
        stock=product.stock,
        images=catalog.image_urls(product),
        created_by=product.created_by,
        created_at=product.created_at,
    )


@router.get("/", response_model=List[ProductOut])
def list_products(limit: int = 100, offset: int = 0, catalog: ProductCatalog = Depends(get_catalog)):
    """
    List products in insertion order. No filtering; `limit`/`offset` paginate.
    """
    return [product_out(p, catalog) for p in catalog.list_products(limit=limit, offset=offset)]


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: str, catalog: ProductCatalog = Depends(get_catalog)):
    return product_out(catalog.require_product(product_id), catalog)


@router.post("/", response_model=ProductOut, status_code=201)
def create_product(
    payload: ProductCreate,
    current_user: User = Depends(require_admin),
    catalog: ProductCatalog = Depends(get_catalog),
):
    """
    Create a new product (admin only). `created_by` is set to the admin's id.
    """
    product = catalog.create_product(payload.model_dump(), created_by=current_user.id)
    return product_out(product, catalog)


@router.patch("/{product_id}", response_model=ProductOut, dependencies=[Depends(require_admin)])
def update_product(product_id: str, payload: ProductUpdate, catalog: ProductCatalog = Depends(get_catalog)):
    updates = payload.model_dump(exclude_unset=True)
    return product_out(catalog.update_product(product_id, updates), catalog)


@router.delete("/{product_id}", dependencies=[Depends(require_admin)])
def delete_product(product_id: str, catalog: ProductCatalog = Depends(get_catalog)):
    catalog.delete_product(product_id)
    return {"ok": True}


@router.post("/{product_id}/images", dependencies=[Depends(require_admin)])
async def upload_product_image(product_id: str, file: UploadFile = File(...), catalog: ProductCatalog = Depends(get_catalog)):
    """
    Upload an image for a product (admin only).
    Saves original + resized variants and appends the original filename to product.images.
    """
    catalog.require_product(product_id)
    try:
        saved = await save_image_upload(file, product_id, catalog.image_dir)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    product = catalog.add_image(product_id, saved["original"])
    return {"ok": True, "filenames": product.images, "urls": catalog.image_urls(product), "saved": saved}


@router.get("/{product_id}/images", response_model=List[str])
def get_product_images(product_id: str, catalog: ProductCatalog = Depends(get_catalog)):
    """
    List image URLs for a product (public).
    """
    return catalog.image_urls(catalog.require_product(product_id))


@router.delete("/{product_id}/images/{filename}", dependencies=[Depends(require_admin)])
def delete_product_image_route(product_id: str, filename: str, catalog: ProductCatalog = Depends(get_catalog)):
    """
    Delete an image file and its variants, and drop it from product.images (admin only).
    """
    product = catalog.require_product(product_id)
    if filename not in product.images:
        raise HTTPException(status_code=404, detail="Image not found")
    delete_product_image(catalog.image_dir, product_id, filename)
    product = catalog.remove_image(product_id, filename)
    return {"ok": True, "remaining": product.images}
