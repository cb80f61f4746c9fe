# storefront/utils/images.py
import io
import logging
import os
import uuid
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

# safe image extensions we allow
ALLOWED_EXT = {".jpg", ".jpeg", ".png", ".webp", ".gif"}

# large, thumbnail
DEFAULT_SIZES: List[Tuple[int, int]] = [(1200, 1200), (300, 300)]


def _product_dir(base_dir: str, product_id: str) -> Path:
    return Path(base_dir) / "products" / str(product_id)


def _safe_ext(filename: str) -> str:
    _, ext = os.path.splitext(filename or "")
    return ext.lower()


def _detect_ext(contents: bytes) -> Optional[str]:
    try:
        im = Image.open(io.BytesIO(contents))
    except (UnidentifiedImageError, OSError):
        return None
    fmt = (im.format or "").lower()
    ext = ".jpg" if fmt == "jpeg" else f".{fmt}"
    return ext if ext in ALLOWED_EXT else None


async def save_image_upload(upload_file, product_id: str, base_dir: str,
                            sizes: Optional[List[Tuple[int, int]]] = None) -> Dict[str, List[str]]:
    """
    Save an UploadFile under base_dir/products/<product_id>/ with a generated name,
    plus resized variants (`sizes`). Returns {"original": fname, "variants": [...]}.
    Raises ValueError if the bytes are not a supported image.
    """
    sizes = sizes or DEFAULT_SIZES
    contents = await upload_file.read()

    ext = _safe_ext(upload_file.filename or "")
    detected = _detect_ext(contents)
    if detected is None:
        raise ValueError("Uploaded file is not a supported image")
    if ext not in ALLOWED_EXT:
        ext = detected

    product_dir = _product_dir(base_dir, product_id)
    product_dir.mkdir(parents=True, exist_ok=True)

    fname = f"{uuid.uuid4().hex}{ext}"
    (product_dir / fname).write_bytes(contents)
    saved = {"original": fname, "variants": []}

    im = Image.open(io.BytesIO(contents)).convert("RGB")
    for w, h in sizes:
        variant = im.copy()
        variant.thumbnail((w, h))
        vname = f"{Path(fname).stem}_{w}x{h}.jpg"
        variant.save(product_dir / vname, format="JPEG", optimize=True, quality=85)
        saved["variants"].append(vname)

    logger.info("Stored image %s for product %s (%d variants)", fname, product_id, len(saved["variants"]))
    return saved


def delete_product_image(base_dir: str, product_id: str, filename: str) -> bool:
    """Remove an original and its variants. Returns False if nothing was on disk."""
    product_dir = _product_dir(base_dir, product_id)
    # filenames come from the URL; never let them escape the product directory
    if Path(filename).name != filename:
        return False
    removed = False
    for p in product_dir.glob(f"{Path(filename).stem}*"):
        p.unlink(missing_ok=True)
        removed = True
    return removed
