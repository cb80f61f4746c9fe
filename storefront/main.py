# storefront/main.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
import logging
from pathlib import Path
from contextlib import asynccontextmanager

from storefront.config import settings
from storefront.core.errors import StoreError
from storefront.core.logging import configure_logging
from storefront.database import db
from storefront.api.routes import auth as auth_routes
from storefront.api.routes import users as user_routes
from storefront.api.routes import products as product_routes
from storefront.api.routes import cart as cart_routes
from storefront.middleware.cors_config import configure_cors
from storefront.middleware.security_headers import add_security_headers

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context: run startup checks before the app starts serving,
    and allow for clean shutdown actions if needed later.
    """
    # --- startup logic ---
    for table in ("users", "products", "carts", "cart_items"):
        path = db._file_path(table)
        if path.exists():
            logger.info("Found %s table: %s", table, path)
        else:
            logger.warning("%s table not found at %s; it will be created on first write (or run scripts/init_db.py).", table, path)

    yield
    # --- shutdown logic ---
    logger.info("Shutting down Storefront API")


app = FastAPI(title="Storefront API", version="0.1.0", lifespan=lifespan)
configure_cors(app)
add_security_headers(app)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# product images are served from wherever image_dir points
Path(settings.image_dir).mkdir(parents=True, exist_ok=True)
app.mount(settings.IMAGE_URL_PREFIX, StaticFiles(directory=settings.image_dir), name="images")

# Include API routers
app.include_router(auth_routes.router)
app.include_router(user_routes.router)
app.include_router(product_routes.router)
app.include_router(cart_routes.router)


@app.get("/", tags=["root"])
async def root():
    return {"status": "ok", "service": "Storefront API"}
