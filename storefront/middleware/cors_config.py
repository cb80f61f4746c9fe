from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront.config import settings

DEFAULT_ORIGINS = ["http://localhost:3000"]


def configure_cors(app: FastAPI) -> None:
    origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()] or DEFAULT_ORIGINS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        max_age=86400,
    )
