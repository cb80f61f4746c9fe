# storefront/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path
from functools import lru_cache


class Settings(BaseSettings):
    ENV: str = "development"
    DATA_DIR: Path = Path("data")  # where CSV / XLSX files will live
    USERS_FILE: str = "users.csv"
    PRODUCTS_FILE: str = "products.csv"
    CARTS_FILE: str = "carts.csv"
    CART_ITEMS_FILE: str = "cart_items.csv"

    image_dir: str = "static/images"
    # URL path the image_dir is served under
    IMAGE_URL_PREFIX: str = "/static/images"

    JWT_SECRET: str = "dev-secret-change-me"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    OAUTH2_TOKEN_URL: str = "/api/auth/token"

    # comma separated list; empty means the local frontend only
    CORS_ORIGINS: str = ""
    LOG_LEVEL: str = "INFO"

    # Tables can live in Excel instead, e.g. in .env:
    # DATA_DIR=./data
    # PRODUCTS_FILE=products.xlsx

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Return cached Settings instance."""
    return Settings()


settings = get_settings()
