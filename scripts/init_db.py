"""Creates the data directory tables, the static image folder and an admin account.

Usage:
    python scripts/init_db.py [admin_email] [admin_password]
"""
import sys
from pathlib import Path

import pandas as pd

from storefront.config import settings
from storefront.core.errors import Conflict
from storefront.database import db
from storefront.services.users import UserService

COLUMNS = {
    "users": ["id", "name", "email", "password_hash", "is_admin", "created_at"],
    "products": ["id", "name", "brand", "category", "description", "price", "stock", "images", "created_by", "created_at"],
    "carts": ["id", "user_id", "created_at"],
    "cart_items": ["id", "cart_id", "product_id", "quantity", "price_at_time", "created_at", "updated_at"],
}


def main(argv):
    settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
    Path(settings.image_dir).mkdir(parents=True, exist_ok=True)

    for table, columns in COLUMNS.items():
        path = db._file_path(table)
        if path.exists():
            print(f"{path} already exists")
            continue
        with db.transaction(table):
            db._write_df_nolock(table, pd.DataFrame(columns=columns))
        print(f"Created {path}")

    email = argv[1] if len(argv) > 1 else "admin@example.com"
    password = argv[2] if len(argv) > 2 else "adminpass"
    try:
        UserService(db).create_user("Admin", email, password, is_admin=True)
        print(f"Created admin {email}")
    except Conflict:
        print(f"Admin {email} already exists")


if __name__ == "__main__":
    main(sys.argv)
