# storefront/database.py
"""
Simple file-backed DB layer using CSV (preferred) or Excel (xlsx) as storage.
Provides basic CRUD primitives per table name. Uses file locking to avoid
simultaneous writes corrupting files, and multi-table transactions for
operations that must be all-or-nothing.

Usage:
    from storefront.database import db
    db.list_records("products")
    db.get_record("carts", "user_id", "42")
    db.create_record("carts", {"user_id": "42"}, unique=("user_id",))

    with db.transaction("cart_items", "products") as tx:
        tx.decrement_field("products", "id", pid, "stock", 2)
        tx.delete_records("cart_items", cart_id=cart_id)
    # nothing is written if the block raises
"""

import os
from contextlib import ExitStack, contextmanager
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional
import pandas as pd
import uuid
from filelock import FileLock
from storefront.config import settings

DATA_DIR = Path(settings.DATA_DIR)
if not DATA_DIR.exists():
    DATA_DIR.mkdir(parents=True, exist_ok=True)


class UniqueViolation(Exception):
    """Raised when an insert would duplicate a row on its unique columns."""

    def __init__(self, table: str, fields: Iterable[str]):
        self.table = table
        self.fields = tuple(fields)
        super().__init__(f"Duplicate {', '.join(self.fields)} in table {table}")


def _cell(value: Any) -> str:
    # every cell is kept as a string so staged frames look like frames read back from disk
    return "" if value is None else str(value)


def _mask(df: pd.DataFrame, criteria: Dict[str, Any]) -> pd.Series:
    mask = pd.Series(True, index=df.index)
    for key, value in criteria.items():
        if key not in df.columns:
            return pd.Series(False, index=df.index)
        mask &= df[key].astype(str) == str(value)
    return mask


def _row_to_dict(row: pd.Series) -> Dict[str, Any]:
    return {k: (None if pd.isna(v) else v) for k, v in row.to_dict().items()}


class Transaction:
    """
    Staged view over a set of tables whose locks are held by the caller.
    Reads see the staged state; writes only reach disk on commit().
    """

    def __init__(self, db: "FileBackedDB", tables: Iterable[str]):
        self._db = db
        self.tables = frozenset(tables)
        self._frames: Dict[str, pd.DataFrame] = {}
        self._dirty: set = set()

    def _frame(self, table: str) -> pd.DataFrame:
        if table not in self.tables:
            raise ValueError(f"Table {table!r} is not part of this transaction")
        if table not in self._frames:
            self._frames[table] = self._db._read_df(table)
        return self._frames[table]

    def _stage(self, table: str, df: pd.DataFrame) -> None:
        self._frames[table] = df
        self._dirty.add(table)

    def list_records(self, table: str) -> List[Dict[str, Any]]:
        df = self._frame(table)
        if df.empty:
            return []
        return [_row_to_dict(row) for _, row in df.iterrows()]

    def find_records(self, table: str, **criteria: Any) -> List[Dict[str, Any]]:
        df = self._frame(table)
        if df.empty:
            return []
        return [_row_to_dict(row) for _, row in df[_mask(df, criteria)].iterrows()]

    def get_record(self, table: str, key: str, value: Any) -> Optional[Dict[str, Any]]:
        rows = self.find_records(table, **{key: value})
        return rows[0] if rows else None

    def create_record(self, table: str, data: Dict[str, Any], id_field: str = "id",
                      unique: Iterable[str] = ()) -> Dict[str, Any]:
        """
        Append a row. If id_field is missing from `data` a uuid4 hex is generated.
        `unique` names columns whose combined values must not already exist.
        """
        df = self._frame(table)
        data = dict(data)
        unique = tuple(unique)
        if unique and not df.empty and _mask(df, {k: data.get(k) for k in unique}).any():
            raise UniqueViolation(table, unique)
        if id_field not in data or not data.get(id_field):
            data[id_field] = uuid.uuid4().hex
        new_row = {k: _cell(v) for k, v in data.items()}
        if df.empty:
            df = pd.DataFrame([new_row])
        else:
            df = pd.concat([df, pd.DataFrame([new_row])], ignore_index=True, sort=False).fillna("")
        self._stage(table, df)
        return dict(new_row)

    def update_record(self, table: str, key: str, value: Any, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Update rows where df[key] == value with fields in updates. Returns the updated first row dict or None.
        """
        df = self._frame(table)
        if df.empty:
            return None
        mask = _mask(df, {key: value})
        if not mask.any():
            return None
        df = df.copy()
        for k, v in updates.items():
            if k not in df.columns:
                df[k] = ""
            df.loc[mask, k] = _cell(v)
        self._stage(table, df)
        return _row_to_dict(df[mask].iloc[0])

    def delete_records(self, table: str, **criteria: Any) -> int:
        """Delete all rows matching every criterion. Returns how many were removed."""
        df = self._frame(table)
        if df.empty:
            return 0
        mask = _mask(df, criteria)
        removed = int(mask.sum())
        if removed:
            self._stage(table, df[~mask].reset_index(drop=True))
        return removed

    def delete_record(self, table: str, key: str, value: Any) -> bool:
        return self.delete_records(table, **{key: value}) > 0

    def decrement_field(self, table: str, key: str, value: Any, field: str, amount: int) -> Optional[Dict[str, Any]]:
        """
        Conditional decrement: subtract `amount` from `field` on the row where
        df[key] == value, only if the current value is >= amount.
        Returns the updated row, or None when no row matched the condition.
        """
        row = self.get_record(table, key, value)
        if row is None:
            return None
        try:
            current = int(float(row.get(field) or 0))
        except (TypeError, ValueError):
            return None
        if current < amount:
            return None
        return self.update_record(table, key, value, {field: current - amount})

    def commit(self) -> None:
        for table in sorted(self._dirty):
            self._db._write_df_nolock(table, self._frames[table])
        self._dirty.clear()


class FileBackedDB:
    """
    Manages CSV / Excel files inside DATA_DIR.
    Table name corresponds to a file name in settings (or you may pass full filename).
    """

    def __init__(self, data_dir: Path = DATA_DIR):
        self.data_dir = Path(data_dir)

    def _file_path(self, table: str) -> Path:
        """
        Resolve table -> file path. If table looks like a filename (has .csv/.xlsx),
        use it directly (relative to data_dir). Otherwise try config mapping,
        else fallback to table + .csv
        """
        if table.endswith(".csv") or table.endswith(".xlsx"):
            return Path(self.data_dir) / Path(table)

        mapping = {
            "users": settings.USERS_FILE,
            "products": settings.PRODUCTS_FILE,
            "carts": settings.CARTS_FILE,
            "cart_items": settings.CART_ITEMS_FILE,
        }
        filename = mapping.get(table, f"{table}.csv")
        return Path(self.data_dir) / Path(filename)

    def _lock_for(self, path: Path) -> FileLock:
        return FileLock(str(path) + ".lock")

    def _read_df(self, table: str) -> pd.DataFrame:
        path = self._file_path(table)
        if not path.exists():
            return pd.DataFrame()
        try:
            if path.suffix.lower() in (".xls", ".xlsx"):
                return pd.read_excel(path, dtype=str).fillna("")
            return pd.read_csv(path, dtype=str, keep_default_na=False)
        except pd.errors.EmptyDataError:
            return pd.DataFrame()

    def _write_df_nolock(self, table: str, df: pd.DataFrame) -> None:
        """
        Write DataFrame for `table` WITHOUT acquiring file lock.
        Use this only when the caller already holds the lock. The file is
        replaced atomically so lock-free readers never see a partial write.
        """
        path = self._file_path(table)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(f".{path.stem}.tmp{path.suffix}")
        if path.suffix.lower() in (".xls", ".xlsx"):
            df.to_excel(tmp, index=False)
        else:
            df.to_csv(tmp, index=False)
        os.replace(tmp, path)

    @contextmanager
    def transaction(self, *tables: str, parent: Optional[Transaction] = None) -> Iterator[Transaction]:
        """
        Lock `tables` (in sorted order, so concurrent transactions cannot deadlock)
        and yield a Transaction. Staged changes are written when the block exits
        normally and discarded if it raises.

        When `parent` is given the caller is already inside a transaction: it is
        reused as-is and committing is left to whoever opened it.
        """
        if parent is not None:
            missing = set(tables) - parent.tables
            if missing:
                raise ValueError(f"Enclosing transaction does not cover {sorted(missing)}")
            yield parent
            return

        names = sorted(set(tables))
        with ExitStack() as stack:
            for name in names:
                path = self._file_path(name)
                path.parent.mkdir(parents=True, exist_ok=True)
                stack.enter_context(self._lock_for(path))
            tx = Transaction(self, names)
            yield tx
            tx.commit()

    # --- high-level CRUD primitives ---

    def list_records(self, table: str) -> List[Dict[str, Any]]:
        df = self._read_df(table)
        if df.empty:
            return []
        return [_row_to_dict(row) for _, row in df.iterrows()]

    def find_records(self, table: str, **criteria: Any) -> List[Dict[str, Any]]:
        df = self._read_df(table)
        if df.empty:
            return []
        return [_row_to_dict(row) for _, row in df[_mask(df, criteria)].iterrows()]

    def get_record(self, table: str, key: str, value: Any) -> Optional[Dict[str, Any]]:
        rows = self.find_records(table, **{key: value})
        return rows[0] if rows else None

    def create_record(self, table: str, data: Dict[str, Any], id_field: str = "id",
                      unique: Iterable[str] = ()) -> Dict[str, Any]:
        """
        Create a new record. If id_field not present in `data`, one will be generated (uuid4 hex).
        Raises UniqueViolation if a row with the same `unique` column values exists.
        Returns the saved record (with id).
        """
        with self.transaction(table) as tx:
            return tx.create_record(table, data, id_field=id_field, unique=unique)

    def update_record(self, table: str, key: str, value: Any, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        with self.transaction(table) as tx:
            return tx.update_record(table, key, value, updates)

    def delete_record(self, table: str, key: str, value: Any) -> bool:
        """
        Delete all records where df[key] == value. Returns True if any rows were removed.
        """
        with self.transaction(table) as tx:
            return tx.delete_record(table, key, value)

    def delete_records(self, table: str, **criteria: Any) -> int:
        with self.transaction(table) as tx:
            return tx.delete_records(table, **criteria)

    def decrement_field(self, table: str, key: str, value: Any, field: str, amount: int) -> Optional[Dict[str, Any]]:
        with self.transaction(table) as tx:
            return tx.decrement_field(table, key, value, field, amount)


# module-level singleton for convenience
db = FileBackedDB()
