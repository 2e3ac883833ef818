"""SQLite database schema and helpers for calculator configurations."""

import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Generator, List, Optional

from calccart.config import DB_PATH
from calccart.models import DEFAULT_WASTE_FACTOR, CalculatorConfig

__all__ = [
    "CalculatorNotFoundError",
    "get_connection",
    "init_db",
    "upsert_calculator",
    "find_calculator",
    "list_calculators",
    "delete_calculator",
    "delete_calculators_for_shop",
]

DEFAULT_DB_PATH = DB_PATH


class CalculatorNotFoundError(LookupError):
    """Raised when a calculator id does not match any row."""

    def __init__(self, calculator_id: str):
        super().__init__(f"Calculator {calculator_id} not found")
        self.calculator_id = calculator_id


@contextmanager
def get_connection(db_path: str = DEFAULT_DB_PATH) -> Generator[sqlite3.Connection, None, None]:
    """Context manager for database connections."""
    # Ensure directory exists
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path, timeout=10)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database schema."""
    with get_connection(db_path) as conn:
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS product_calculators (
                id TEXT PRIMARY KEY,
                shop TEXT NOT NULL,
                product_id TEXT NOT NULL,
                product_title TEXT,
                unit_type TEXT NOT NULL,
                unit_label TEXT,
                coverage REAL NOT NULL DEFAULT 0,
                coverage_unit TEXT,
                waste_factor REAL NOT NULL DEFAULT 1.1,
                is_active INTEGER NOT NULL DEFAULT 1,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                UNIQUE (shop, product_id)
            )
        """)

        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_product_calculators_shop ON product_calculators(shop)"
        )

        conn.commit()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def upsert_calculator(
    db_path: str,
    shop: str,
    product_id: str,
    product_title: Optional[str] = None,
    unit_type: str = "area_metric",
    unit_label: Optional[str] = None,
    coverage: float = 0.0,
    coverage_unit: Optional[str] = None,
    waste_factor: float = DEFAULT_WASTE_FACTOR,
    is_active: bool = True,
) -> CalculatorConfig:
    """Insert or update the calculator for ``(shop, product_id)``.

    A single conflict-aware INSERT keeps the write atomic; concurrent writers
    for the same key resolve to the last write. ``id`` and ``created_at`` of an
    existing row are preserved.
    """
    now = _now()

    with get_connection(db_path) as conn:
        cursor = conn.cursor()
        cursor.execute(
            """
            INSERT INTO product_calculators (
                id, shop, product_id, product_title, unit_type, unit_label,
                coverage, coverage_unit, waste_factor, is_active,
                created_at, updated_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(shop, product_id) DO UPDATE SET
                product_title = excluded.product_title,
                unit_type = excluded.unit_type,
                unit_label = excluded.unit_label,
                coverage = excluded.coverage,
                coverage_unit = excluded.coverage_unit,
                waste_factor = excluded.waste_factor,
                is_active = excluded.is_active,
                updated_at = excluded.updated_at
            """,
            (
                uuid.uuid4().hex,
                shop,
                product_id,
                product_title,
                unit_type,
                unit_label,
                coverage,
                coverage_unit,
                waste_factor,
                1 if is_active else 0,
                now,
                now,
            ),
        )
        conn.commit()

        cursor.execute(
            "SELECT * FROM product_calculators WHERE shop = ? AND product_id = ?",
            (shop, product_id),
        )
        return CalculatorConfig.from_row(cursor.fetchone())


def find_calculator(db_path: str, shop: str, product_id: str) -> Optional[CalculatorConfig]:
    """Get the calculator for a shop's product, or None."""
    with get_connection(db_path) as conn:
        cursor = conn.cursor()
        cursor.execute(
            "SELECT * FROM product_calculators WHERE shop = ? AND product_id = ?",
            (shop, product_id),
        )
        row = cursor.fetchone()
        return CalculatorConfig.from_row(row) if row else None


def list_calculators(db_path: str, shop: str) -> List[CalculatorConfig]:
    """List all calculators of a shop."""
    with get_connection(db_path) as conn:
        cursor = conn.cursor()
        cursor.execute(
            "SELECT * FROM product_calculators WHERE shop = ? ORDER BY product_title, product_id",
            (shop,),
        )
        return [CalculatorConfig.from_row(row) for row in cursor.fetchall()]


def delete_calculator(db_path: str, calculator_id: str, shop: Optional[str] = None) -> None:
    """Delete one calculator by id, restricted to ``shop`` when given.

    Raises:
        CalculatorNotFoundError: if no row has this id (within the shop).
    """
    with get_connection(db_path) as conn:
        cursor = conn.cursor()
        if shop is None:
            cursor.execute("DELETE FROM product_calculators WHERE id = ?", (calculator_id,))
        else:
            cursor.execute(
                "DELETE FROM product_calculators WHERE id = ? AND shop = ?",
                (calculator_id, shop),
            )
        deleted = cursor.rowcount
        conn.commit()

    if deleted == 0:
        raise CalculatorNotFoundError(calculator_id)


def delete_calculators_for_shop(db_path: str, shop: str) -> int:
    """Delete every calculator of a shop, returning the number removed."""
    with get_connection(db_path) as conn:
        cursor = conn.cursor()
        cursor.execute("DELETE FROM product_calculators WHERE shop = ?", (shop,))
        deleted = cursor.rowcount
        conn.commit()
        return deleted
