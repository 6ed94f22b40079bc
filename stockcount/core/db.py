"""Gestion basique des connexions SQLite."""
from __future__ import annotations

import logging
import os
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from threading import RLock
from typing import ContextManager

from stockcount.core.config import settings

STOCK_DB_PATH = settings.DATA_DIR / "stockcount.db"

logger = logging.getLogger(__name__)

_db_lock = RLock()


def _connect(path: Path) -> sqlite3.Connection:
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def _managed_connection(path: Path) -> Iterator[sqlite3.Connection]:
    """Yield a SQLite connection that is always closed on exit."""

    conn = _connect(path)
    try:
        yield conn
        conn.commit()
    except Exception:
        if conn.in_transaction:
            conn.rollback()
        raise
    finally:
        conn.close()


def get_stock_connection() -> ContextManager[sqlite3.Connection]:
    return _managed_connection(STOCK_DB_PATH)


def init_database() -> None:
    logger.info("[DB] pid=%s STOCK_DB_PATH=%s", os.getpid(), STOCK_DB_PATH)
    with _db_lock:
        with get_stock_connection() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS warehouses (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    name TEXT NOT NULL
                );
                CREATE TABLE IF NOT EXISTS inventory_items (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    warehouse_id TEXT,
                    sku TEXT NOT NULL DEFAULT '',
                    name TEXT NOT NULL DEFAULT '',
                    category TEXT,
                    current_stock REAL NOT NULL DEFAULT 0,
                    average_cost REAL,
                    cost_price REAL NOT NULL DEFAULT 0
                );
                CREATE TABLE IF NOT EXISTS inventory_movements (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    item_id TEXT NOT NULL,
                    movement_type TEXT NOT NULL,
                    quantity REAL NOT NULL,
                    movement_date TEXT,
                    from_warehouse_id TEXT,
                    to_warehouse_id TEXT,
                    notes TEXT,
                    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
                );
                CREATE TABLE IF NOT EXISTS company_info (
                    user_id TEXT PRIMARY KEY,
                    name TEXT,
                    company_name TEXT,
                    tax_id TEXT,
                    address TEXT
                );
                CREATE TABLE IF NOT EXISTS physical_counts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    warehouse_id TEXT,
                    count_date DATE NOT NULL,
                    description TEXT,
                    status TEXT NOT NULL DEFAULT 'draft',
                    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
                );
                CREATE TABLE IF NOT EXISTS physical_count_lines (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    count_id INTEGER NOT NULL REFERENCES physical_counts(id) ON DELETE CASCADE,
                    inventory_item_id TEXT NOT NULL,
                    warehouse_id TEXT NOT NULL,
                    theoretical_qty REAL NOT NULL,
                    counted_qty REAL NOT NULL,
                    difference_qty REAL NOT NULL,
                    unit_cost REAL NOT NULL DEFAULT 0,
                    total_theoretical_cost REAL NOT NULL DEFAULT 0,
                    total_counted_cost REAL NOT NULL DEFAULT 0,
                    cost_difference REAL NOT NULL DEFAULT 0,
                    notes TEXT
                );
                CREATE INDEX IF NOT EXISTS idx_inventory_items_user
                ON inventory_items(user_id);
                CREATE INDEX IF NOT EXISTS idx_inventory_movements_user
                ON inventory_movements(user_id, id);
                CREATE INDEX IF NOT EXISTS idx_physical_count_lines_count
                ON physical_count_lines(count_id);
                """
            )
