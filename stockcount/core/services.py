"""Accès aux données d'inventaire et aux tomas físicas (SQLite)."""
from __future__ import annotations

import logging
import sqlite3
from datetime import date, datetime
from pathlib import Path
from typing import Iterable, Optional, get_args
from uuid import uuid4

from stockcount.core import db, models
from stockcount.core.errors import CountSessionNotFoundError, EmptyCountSessionError

logger = logging.getLogger(__name__)

MOVEMENT_TYPES = frozenset(get_args(models.MovementType))

_initialized_paths: set[Path] = set()


def ensure_database_ready() -> None:
    path = db.STOCK_DB_PATH
    if path in _initialized_paths:
        return
    db.init_database()
    _initialized_paths.add(path)


def _format_moment(value: date | datetime | str | None) -> Optional[str]:
    if value is None or value == "":
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def list_warehouses(user_id: str) -> list[models.Warehouse]:
    ensure_database_ready()
    with db.get_stock_connection() as conn:
        rows = conn.execute(
            "SELECT id, name FROM warehouses WHERE user_id = ? ORDER BY name COLLATE NOCASE",
            (user_id,),
        ).fetchall()
    return [models.Warehouse.model_validate(dict(row)) for row in rows]


def create_warehouse(user_id: str, name: str, *, warehouse_id: str | None = None) -> models.Warehouse:
    ensure_database_ready()
    warehouse = models.Warehouse(id=warehouse_id or str(uuid4()), name=name.strip())
    if not warehouse.name:
        raise ValueError("El nombre del almacén es obligatorio")
    with db.get_stock_connection() as conn:
        conn.execute(
            "INSERT INTO warehouses (id, user_id, name) VALUES (?, ?, ?)",
            (warehouse.id, user_id, warehouse.name),
        )
    return warehouse


def list_items(user_id: str) -> list[models.InventoryItem]:
    ensure_database_ready()
    with db.get_stock_connection() as conn:
        rows = conn.execute(
            """
            SELECT id, warehouse_id, sku, name, category, current_stock, average_cost, cost_price
            FROM inventory_items
            WHERE user_id = ?
            ORDER BY rowid
            """,
            (user_id,),
        ).fetchall()
    return [models.InventoryItem.model_validate(dict(row)) for row in rows]


def create_item(
    user_id: str,
    *,
    warehouse_id: str | None,
    sku: str,
    name: str,
    category: str | None = None,
    current_stock: float = 0,
    average_cost: float | None = None,
    cost_price: float = 0,
    item_id: str | None = None,
) -> models.InventoryItem:
    ensure_database_ready()
    item = models.InventoryItem(
        id=item_id or str(uuid4()),
        warehouse_id=warehouse_id,
        sku=sku,
        name=name,
        category=category,
        current_stock=current_stock,
        average_cost=average_cost,
        cost_price=cost_price,
    )
    with db.get_stock_connection() as conn:
        conn.execute(
            """
            INSERT INTO inventory_items (
                id, user_id, warehouse_id, sku, name, category, current_stock, average_cost, cost_price
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                item.id,
                user_id,
                item.warehouse_id,
                item.sku,
                item.name,
                item.category,
                item.current_stock,
                item.average_cost,
                item.cost_price,
            ),
        )
    return item


def list_movements(user_id: str) -> list[models.InventoryMovement]:
    """Return the movements in recording order; the projection relies on it."""
    ensure_database_ready()
    with db.get_stock_connection() as conn:
        rows = conn.execute(
            """
            SELECT item_id, movement_type, quantity, movement_date, from_warehouse_id, to_warehouse_id
            FROM inventory_movements
            WHERE user_id = ?
            ORDER BY id
            """,
            (user_id,),
        ).fetchall()
    return [models.InventoryMovement.model_validate(dict(row)) for row in rows]


def record_movement(
    user_id: str,
    *,
    item_id: str,
    movement_type: models.MovementType,
    quantity: float,
    movement_date: date | datetime | str | None = None,
    from_warehouse_id: str | None = None,
    to_warehouse_id: str | None = None,
    notes: str | None = None,
) -> models.InventoryMovement:
    if movement_type not in MOVEMENT_TYPES:
        raise ValueError(f"Tipo de movimiento inválido: {movement_type}")
    if movement_type == "transfer" and not (from_warehouse_id or to_warehouse_id):
        raise ValueError("Una transferencia debe indicar al menos un almacén")
    ensure_database_ready()
    stored_date = _format_moment(movement_date)
    with db.get_stock_connection() as conn:
        conn.execute(
            """
            INSERT INTO inventory_movements (
                user_id, item_id, movement_type, quantity, movement_date,
                from_warehouse_id, to_warehouse_id, notes
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                user_id,
                item_id,
                movement_type,
                quantity,
                stored_date,
                from_warehouse_id,
                to_warehouse_id,
                notes,
            ),
        )
    return models.InventoryMovement(
        item_id=item_id,
        movement_type=movement_type,
        quantity=quantity,
        movement_date=stored_date,
        from_warehouse_id=from_warehouse_id,
        to_warehouse_id=to_warehouse_id,
    )


def get_company_info(user_id: str) -> models.CompanyInfo | None:
    ensure_database_ready()
    with db.get_stock_connection() as conn:
        row = conn.execute(
            "SELECT name, company_name, tax_id, address FROM company_info WHERE user_id = ?",
            (user_id,),
        ).fetchone()
    if row is None:
        return None
    return models.CompanyInfo.model_validate(dict(row))


def save_company_info(user_id: str, info: models.CompanyInfo) -> models.CompanyInfo:
    ensure_database_ready()
    with db.get_stock_connection() as conn:
        conn.execute(
            """
            INSERT INTO company_info (user_id, name, company_name, tax_id, address)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(user_id) DO UPDATE SET
                name = excluded.name,
                company_name = excluded.company_name,
                tax_id = excluded.tax_id,
                address = excluded.address
            """,
            (user_id, info.name, info.company_name, info.tax_id, info.address),
        )
    return info


def _session_from_row(row: sqlite3.Row) -> models.PhysicalCountSession:
    return models.PhysicalCountSession(
        id=row["id"],
        warehouse_id=row["warehouse_id"],
        count_date=row["count_date"],
        description=row["description"],
        status=row["status"],
        created_at=row["created_at"],
    )


def _fetch_lines(conn: sqlite3.Connection, count_id: int) -> list[models.PhysicalCountLine]:
    rows = conn.execute(
        """
        SELECT inventory_item_id, warehouse_id, theoretical_qty, counted_qty, difference_qty,
               unit_cost, total_theoretical_cost, total_counted_cost, cost_difference, notes
        FROM physical_count_lines
        WHERE count_id = ?
        ORDER BY id
        """,
        (count_id,),
    ).fetchall()
    return [models.PhysicalCountLine.model_validate(dict(row)) for row in rows]


def create_physical_count(
    user_id: str,
    *,
    count_date: date,
    lines: Iterable[models.PhysicalCountLine],
    warehouse_id: str | None = None,
    description: str | None = None,
) -> models.PhysicalCountSessionDetail:
    line_list = list(lines)
    if not line_list:
        raise EmptyCountSessionError()
    ensure_database_ready()
    with db.get_stock_connection() as conn:
        cursor = conn.execute(
            """
            INSERT INTO physical_counts (user_id, warehouse_id, count_date, description, status)
            VALUES (?, ?, ?, ?, 'draft')
            """,
            (user_id, warehouse_id, count_date.isoformat(), description or None),
        )
        count_id = int(cursor.lastrowid)
        conn.executemany(
            """
            INSERT INTO physical_count_lines (
                count_id, inventory_item_id, warehouse_id, theoretical_qty, counted_qty,
                difference_qty, unit_cost, total_theoretical_cost, total_counted_cost,
                cost_difference, notes
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    count_id,
                    line.inventory_item_id,
                    line.warehouse_id,
                    line.theoretical_qty,
                    line.counted_qty,
                    line.difference_qty,
                    line.unit_cost,
                    line.total_theoretical_cost,
                    line.total_counted_cost,
                    line.cost_difference,
                    line.notes,
                )
                for line in line_list
            ],
        )
        row = conn.execute("SELECT * FROM physical_counts WHERE id = ?", (count_id,)).fetchone()
        session = _session_from_row(row)
        stored_lines = _fetch_lines(conn, count_id)
    logger.info(
        "[PhysicalCount] session=%s user=%s lines=%s enregistrée",
        count_id,
        user_id,
        len(stored_lines),
    )
    return models.PhysicalCountSessionDetail(**session.model_dump(), lines=stored_lines)


def list_physical_counts(user_id: str) -> list[models.PhysicalCountSession]:
    ensure_database_ready()
    with db.get_stock_connection() as conn:
        rows = conn.execute(
            "SELECT * FROM physical_counts WHERE user_id = ? ORDER BY created_at DESC, id DESC",
            (user_id,),
        ).fetchall()
    return [_session_from_row(row) for row in rows]


def get_physical_count(user_id: str, count_id: int) -> models.PhysicalCountSessionDetail:
    ensure_database_ready()
    with db.get_stock_connection() as conn:
        row = conn.execute(
            "SELECT * FROM physical_counts WHERE id = ? AND user_id = ?",
            (count_id, user_id),
        ).fetchone()
        if row is None:
            raise CountSessionNotFoundError(count_id)
        lines = _fetch_lines(conn, count_id)
    session = _session_from_row(row)
    return models.PhysicalCountSessionDetail(**session.model_dump(), lines=lines)
