"""Mise en forme des lignes de toma física pour les exports Excel/PDF."""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from stockcount.core.models import CountResultRow, PhysicalCountRow

COUNT_SHEET_BASENAME = "toma_inventario_fisico"
RESULT_SHEET_BASENAME = "resultado_inventario_fisico"
COUNT_SHEET_TITLE = "Toma de Inventario Físico"
RESULT_SHEET_TITLE = "Resultado de Inventario Físico"


@dataclass(frozen=True)
class ExportedFile:
    filename: str
    content: bytes
    media_type: str


@dataclass(frozen=True)
class SheetColumn:
    key: str
    title: str
    ratio: float
    align: str = "left"


COUNT_SHEET_COLUMNS: tuple[SheetColumn, ...] = (
    SheetColumn("warehouseName", "Almacén", 0.14),
    SheetColumn("sku", "SKU", 0.10),
    SheetColumn("name", "Producto", 0.22),
    SheetColumn("category", "Categoría", 0.12),
    SheetColumn("theoreticalQty", "Existencia Teórica", 0.10, "right"),
    SheetColumn("countedQty", "Cantidad Contada", 0.10, "right"),
    SheetColumn("difference", "Diferencia", 0.08, "right"),
    SheetColumn("notes", "Observaciones", 0.14),
)

RESULT_SHEET_COLUMNS: tuple[SheetColumn, ...] = (
    SheetColumn("warehouseName", "Almacén", 0.10),
    SheetColumn("sku", "SKU", 0.08),
    SheetColumn("name", "Producto", 0.16),
    SheetColumn("category", "Categoría", 0.09),
    SheetColumn("theoreticalQty", "Existencia Teórica", 0.07, "right"),
    SheetColumn("countedQty", "Cantidad Contada", 0.07, "right"),
    SheetColumn("differenceQty", "Diferencia", 0.07, "right"),
    SheetColumn("unitCost", "Costo Unitario", 0.09, "right"),
    SheetColumn("theoreticalCost", "Costo Teórico", 0.09, "right"),
    SheetColumn("countedCost", "Costo Contado", 0.09, "right"),
    SheetColumn("costDifference", "Costo Diferencia", 0.09, "right"),
)


def _base_columns(row: PhysicalCountRow) -> dict[str, object]:
    return {
        "warehouseName": row.warehouse_name,
        "sku": row.sku,
        "name": row.name,
        "category": row.category or "",
        "theoreticalQty": row.theoretical_qty,
    }


def to_count_sheet_rows(rows: Iterable[PhysicalCountRow]) -> list[dict[str, object]]:
    """Copy rows into the printable worksheet shape.

    ``countedQty``, ``difference`` and ``notes`` stay blank: they are filled
    in by hand during the count.
    """
    return [
        {**_base_columns(row), "countedQty": "", "difference": "", "notes": ""}
        for row in rows
    ]


def to_result_sheet_rows(rows: Iterable[CountResultRow]) -> list[dict[str, object]]:
    return [
        {
            **_base_columns(row),
            "countedQty": row.counted_qty,
            "differenceQty": row.difference_qty,
            "unitCost": row.unit_cost,
            "theoreticalCost": row.theoretical_cost,
            "countedCost": row.counted_cost,
            "costDifference": row.cost_difference,
        }
        for row in rows
    ]
