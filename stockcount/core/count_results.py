"""Rapprochement entre existences théoriques et quantités comptées."""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from stockcount.core.models import (
    CountResultRow,
    CountTotals,
    PhysicalCountLine,
    PhysicalCountRow,
    coerce_number,
)

_TOTAL_FIELDS = (
    "theoretical_qty",
    "counted_qty",
    "difference_qty",
    "theoretical_cost",
    "counted_cost",
    "cost_difference",
)


def parse_counted_quantity(value: Any) -> float:
    if value is None or (isinstance(value, str) and not value.strip()):
        return 0.0
    return coerce_number(value)


def enrich_count_rows(
    rows: Iterable[PhysicalCountRow],
    counts: Mapping[str, Any] | None = None,
) -> list[CountResultRow]:
    """Attach counted quantities (keyed ``"{warehouse}-{item}"``) and costs."""
    counts = counts or {}
    enriched: list[CountResultRow] = []
    for row in rows:
        counted = parse_counted_quantity(counts.get(row.key))
        difference = counted - row.theoretical_qty
        enriched.append(
            CountResultRow(
                **row.model_dump(),
                counted_qty=counted,
                difference_qty=difference,
                theoretical_cost=row.theoretical_qty * row.unit_cost,
                counted_cost=counted * row.unit_cost,
                cost_difference=difference * row.unit_cost,
            )
        )
    return enriched


def summarize_count_rows(rows: Iterable[CountResultRow]) -> CountTotals:
    totals = dict.fromkeys(_TOTAL_FIELDS, 0.0)
    for row in rows:
        for field in _TOTAL_FIELDS:
            totals[field] += getattr(row, field)
    return CountTotals(**totals)


def build_session_lines(rows: Iterable[CountResultRow]) -> list[PhysicalCountLine]:
    """Lines worth persisting: anything with a theoretical or counted quantity."""
    return [
        PhysicalCountLine(
            inventory_item_id=row.item_id,
            warehouse_id=row.warehouse_id,
            theoretical_qty=row.theoretical_qty,
            counted_qty=row.counted_qty,
            difference_qty=row.difference_qty,
            unit_cost=row.unit_cost,
            total_theoretical_cost=row.theoretical_cost,
            total_counted_cost=row.counted_cost,
            cost_difference=row.cost_difference,
        )
        for row in rows
        if row.theoretical_qty != 0 or row.counted_qty != 0
    ]
