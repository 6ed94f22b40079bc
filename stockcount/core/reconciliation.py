"""Reconstruction des existences théoriques par almacén pour la toma física.

The projection starts from each item's stored ``current_stock`` in its home
warehouse and replays inter-warehouse transfers up to the cutoff day.
Additions and removals are assumed to be already reflected in the stored
snapshot, so they never change a bucket.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from stockcount.core.config import settings
from stockcount.core.models import (
    ALL_WAREHOUSES,
    InventoryItem,
    InventoryMovement,
    PhysicalCountRow,
    Warehouse,
    coerce_moment,
)

logger = logging.getLogger(__name__)

Balances = dict[str, dict[str, float]]
_ModelT = TypeVar("_ModelT", bound=BaseModel)


def _normalize(records: Iterable[Any] | None, model: type[_ModelT]) -> list[_ModelT]:
    normalized: list[_ModelT] = []
    for record in records or ():
        if isinstance(record, model):
            normalized.append(record)
            continue
        if not isinstance(record, Mapping):
            continue
        try:
            normalized.append(model.model_validate(record))
        except ValidationError:
            logger.debug("[PhysicalCount] %s ignoré: %r", model.__name__, record)
    return normalized


def normalize_cutoff(cutoff: Any) -> date | None:
    """Reduce a cutoff to a calendar day; anything unusable means no cutoff."""
    if isinstance(cutoff, str):
        cutoff = coerce_moment(cutoff)
    if isinstance(cutoff, datetime):
        return cutoff.date()
    if isinstance(cutoff, date):
        return cutoff
    return None


def is_after_cutoff(moment: date | datetime | None, cutoff: date | datetime | str | None) -> bool:
    cutoff = normalize_cutoff(cutoff)
    if cutoff is None or moment is None:
        return False
    if isinstance(moment, datetime):
        moment = moment.date()
    return moment > cutoff


def _add(balances: Balances, warehouse_id: str, item_id: str, quantity: float) -> None:
    bucket = balances.setdefault(warehouse_id, {})
    bucket[item_id] = bucket.get(item_id, 0.0) + quantity


def compute_balances(
    items: Iterable[InventoryItem],
    movements: Iterable[InventoryMovement],
    cutoff: date | datetime | str | None = None,
) -> Balances:
    """Fold item snapshots and transfers into ``warehouse -> item -> qty``."""
    cutoff = normalize_cutoff(cutoff)
    balances: Balances = {}
    for item in items:
        if not item.id or not item.warehouse_id:
            continue
        _add(balances, item.warehouse_id, item.id, item.current_stock)

    for movement in movements:
        if is_after_cutoff(movement.movement_date, cutoff):
            continue
        if not movement.quantity or not movement.item_id:
            continue
        if movement.movement_type != "transfer":
            continue
        if movement.from_warehouse_id:
            _add(balances, movement.from_warehouse_id, movement.item_id, -movement.quantity)
        if movement.to_warehouse_id:
            _add(balances, movement.to_warehouse_id, movement.item_id, movement.quantity)
    return balances


def project_physical_count(
    items: Iterable[InventoryItem | Mapping[str, Any]] | None,
    movements: Iterable[InventoryMovement | Mapping[str, Any]] | None,
    warehouses: Iterable[Warehouse | Mapping[str, Any]] | None,
    cutoff: date | datetime | str | None = None,
    include_zero_stock: bool = False,
    *,
    default_warehouse_label: Optional[str] = None,
) -> list[PhysicalCountRow]:
    """Return the theoretical quantity of every (warehouse, item) bucket.

    Buckets with a quantity ``<= 0`` are dropped unless ``include_zero_stock``
    is set. Negative balances are kept as computed. Buckets referring to an
    unknown item are dropped; unknown warehouses get the default label.
    """
    item_list = _normalize(items, InventoryItem)
    if not item_list:
        return []
    movement_list = _normalize(movements, InventoryMovement)
    cutoff = normalize_cutoff(cutoff)
    fallback_label = default_warehouse_label or settings.DEFAULT_WAREHOUSE_LABEL

    item_map = {item.id: item for item in item_list if item.id and item.warehouse_id}
    for item in item_list:
        if item.id:
            item_map.setdefault(item.id, item)
    warehouse_names: dict[str, str] = {}
    for warehouse in _normalize(warehouses, Warehouse):
        warehouse_names.setdefault(warehouse.id, warehouse.name)

    balances = compute_balances(item_list, movement_list, cutoff)

    rows: list[PhysicalCountRow] = []
    for warehouse_id, item_balances in balances.items():
        warehouse_name = warehouse_names.get(warehouse_id) or fallback_label
        for item_id, quantity in item_balances.items():
            if not include_zero_stock and quantity <= 0:
                continue
            item = item_map.get(item_id)
            if item is None:
                continue
            rows.append(
                PhysicalCountRow(
                    warehouse_id=warehouse_id,
                    warehouse_name=warehouse_name,
                    item_id=item_id,
                    sku=item.sku,
                    name=item.name,
                    category=item.category,
                    theoretical_qty=quantity,
                    unit_cost=item.unit_cost,
                )
            )
    return rows


def filter_count_rows(
    rows: Iterable[PhysicalCountRow],
    warehouse_id: str = ALL_WAREHOUSES,
    search: str | None = None,
) -> list[PhysicalCountRow]:
    term = (search or "").strip().lower()
    selected = warehouse_id or ALL_WAREHOUSES
    filtered: list[PhysicalCountRow] = []
    for row in rows:
        if selected != ALL_WAREHOUSES and row.warehouse_id != selected:
            continue
        if term and not (
            term in row.sku.lower()
            or term in row.name.lower()
            or term in (row.category or "").lower()
        ):
            continue
        filtered.append(row)
    return filtered


class ProjectionCache:
    """Keep the last projection and reuse it while its inputs are unchanged."""

    def __init__(self) -> None:
        self._key: tuple | None = None
        self._rows: tuple[PhysicalCountRow, ...] = ()
        self.hits = 0
        self.misses = 0

    def get(
        self,
        items: Iterable[InventoryItem],
        movements: Iterable[InventoryMovement],
        warehouses: Iterable[Warehouse],
        cutoff: date | datetime | str | None,
        include_zero_stock: bool,
    ) -> list[PhysicalCountRow]:
        """Return a fresh list of the projected rows; the cached rows stay untouched."""
        key = (
            tuple(items),
            tuple(movements),
            tuple(warehouses),
            normalize_cutoff(cutoff),
            bool(include_zero_stock),
        )
        if self._key is not None and key == self._key:
            self.hits += 1
            return list(self._rows)
        self.misses += 1
        self._rows = tuple(project_physical_count(key[0], key[1], key[2], key[3], key[4]))
        self._key = key
        return list(self._rows)

    def clear(self) -> None:
        self._key = None
        self._rows = ()
