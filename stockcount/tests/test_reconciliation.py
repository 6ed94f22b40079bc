from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime

from stockcount.core.models import InventoryItem, InventoryMovement, Warehouse
from stockcount.core.reconciliation import (
    ProjectionCache,
    compute_balances,
    filter_count_rows,
    project_physical_count,
)

CUTOFF = date(2024, 3, 31)

WAREHOUSES = [
    {"id": "W1", "name": "Principal"},
    {"id": "W2", "name": "Sucursal Norte"},
]


def _item(item_id: str, warehouse_id: str | None, stock: object, **extra: object) -> dict[str, object]:
    return {
        "id": item_id,
        "warehouse_id": warehouse_id,
        "current_stock": stock,
        "sku": extra.pop("sku", f"SKU-{item_id}"),
        "name": extra.pop("name", f"Producto {item_id}"),
        **extra,
    }


def _transfer(item_id: str, quantity: object, source: str | None, target: str | None, when: object) -> dict[str, object]:
    return {
        "item_id": item_id,
        "movement_type": "transfer",
        "quantity": quantity,
        "from_warehouse_id": source,
        "to_warehouse_id": target,
        "movement_date": when,
    }


def _quantities(rows) -> dict[tuple[str, str], float]:
    return {(row.warehouse_id, row.item_id): row.theoretical_qty for row in rows}


def test_transfer_splits_stock_between_warehouses() -> None:
    items = [_item("I1", "W1", 10)]
    movements = [_transfer("I1", 4, "W1", "W2", "2024-03-01")]

    rows = project_physical_count(items, movements, WAREHOUSES, CUTOFF)

    assert _quantities(rows) == {("W1", "I1"): 6, ("W2", "I1"): 4}
    assert [row.warehouse_name for row in rows] == ["Principal", "Sucursal Norte"]
    assert rows[0].sku == "SKU-I1"


def test_snapshot_is_returned_when_there_are_no_movements() -> None:
    items = [
        _item("I1", "W1", 7),
        _item("I2", "W2", "12.5"),
        _item("I3", "W1", "abc"),
        _item("I4", "W1", None),
    ]

    rows = project_physical_count(items, [], WAREHOUSES, CUTOFF, include_zero_stock=True)

    assert _quantities(rows) == {
        ("W1", "I1"): 7,
        ("W2", "I2"): 12.5,
        ("W1", "I3"): 0,
        ("W1", "I4"): 0,
    }


def test_transfers_preserve_item_total() -> None:
    items = [_item("I1", "W1", 20), _item("I2", "W2", 5)]
    movements = [
        _transfer("I1", 8, "W1", "W2", "2024-01-10"),
        _transfer("I1", 3, "W2", "W3", "2024-02-10"),
        _transfer("I2", 5, "W2", "W1", "2024-02-11"),
    ]

    balances = compute_balances(
        [InventoryItem.model_validate(item) for item in items],
        [InventoryMovement.model_validate(movement) for movement in movements],
        CUTOFF,
    )

    totals: dict[str, float] = defaultdict(float)
    for bucket in balances.values():
        for item_id, quantity in bucket.items():
            totals[item_id] += quantity
    assert totals == {"I1": 20, "I2": 5}
    assert balances["W3"]["I1"] == 3


def test_movement_after_cutoff_is_ignored_and_cutoff_day_is_included() -> None:
    items = [_item("I1", "W1", 10)]
    movements = [
        _transfer("I1", 2, "W1", "W2", "2024-03-31"),
        _transfer("I1", 1, "W1", "W2", "2024-03-31T18:45:00"),
        _transfer("I1", 5, "W1", "W2", "2024-04-01"),
        _transfer("I1", 3, "W1", "W2", datetime(2024, 4, 2, 9, 0)),
    ]

    rows = project_physical_count(items, movements, WAREHOUSES, CUTOFF)

    assert _quantities(rows) == {("W1", "I1"): 7, ("W2", "I1"): 3}


def test_movement_without_usable_date_is_included() -> None:
    items = [_item("I1", "W1", 10)]
    movements = [
        _transfer("I1", 1, "W1", "W2", None),
        _transfer("I1", 2, "W1", "W2", "not-a-date"),
    ]

    rows = project_physical_count(items, movements, WAREHOUSES, CUTOFF)

    assert _quantities(rows) == {("W1", "I1"): 7, ("W2", "I1"): 3}


def test_without_cutoff_every_movement_counts() -> None:
    items = [_item("I1", "W1", 10)]
    movements = [_transfer("I1", 4, "W1", "W2", "2099-01-01")]

    rows = project_physical_count(items, movements, WAREHOUSES, cutoff=None)

    assert _quantities(rows) == {("W1", "I1"): 6, ("W2", "I1"): 4}


def test_datetime_and_string_cutoffs_are_reduced_to_a_day() -> None:
    items = [_item("I1", "W1", 10)]
    movements = [
        _transfer("I1", 4, "W1", "W2", "2024-01-15"),
        _transfer("I1", 1, "W1", "W2", "2024-01-31T23:00:00"),
        _transfer("I1", 2, "W1", "W2", "2024-02-01"),
    ]
    expected = {("W1", "I1"): 5, ("W2", "I1"): 5}

    at_noon = project_physical_count(items, movements, WAREHOUSES, datetime(2024, 1, 31, 12))
    as_text = project_physical_count(items, movements, WAREHOUSES, "2024-01-31")
    as_timestamp = project_physical_count(items, movements, WAREHOUSES, "2024-01-31T08:00:00Z")

    assert _quantities(at_noon) == expected
    assert _quantities(as_text) == expected
    assert _quantities(as_timestamp) == expected
    assert compute_balances([InventoryItem(id="I1", warehouse_id="W1", current_stock=10)], [], "2024-01-31") == {
        "W1": {"I1": 10}
    }


def test_unusable_cutoff_means_no_cutoff() -> None:
    items = [_item("I1", "W1", 10)]
    movements = [_transfer("I1", 4, "W1", "W2", "2099-01-01")]

    for cutoff in ("hier", 20240131, object()):
        rows = project_physical_count(items, movements, WAREHOUSES, cutoff)
        assert _quantities(rows) == {("W1", "I1"): 6, ("W2", "I1"): 4}


def test_timestamp_with_short_fraction_after_cutoff_is_ignored() -> None:
    items = [_item("I1", "W1", 10)]
    movements = [
        _transfer("I1", 4, "W1", "W2", "2024-02-05T10:00:00.12345+00:00"),
        _transfer("I1", 1, "W1", "W2", "2024-01-20T10:00:00.5+00:00"),
    ]

    rows = project_physical_count(items, movements, WAREHOUSES, date(2024, 1, 31))

    assert _quantities(rows) == {("W1", "I1"): 9, ("W2", "I1"): 1}


def test_additions_and_removals_do_not_change_balances() -> None:
    items = [_item("I1", "W1", 10)]
    movements = [
        {"item_id": "I1", "movement_type": "addition", "quantity": 50, "movement_date": "2024-01-01"},
        {"item_id": "I1", "movement_type": "removal", "quantity": 3, "movement_date": "2024-01-02"},
        {"item_id": "I1", "movement_type": "adjustment", "quantity": 9, "movement_date": "2024-01-03"},
    ]

    rows = project_physical_count(items, movements, WAREHOUSES, CUTOFF)

    assert _quantities(rows) == {("W1", "I1"): 10}


def test_zero_and_invalid_quantities_are_skipped() -> None:
    items = [_item("I1", "W1", 10)]
    movements = [
        _transfer("I1", 0, "W1", "W2", "2024-01-01"),
        _transfer("I1", "n/a", "W1", "W2", "2024-01-01"),
        _transfer("I1", None, "W1", "W2", "2024-01-01"),
    ]

    rows = project_physical_count(items, movements, WAREHOUSES, CUTOFF, include_zero_stock=True)

    assert _quantities(rows) == {("W1", "I1"): 10}


def test_transfer_with_one_side_only_updates_that_side() -> None:
    items = [_item("I1", "W1", 10)]
    movements = [
        _transfer("I1", 4, "W1", None, "2024-01-01"),
        _transfer("I1", 2, None, "W2", "2024-01-02"),
    ]

    rows = project_physical_count(items, movements, WAREHOUSES, CUTOFF)

    assert _quantities(rows) == {("W1", "I1"): 6, ("W2", "I1"): 2}


def test_item_reference_is_resolved_from_alternate_keys() -> None:
    items = [_item("I1", "W1", 10), _item("I2", "W1", 10)]
    movements = [
        {
            "inventory_item_id": "I1",
            "movement_type": "transfer",
            "quantity": 1,
            "from_warehouse_id": "W1",
            "to_warehouse_id": "W2",
        },
        {
            "inventory_items": {"id": "I2", "name": "Producto I2"},
            "movement_type": "transfer",
            "quantity": 2,
            "from_warehouse_id": "W1",
            "to_warehouse_id": "W2",
        },
        {"movement_type": "transfer", "quantity": 5, "from_warehouse_id": "W1", "to_warehouse_id": "W2"},
    ]

    rows = project_physical_count(items, movements, WAREHOUSES, CUTOFF)

    assert _quantities(rows) == {
        ("W1", "I1"): 9,
        ("W1", "I2"): 8,
        ("W2", "I1"): 1,
        ("W2", "I2"): 2,
    }


def test_zero_and_negative_buckets_follow_inclusion_flag() -> None:
    items = [_item("I1", "W1", 2), _item("I2", "W1", 0)]
    movements = [_transfer("I1", 5, "W1", "W2", "2024-01-01")]

    hidden = project_physical_count(items, movements, WAREHOUSES, CUTOFF)
    shown = project_physical_count(items, movements, WAREHOUSES, CUTOFF, include_zero_stock=True)

    assert _quantities(hidden) == {("W2", "I1"): 5}
    assert all(row.theoretical_qty > 0 for row in hidden)
    assert _quantities(shown) == {("W1", "I1"): -3, ("W1", "I2"): 0, ("W2", "I1"): 5}


def test_unknown_items_are_dropped_and_unknown_warehouses_get_default_label() -> None:
    items = [_item("I1", "W9", 3)]
    movements = [_transfer("GHOST", 4, "W1", "W2", "2024-01-01")]

    rows = project_physical_count(items, movements, WAREHOUSES, CUTOFF, include_zero_stock=True)

    assert _quantities(rows) == {("W9", "I1"): 3}
    assert rows[0].warehouse_name == "Almacén"

    labelled = project_physical_count(items, [], [], CUTOFF, default_warehouse_label="Bodega")
    assert labelled[0].warehouse_name == "Bodega"


def test_items_without_identifiers_are_not_seeded() -> None:
    items = [
        {"id": None, "warehouse_id": "W1", "current_stock": 5},
        {"id": "I2", "warehouse_id": None, "current_stock": 5, "sku": "S2", "name": "Sin almacén"},
        "garbage",
        None,
    ]
    movements = [_transfer("I2", 2, None, "W2", "2024-01-01")]

    rows = project_physical_count(items, movements, WAREHOUSES, CUTOFF, include_zero_stock=True)

    assert _quantities(rows) == {("W2", "I2"): 2}
    assert rows[0].name == "Sin almacén"


def test_same_item_in_several_warehouses_keeps_independent_buckets() -> None:
    items = [_item("I1", "W1", 4), _item("I1", "W2", 6)]

    rows = project_physical_count(items, [], WAREHOUSES, CUTOFF)

    assert _quantities(rows) == {("W1", "I1"): 4, ("W2", "I1"): 6}


def test_empty_items_produce_no_rows() -> None:
    movements = [_transfer("I1", 4, "W1", "W2", "2024-01-01")]

    assert project_physical_count([], movements, WAREHOUSES, CUTOFF) == []
    assert project_physical_count(None, None, None, CUTOFF) == []


def test_filter_by_warehouse_and_search_term() -> None:
    items = [
        _item("I1", "W1", 1, sku="TOR-001", name="Tornillo", category="Ferretería"),
        _item("I2", "W2", 1, sku="CLV-002", name="Clavo", category=None),
        _item("I3", "W2", 1, sku="PIN-003", name="Pintura", category="Acabados"),
    ]
    rows = project_physical_count(items, [], WAREHOUSES, CUTOFF)

    assert [row.item_id for row in filter_count_rows(rows)] == ["I1", "I2", "I3"]
    assert [row.item_id for row in filter_count_rows(rows, "W2")] == ["I2", "I3"]
    assert [row.item_id for row in filter_count_rows(rows, "all", "tor")] == ["I1"]
    assert [row.item_id for row in filter_count_rows(rows, "all", "clv")] == ["I2"]
    assert [row.item_id for row in filter_count_rows(rows, "all", "ACABADOS")] == ["I3"]
    assert filter_count_rows(rows, "W1", "pintura") == []
    assert filter_count_rows(rows, "W3") == []


def test_projection_cache_reuses_result_until_inputs_change() -> None:
    items = [InventoryItem.model_validate(_item("I1", "W1", 10))]
    movements = [InventoryMovement.model_validate(_transfer("I1", 4, "W1", "W2", "2024-03-01"))]
    warehouses = [Warehouse.model_validate(entry) for entry in WAREHOUSES]
    cache = ProjectionCache()

    first = cache.get(items, movements, warehouses, CUTOFF, False)
    second = cache.get(list(items), list(movements), warehouses, "2024-03-31", False)
    assert second == first
    assert (cache.hits, cache.misses) == (1, 1)

    second.clear()
    assert cache.get(items, movements, warehouses, CUTOFF, False) == first
    assert cache.hits == 2

    earlier = cache.get(items, movements, warehouses, date(2024, 2, 1), False)
    assert earlier != first
    assert _quantities(earlier) == {("W1", "I1"): 10}
    assert cache.misses == 2

    cache.clear()
    cache.get(items, movements, warehouses, date(2024, 2, 1), False)
    assert cache.misses == 3
