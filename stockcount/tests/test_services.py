from __future__ import annotations

from datetime import date

import pytest

from stockcount.core import services
from stockcount.core.errors import CountSessionNotFoundError, EmptyCountSessionError
from stockcount.core.models import CompanyInfo, PhysicalCountLine


def _line(item_id: str, counted: float) -> PhysicalCountLine:
    return PhysicalCountLine(
        inventory_item_id=item_id,
        warehouse_id="W1",
        theoretical_qty=5,
        counted_qty=counted,
        difference_qty=counted - 5,
        unit_cost=2,
        total_theoretical_cost=10,
        total_counted_cost=counted * 2,
        cost_difference=(counted - 5) * 2,
    )


def test_inventory_records_are_scoped_by_user(stock_db) -> None:
    principal = services.create_warehouse("user-1", "  Principal  ")
    services.create_warehouse("user-2", "Ajeno")
    item = services.create_item(
        "user-1",
        warehouse_id=principal.id,
        sku="TOR-001",
        name="Tornillo",
        category="Ferretería",
        current_stock=12,
        average_cost=1.5,
    )
    services.create_item("user-2", warehouse_id=None, sku="X", name="Otro")

    assert stock_db.exists()
    assert [warehouse.name for warehouse in services.list_warehouses("user-1")] == ["Principal"]
    items = services.list_items("user-1")
    assert items == [item]
    assert items[0].unit_cost == 1.5


def test_movements_keep_recording_order(stock_db) -> None:
    services.record_movement("user-1", item_id="I1", movement_type="addition", quantity=5, movement_date=date(2024, 1, 3))
    services.record_movement(
        "user-1",
        item_id="I1",
        movement_type="transfer",
        quantity=2,
        movement_date="2024-01-01",
        from_warehouse_id="W1",
        to_warehouse_id="W2",
    )

    movements = services.list_movements("user-1")

    assert [movement.movement_type for movement in movements] == ["addition", "transfer"]
    assert movements[0].movement_date == date(2024, 1, 3)
    assert movements[1].to_warehouse_id == "W2"
    assert services.list_movements("user-2") == []


def test_record_movement_rejects_invalid_input(stock_db) -> None:
    with pytest.raises(ValueError, match="Tipo de movimiento"):
        services.record_movement("user-1", item_id="I1", movement_type="gift", quantity=1)
    with pytest.raises(ValueError, match="almacén"):
        services.record_movement("user-1", item_id="I1", movement_type="transfer", quantity=1)
    assert services.MOVEMENT_TYPES == {"addition", "removal", "transfer"}


def test_company_info_upsert(stock_db) -> None:
    assert services.get_company_info("user-1") is None

    services.save_company_info("user-1", CompanyInfo(name="Ferretería Central", tax_id="101-0001"))
    services.save_company_info("user-1", CompanyInfo(name="Ferretería Central SRL", address="Calle 1"))

    info = services.get_company_info("user-1")
    assert info is not None
    assert info.name == "Ferretería Central SRL"
    assert info.tax_id is None
    assert info.address == "Calle 1"
    assert info.display_name("ContaBi") == "Ferretería Central SRL"


def test_physical_count_sessions_roundtrip(stock_db) -> None:
    created = services.create_physical_count(
        "user-1",
        count_date=date(2024, 3, 31),
        lines=[_line("I1", 4), _line("I2", 6)],
        warehouse_id="W1",
        description="Cierre de trimestre",
    )

    assert created.status == "draft"
    assert created.count_date == date(2024, 3, 31)
    assert [line.inventory_item_id for line in created.lines] == ["I1", "I2"]

    sessions = services.list_physical_counts("user-1")
    assert [session.id for session in sessions] == [created.id]
    assert services.list_physical_counts("user-2") == []

    detail = services.get_physical_count("user-1", created.id)
    assert detail.description == "Cierre de trimestre"
    assert detail.lines[1].cost_difference == 2

    with pytest.raises(CountSessionNotFoundError):
        services.get_physical_count("user-2", created.id)


def test_physical_count_requires_lines(stock_db) -> None:
    with pytest.raises(EmptyCountSessionError):
        services.create_physical_count("user-1", count_date=date(2024, 3, 31), lines=[])
