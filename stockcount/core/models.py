"""Modèles Pydantic pour la toma física et son API."""
from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator, model_validator

MovementType = Literal["addition", "removal", "transfer"]
ALL_WAREHOUSES = "all"

_DATE_ADAPTER = TypeAdapter(date)
_DATETIME_ADAPTER = TypeAdapter(datetime)


def coerce_number(value: Any) -> float:
    """Convertit une valeur en nombre, 0 lorsque la conversion échoue."""
    if value is None or isinstance(value, bool):
        return float(value or 0)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number):
        return 0.0
    return number


def coerce_identifier(value: Any) -> str | None:
    if value is None or value == "" or value == 0:
        return None
    return str(value)


def coerce_moment(value: Any) -> date | datetime | None:
    """Parse ISO dates/datetimes; unparseable values become None."""
    if value is None or value == "":
        return None
    if isinstance(value, (date, datetime)):
        return value
    text = str(value).strip()
    try:
        if len(text) == 10:
            return _DATE_ADAPTER.validate_python(text)
        return _DATETIME_ADAPTER.validate_python(text)
    except ValidationError:
        return None


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class InventoryItem(_Record):
    id: Optional[str] = None
    warehouse_id: Optional[str] = None
    sku: str = ""
    name: str = ""
    category: Optional[str] = None
    current_stock: float = 0.0
    average_cost: Optional[float] = None
    cost_price: float = 0.0

    @field_validator("id", "warehouse_id", mode="before")
    @classmethod
    def _coerce_ids(cls, value: Any) -> str | None:
        return coerce_identifier(value)

    @field_validator("sku", "name", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, value: Any) -> str | None:
        return str(value) if value else None

    @field_validator("current_stock", "cost_price", mode="before")
    @classmethod
    def _coerce_quantities(cls, value: Any) -> float:
        return coerce_number(value)

    @field_validator("average_cost", mode="before")
    @classmethod
    def _coerce_average_cost(cls, value: Any) -> float | None:
        if value is None or value == "":
            return None
        return coerce_number(value)

    @property
    def unit_cost(self) -> float:
        if self.average_cost is not None:
            return self.average_cost
        return self.cost_price


class InventoryMovement(_Record):
    item_id: Optional[str] = None
    movement_type: str = ""
    quantity: float = 0.0
    movement_date: date | datetime | None = None
    from_warehouse_id: Optional[str] = None
    to_warehouse_id: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _resolve_item_reference(cls, data: Any) -> Any:
        if not isinstance(data, Mapping) or data.get("item_id"):
            return data
        nested = data.get("inventory_items")
        nested_id = nested.get("id") if isinstance(nested, Mapping) else None
        return {**data, "item_id": data.get("inventory_item_id") or nested_id}

    @field_validator("item_id", "from_warehouse_id", "to_warehouse_id", mode="before")
    @classmethod
    def _coerce_ids(cls, value: Any) -> str | None:
        return coerce_identifier(value)

    @field_validator("movement_type", mode="before")
    @classmethod
    def _coerce_type(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("quantity", mode="before")
    @classmethod
    def _coerce_quantity(cls, value: Any) -> float:
        return coerce_number(value)

    @field_validator("movement_date", mode="before")
    @classmethod
    def _coerce_date(cls, value: Any) -> date | datetime | None:
        return coerce_moment(value)


class Warehouse(_Record):
    id: str
    name: str = ""

    @field_validator("id", "name", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return "" if value is None else str(value)


class CompanyInfo(_Record):
    name: Optional[str] = None
    company_name: Optional[str] = None
    tax_id: Optional[str] = None
    address: Optional[str] = None

    @field_validator("name", "company_name", "tax_id", "address", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str | None:
        return str(value) if value else None

    def display_name(self, fallback: str) -> str:
        return self.name or self.company_name or fallback


class PhysicalCountRow(_Record):
    warehouse_id: str
    warehouse_name: str
    item_id: str
    sku: str
    name: str
    category: Optional[str] = None
    theoretical_qty: float
    unit_cost: float = 0.0

    @property
    def key(self) -> str:
        return f"{self.warehouse_id}-{self.item_id}"


class CountResultRow(PhysicalCountRow):
    counted_qty: float = 0.0
    difference_qty: float = 0.0
    theoretical_cost: float = 0.0
    counted_cost: float = 0.0
    cost_difference: float = 0.0


class CountTotals(BaseModel):
    theoretical_qty: float = 0.0
    counted_qty: float = 0.0
    difference_qty: float = 0.0
    theoretical_cost: float = 0.0
    counted_cost: float = 0.0
    cost_difference: float = 0.0


class CountFilters(BaseModel):
    cutoff: Optional[date] = None
    warehouse: str = ALL_WAREHOUSES
    q: str = ""
    include_zero: bool = False


class PhysicalCountSheet(BaseModel):
    cutoff: Optional[date] = None
    company: Optional[CompanyInfo] = None
    rows: list[PhysicalCountRow] = Field(default_factory=list)


class CountResultRequest(CountFilters):
    counts: dict[str, str | float | None] = Field(default_factory=dict)
    description: Optional[str] = Field(default=None, max_length=500)


class CountResultPreview(BaseModel):
    rows: list[CountResultRow] = Field(default_factory=list)
    totals: CountTotals = Field(default_factory=CountTotals)


class PhysicalCountLine(BaseModel):
    inventory_item_id: str
    warehouse_id: str
    theoretical_qty: float
    counted_qty: float
    difference_qty: float
    unit_cost: float
    total_theoretical_cost: float
    total_counted_cost: float
    cost_difference: float
    notes: Optional[str] = None


class PhysicalCountSession(BaseModel):
    id: int
    warehouse_id: Optional[str] = None
    count_date: date
    description: Optional[str] = None
    status: str = "draft"
    created_at: datetime


class PhysicalCountSessionDetail(PhysicalCountSession):
    lines: list[PhysicalCountLine] = Field(default_factory=list)
