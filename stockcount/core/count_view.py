"""View-model of the physical count screens.

The view owns the lifecycle load -> derive -> render: ``load`` fetches the
four inputs concurrently, and every read of ``rows`` goes through a
``ProjectionCache`` so the projection only reruns when one of its inputs
changes.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Mapping, Optional

from stockcount.core import services
from stockcount.core.config import settings
from stockcount.core.count_results import enrich_count_rows, summarize_count_rows
from stockcount.core.models import (
    ALL_WAREHOUSES,
    CompanyInfo,
    CountFilters,
    CountResultPreview,
    InventoryItem,
    InventoryMovement,
    PhysicalCountRow,
    Warehouse,
)
from stockcount.core.reconciliation import ProjectionCache, filter_count_rows

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InventoryDataSources:
    """Callables returning the inputs of the projection for one user."""

    list_items: Callable[[str], list[InventoryItem]] = services.list_items
    list_movements: Callable[[str], list[InventoryMovement]] = services.list_movements
    list_warehouses: Callable[[str], list[Warehouse]] = services.list_warehouses
    get_company_info: Callable[[str], Optional[CompanyInfo]] = services.get_company_info


@dataclass
class PhysicalCountView:
    sources: InventoryDataSources = field(default_factory=InventoryDataSources)
    cutoff: Optional[date] = field(default_factory=date.today)
    warehouse_id: str = ALL_WAREHOUSES
    search: str = ""
    include_zero_stock: bool = False

    items: tuple[InventoryItem, ...] = ()
    movements: tuple[InventoryMovement, ...] = ()
    warehouses: tuple[Warehouse, ...] = ()
    company: Optional[CompanyInfo] = None
    user_id: Optional[str] = None
    cache: ProjectionCache = field(default_factory=ProjectionCache, repr=False)

    async def load(self, user_id: str) -> None:
        """Fetch every input jointly; on any failure the view is emptied."""
        self.user_id = user_id
        try:
            items, movements, warehouses, company = await asyncio.gather(
                asyncio.to_thread(self.sources.list_items, user_id),
                asyncio.to_thread(self.sources.list_movements, user_id),
                asyncio.to_thread(self.sources.list_warehouses, user_id),
                asyncio.to_thread(self.sources.get_company_info, user_id),
            )
        except Exception:
            logger.exception("[PhysicalCount] Erreur de chargement pour user=%s", user_id)
            self.items, self.movements, self.warehouses = (), (), ()
            self.company = None
            return
        self.items = tuple(items or ())
        self.movements = tuple(movements or ())
        self.warehouses = tuple(warehouses or ())
        self.company = company or None
        logger.debug(
            "[PhysicalCount] user=%s items=%s movements=%s warehouses=%s",
            user_id,
            len(self.items),
            len(self.movements),
            len(self.warehouses),
        )

    def apply_filters(self, filters: CountFilters) -> None:
        self.cutoff = filters.cutoff
        self.warehouse_id = filters.warehouse or ALL_WAREHOUSES
        self.search = filters.q
        self.include_zero_stock = filters.include_zero

    @property
    def rows(self) -> list[PhysicalCountRow]:
        return self.cache.get(
            self.items,
            self.movements,
            self.warehouses,
            self.cutoff,
            self.include_zero_stock,
        )

    @property
    def filtered_rows(self) -> list[PhysicalCountRow]:
        return filter_count_rows(self.rows, self.warehouse_id, self.search)

    @property
    def company_name(self) -> str:
        if self.company is None:
            return settings.COMPANY_FALLBACK_NAME
        return self.company.display_name(settings.COMPANY_FALLBACK_NAME)

    def result_preview(self, counts: Mapping[str, Any] | None = None) -> CountResultPreview:
        enriched = enrich_count_rows(self.filtered_rows, counts)
        return CountResultPreview(rows=enriched, totals=summarize_count_rows(enriched))
