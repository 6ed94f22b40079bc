"""Routes de la toma de inventario físico."""
from __future__ import annotations

import io
import logging
from datetime import date
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, Query
from starlette.responses import StreamingResponse

from stockcount.api.auth import get_current_user_id
from stockcount.core import models
from stockcount.core.count_view import PhysicalCountView
from stockcount.core.errors import EmptyExportError, ExportError
from stockcount.core.reconciliation import ProjectionCache
from stockcount.core.worksheets import (
    COUNT_SHEET_BASENAME,
    COUNT_SHEET_COLUMNS,
    COUNT_SHEET_TITLE,
    ExportedFile,
    to_count_sheet_rows,
)
from stockcount.services.excel_exports import export_rows_to_xlsx
from stockcount.services.pdf_exports import export_rows_to_pdf

router = APIRouter()

logger = logging.getLogger(__name__)

_projection_caches: dict[str, ProjectionCache] = {}


def count_filters(
    cutoff: date | None = Query(default=None, description="Fecha de conteo (hoy por defecto)"),
    warehouse: str = Query(default=models.ALL_WAREHOUSES, description="Almacén o 'all'"),
    q: str = Query(default="", description="Filtro SKU/nombre/categoría"),
    include_zero: bool = Query(default=False, description="Incluir existencias en cero"),
) -> models.CountFilters:
    return models.CountFilters(
        cutoff=cutoff or date.today(),
        warehouse=warehouse,
        q=q,
        include_zero=include_zero,
    )


def projection_cache_for(user_id: str) -> ProjectionCache:
    """Cache de projection par utilisateur, partagé entre les requêtes."""
    return _projection_caches.setdefault(user_id, ProjectionCache())


async def load_view(user_id: str, filters: models.CountFilters) -> PhysicalCountView:
    view = PhysicalCountView(cache=projection_cache_for(user_id))
    view.apply_filters(filters)
    await view.load(user_id)
    return view


def file_response(exported: ExportedFile) -> StreamingResponse:
    headers = {"Content-Disposition": f"attachment; filename={exported.filename}"}
    return StreamingResponse(io.BytesIO(exported.content), media_type=exported.media_type, headers=headers)


def run_export(export: Callable[[], ExportedFile], *, label: str) -> StreamingResponse:
    try:
        exported = export()
    except EmptyExportError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ExportError as exc:
        logger.error("[PhysicalCount] Export %s en échec: %s", label, exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return file_response(exported)


@router.get("/physical-count", response_model=models.PhysicalCountSheet)
async def physical_count_sheet(
    filters: models.CountFilters = Depends(count_filters),
    user_id: str = Depends(get_current_user_id),
) -> models.PhysicalCountSheet:
    view = await load_view(user_id, filters)
    return models.PhysicalCountSheet(cutoff=view.cutoff, company=view.company, rows=view.filtered_rows)


@router.get("/physical-count/export/excel")
async def export_physical_count_excel(
    filters: models.CountFilters = Depends(count_filters),
    user_id: str = Depends(get_current_user_id),
) -> StreamingResponse:
    view = await load_view(user_id, filters)
    rows = to_count_sheet_rows(view.filtered_rows)
    return run_export(
        lambda: export_rows_to_xlsx(rows, COUNT_SHEET_COLUMNS, COUNT_SHEET_BASENAME),
        label="excel",
    )


@router.get("/physical-count/export/pdf")
async def export_physical_count_pdf(
    filters: models.CountFilters = Depends(count_filters),
    user_id: str = Depends(get_current_user_id),
) -> StreamingResponse:
    view = await load_view(user_id, filters)
    rows = to_count_sheet_rows(view.filtered_rows)
    title = f"{view.company_name} - {COUNT_SHEET_TITLE}"
    subtitle = f"Fecha de conteo: {view.cutoff.strftime('%d/%m/%Y')}" if view.cutoff else None
    return run_export(
        lambda: export_rows_to_pdf(rows, COUNT_SHEET_COLUMNS, COUNT_SHEET_BASENAME, title, subtitle=subtitle),
        label="pdf",
    )
