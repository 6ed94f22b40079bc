"""Routes du résultat de la toma física (quantités comptées et écarts)."""
from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException
from starlette.responses import StreamingResponse

from stockcount.api.auth import get_current_user_id
from stockcount.api.physical_count import load_view, run_export
from stockcount.core import models, services
from stockcount.core.count_results import build_session_lines
from stockcount.core.errors import CountSessionNotFoundError, EmptyCountSessionError
from stockcount.core.worksheets import (
    RESULT_SHEET_BASENAME,
    RESULT_SHEET_COLUMNS,
    RESULT_SHEET_TITLE,
    to_result_sheet_rows,
)
from stockcount.services.excel_exports import export_rows_to_xlsx
from stockcount.services.pdf_exports import export_rows_to_pdf

router = APIRouter()


def _with_default_cutoff(payload: models.CountResultRequest) -> models.CountResultRequest:
    if payload.cutoff is not None:
        return payload
    return payload.model_copy(update={"cutoff": date.today()})


@router.post("/physical-result/preview", response_model=models.CountResultPreview)
async def preview_physical_result(
    payload: models.CountResultRequest,
    user_id: str = Depends(get_current_user_id),
) -> models.CountResultPreview:
    view = await load_view(user_id, _with_default_cutoff(payload))
    return view.result_preview(payload.counts)


@router.post(
    "/physical-result/sessions",
    response_model=models.PhysicalCountSessionDetail,
    status_code=201,
)
async def save_physical_result(
    payload: models.CountResultRequest,
    user_id: str = Depends(get_current_user_id),
) -> models.PhysicalCountSessionDetail:
    payload = _with_default_cutoff(payload)
    view = await load_view(user_id, payload)
    preview = view.result_preview(payload.counts)
    if not preview.rows:
        raise HTTPException(status_code=400, detail="No hay datos para guardar")
    try:
        return services.create_physical_count(
            user_id,
            count_date=payload.cutoff,
            lines=build_session_lines(preview.rows),
            warehouse_id=None if payload.warehouse == models.ALL_WAREHOUSES else payload.warehouse,
            description=payload.description,
        )
    except EmptyCountSessionError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/physical-result/sessions", response_model=list[models.PhysicalCountSession])
async def list_physical_results(
    user_id: str = Depends(get_current_user_id),
) -> list[models.PhysicalCountSession]:
    return services.list_physical_counts(user_id)


@router.get("/physical-result/sessions/{session_id}", response_model=models.PhysicalCountSessionDetail)
async def get_physical_result(
    session_id: int,
    user_id: str = Depends(get_current_user_id),
) -> models.PhysicalCountSessionDetail:
    try:
        return services.get_physical_count(user_id, session_id)
    except CountSessionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.post("/physical-result/export/excel")
async def export_physical_result_excel(
    payload: models.CountResultRequest,
    user_id: str = Depends(get_current_user_id),
) -> StreamingResponse:
    view = await load_view(user_id, _with_default_cutoff(payload))
    rows = to_result_sheet_rows(view.result_preview(payload.counts).rows)
    return run_export(
        lambda: export_rows_to_xlsx(rows, RESULT_SHEET_COLUMNS, RESULT_SHEET_BASENAME),
        label="excel",
    )


@router.post("/physical-result/export/pdf")
async def export_physical_result_pdf(
    payload: models.CountResultRequest,
    user_id: str = Depends(get_current_user_id),
) -> StreamingResponse:
    view = await load_view(user_id, _with_default_cutoff(payload))
    rows = to_result_sheet_rows(view.result_preview(payload.counts).rows)
    title = f"{view.company_name} - {RESULT_SHEET_TITLE}"
    return run_export(
        lambda: export_rows_to_pdf(rows, RESULT_SHEET_COLUMNS, RESULT_SHEET_BASENAME, title),
        label="pdf",
    )
