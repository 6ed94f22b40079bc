"""Excel export helpers for physical count worksheets."""
from __future__ import annotations

import io
import logging
from collections.abc import Mapping, Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill

from stockcount.core.errors import EmptyExportError, ExportError
from stockcount.core.worksheets import ExportedFile, SheetColumn

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
_HEADER_FILL = PatternFill(start_color="F3F4F6", end_color="F3F4F6", fill_type="solid")


def export_rows_to_xlsx(
    rows: Sequence[Mapping[str, object]],
    columns: Sequence[SheetColumn],
    base_name: str,
    sheet_name: str = "Datos",
) -> ExportedFile:
    """Write ``rows`` in column order, one header row, to an in-memory workbook."""
    if not rows:
        raise EmptyExportError()

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = sheet_name
    sheet.append([column.title for column in columns])
    for cell in sheet[1]:
        cell.font = Font(bold=True)
        cell.fill = _HEADER_FILL

    for row in rows:
        sheet.append([row.get(column.key, "") for column in columns])

    for index, column in enumerate(columns, start=1):
        letter = sheet.cell(row=1, column=index).column_letter
        sheet.column_dimensions[letter].width = max(12, len(column.title) + 2)
        if column.align == "right":
            for cell in sheet[letter][1:]:
                cell.alignment = Alignment(horizontal="right")
    sheet.freeze_panes = "A2"

    buffer = io.BytesIO()
    try:
        workbook.save(buffer)
    except (OSError, ValueError) as exc:
        logger.exception("[Export] Échec de l'export Excel %s", base_name)
        raise ExportError("Error al exportar a Excel") from exc
    return ExportedFile(f"{base_name}.xlsx", buffer.getvalue(), XLSX_MEDIA_TYPE)
