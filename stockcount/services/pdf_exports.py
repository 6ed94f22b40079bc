"""PDF export helpers for physical count worksheets."""
from __future__ import annotations

import io
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape, letter, portrait
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas

from stockcount.core.config import settings
from stockcount.core.errors import EmptyExportError, ExportError
from stockcount.core.worksheets import ExportedFile, SheetColumn

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"


@dataclass(frozen=True)
class PdfTheme:
    font_family: str
    bold_font_family: str
    base_font_size: float
    heading_font_size: float
    text_color: colors.Color
    muted_text_color: colors.Color
    table_header_bg: colors.Color
    table_header_text: colors.Color
    table_row_alt_bg: colors.Color
    border_color: colors.Color
    background_color: colors.Color


DEFAULT_THEME = PdfTheme(
    font_family="Helvetica",
    bold_font_family="Helvetica-Bold",
    base_font_size=9,
    heading_font_size=16,
    text_color=colors.HexColor("#282828"),
    muted_text_color=colors.HexColor("#646464"),
    table_header_bg=colors.HexColor("#F3F4F6"),
    table_header_text=colors.HexColor("#374151"),
    table_row_alt_bg=colors.HexColor("#F9FAFB"),
    border_color=colors.HexColor("#C8C8C8"),
    background_color=colors.white,
)


def page_size_for_format(page_format: str) -> tuple[float, float]:
    if page_format == "LETTER":
        return portrait(letter)
    if page_format == "A4":
        return portrait(A4)
    return landscape(A4)


def format_cell(value: object) -> str:
    if value is None or value == "":
        return ""
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return f"{value:,.2f}"
    return str(value)


def _wrap_to_width(value: str, max_width: float, font_name: str, font_size: float) -> list[str]:
    def _split_long_word(word: str) -> list[str]:
        parts: list[str] = []
        current = ""
        for char in word:
            if pdfmetrics.stringWidth(current + char, font_name, font_size) <= max_width:
                current += char
            else:
                if current:
                    parts.append(current)
                current = char
        if current:
            parts.append(current)
        return parts or [word]

    words = value.split()
    if not words:
        return [""]
    lines: list[str] = []
    current_line = ""
    for word in words:
        word_parts = (
            _split_long_word(word)
            if pdfmetrics.stringWidth(word, font_name, font_size) > max_width
            else [word]
        )
        for part in word_parts:
            candidate = f"{current_line} {part}".strip()
            if current_line and pdfmetrics.stringWidth(candidate, font_name, font_size) > max_width:
                lines.append(current_line)
                current_line = part
            else:
                current_line = candidate
    if current_line:
        lines.append(current_line)
    return lines or [value]


def render_table_pdf(
    *,
    title: str,
    columns: Sequence[SheetColumn],
    rows: Sequence[Mapping[str, object]],
    subtitle: str | None = None,
    theme: PdfTheme = DEFAULT_THEME,
    page_size: tuple[float, float] | None = None,
) -> bytes:
    """Render ``rows`` as a paginated table under a title and a generation date."""
    buffer = io.BytesIO()
    page_size = page_size or page_size_for_format(settings.PDF_PAGE_FORMAT)
    pdf = canvas.Canvas(buffer, pagesize=page_size)
    pdf.setTitle(title)
    width, height = page_size
    margin = 14 * mm
    line_height = theme.base_font_size + 3
    header_height = 2 * line_height + 6
    row_padding = 8
    table_width = width - 2 * margin
    generated_at = datetime.now()

    def draw_header() -> float:
        pdf.setFillColor(theme.text_color)
        pdf.setFont(theme.bold_font_family, theme.heading_font_size)
        pdf.drawString(margin, height - margin, title)
        pdf.setStrokeColor(theme.border_color)
        pdf.setLineWidth(0.5)
        pdf.line(margin, height - margin - 6, width - margin, height - margin - 6)
        pdf.setFont(theme.font_family, theme.base_font_size)
        pdf.setFillColor(theme.muted_text_color)
        y_position = height - margin - 20
        pdf.drawString(margin, y_position, generated_at.strftime("Fecha: %d/%m/%Y %H:%M"))
        if subtitle:
            y_position -= line_height
            pdf.drawString(margin, y_position, subtitle)
        pdf.setFillColor(theme.text_color)
        return y_position - 2 * line_height

    def draw_footer(page_number: int) -> None:
        pdf.setFillColor(theme.muted_text_color)
        pdf.setFont(theme.font_family, theme.base_font_size - 1)
        pdf.drawRightString(width - margin, margin / 2, f"Página {page_number}")
        pdf.setFillColor(theme.text_color)

    def draw_table_header(y_position: float) -> float:
        font_size = theme.base_font_size - 1
        pdf.setFillColor(theme.table_header_bg)
        pdf.rect(margin, y_position - header_height, table_width, header_height, stroke=0, fill=1)
        pdf.setStrokeColor(theme.border_color)
        pdf.rect(margin, y_position - header_height, table_width, header_height, stroke=1, fill=0)
        pdf.setFillColor(theme.table_header_text)
        pdf.setFont(theme.bold_font_family, font_size)
        x = margin
        for column in columns:
            cell_width = column.ratio * table_width
            text_y = y_position - line_height
            for line in _wrap_to_width(column.title, cell_width - 6, theme.bold_font_family, font_size)[:2]:
                pdf.drawString(x + 3, text_y, line)
                text_y -= line_height
            x += cell_width
        pdf.setFillColor(theme.text_color)
        return y_position - header_height

    def start_page(page_number: int) -> float:
        y_position = draw_header()
        draw_footer(page_number)
        return draw_table_header(y_position)

    page_number = 1
    y = start_page(page_number)
    font_size = theme.base_font_size - 1
    for row_index, row in enumerate(rows):
        wrapped: list[tuple[list[str], float, str]] = []
        max_line_count = 1
        for column in columns:
            cell_width = column.ratio * table_width
            lines = _wrap_to_width(format_cell(row.get(column.key)), cell_width - 6, theme.font_family, font_size)
            max_line_count = max(max_line_count, len(lines))
            wrapped.append((lines, cell_width, column.align))

        row_height = max_line_count * line_height + row_padding
        if y - row_height <= margin:
            pdf.showPage()
            page_number += 1
            y = start_page(page_number)

        pdf.setFillColor(theme.table_row_alt_bg if row_index % 2 else theme.background_color)
        pdf.rect(margin, y - row_height, table_width, row_height, stroke=0, fill=1)
        pdf.setStrokeColor(theme.border_color)
        pdf.rect(margin, y - row_height, table_width, row_height, stroke=1, fill=0)
        pdf.setFillColor(theme.text_color)
        pdf.setFont(theme.font_family, font_size)

        x = margin
        for lines, cell_width, align in wrapped:
            text_y = y - line_height
            for line in lines:
                if align == "right":
                    pdf.drawRightString(x + cell_width - 3, text_y, line)
                else:
                    pdf.drawString(x + 3, text_y, line)
                text_y -= line_height
            x += cell_width
        y -= row_height

    pdf.save()
    return buffer.getvalue()


def export_rows_to_pdf(
    rows: Sequence[Mapping[str, object]],
    columns: Sequence[SheetColumn],
    base_name: str,
    title: str,
    *,
    subtitle: str | None = None,
) -> ExportedFile:
    if not rows:
        raise EmptyExportError()
    if not columns:
        raise ExportError("No se definieron columnas para la exportación")

    truncated = list(rows[: settings.MAX_EXPORT_ROWS])
    if len(rows) > settings.MAX_EXPORT_ROWS:
        notice = f"Exportación limitada a {settings.MAX_EXPORT_ROWS} líneas."
        subtitle = f"{subtitle} · {notice}" if subtitle else notice

    try:
        content = render_table_pdf(title=title, columns=columns, rows=truncated, subtitle=subtitle)
    except (OSError, ValueError, KeyError) as exc:
        logger.exception("[Export] Échec de l'export PDF %s", base_name)
        raise ExportError("Error al exportar a PDF. Revisa la consola para más detalles.") from exc
    return ExportedFile(f"{base_name}.pdf", content, PDF_MEDIA_TYPE)
