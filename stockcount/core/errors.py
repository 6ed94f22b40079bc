"""Exceptions métier du service de toma física."""
from __future__ import annotations


class StockCountError(Exception):
    """Base class for errors raised by the physical count services."""


class EmptyExportError(StockCountError):
    def __init__(self, message: str = "No hay datos para exportar") -> None:
        super().__init__(message)


class ExportError(StockCountError):
    """Raised when a spreadsheet or PDF document cannot be produced."""


class EmptyCountSessionError(StockCountError):
    def __init__(self, message: str = "No hay líneas con cantidades para guardar") -> None:
        super().__init__(message)


class CountSessionNotFoundError(StockCountError):
    def __init__(self, session_id: int) -> None:
        super().__init__(f"Toma física no encontrada: {session_id}")
        self.session_id = session_id
