"""Configuration statique du service de toma física."""
from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]

_TRUE_VALUES = {"1", "true", "yes", "on", "y", "t"}
_FALSE_VALUES = {"0", "false", "no", "off", "n", "f"}

_env_loaded = False
_env_lock = threading.Lock()


def load_env(env_path: Path | None = None) -> None:
    """Charge les variables du fichier .env à la racine du dépôt si présent.

    Les variables déjà définies dans l'environnement restent prioritaires.
    """
    global _env_loaded
    if _env_loaded:
        return
    with _env_lock:
        if _env_loaded:
            return
        path = env_path or PROJECT_ROOT / ".env"
        if path.exists():
            for line in path.read_text(encoding="utf-8").splitlines():
                stripped = line.strip()
                if not stripped or stripped.startswith("#") or "=" not in stripped:
                    continue
                key, value = (part.strip() for part in stripped.split("=", 1))
                if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
                    value = value[1:-1]
                if key:
                    os.environ.setdefault(key, value)
        _env_loaded = True


def _get_env_flag(name: str, default: bool = False) -> bool:
    """Retourne une valeur booléenne à partir d'une variable d'environnement."""

    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    return default


def _get_env_choice(name: str, choices: set[str], default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().upper()
    return normalized if normalized in choices else default


def _get_env_int(name: str, default: int, *, minimum: int = 1) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed >= minimum else default


def _get_env_str(name: str, default: str) -> str:
    value = (os.getenv(name) or "").strip()
    return value or default


@dataclass(frozen=True)
class Settings:
    """Paramètres globaux lus depuis l'environnement."""

    DEBUG: bool = False
    DATA_DIR: Path = PROJECT_ROOT / "data"
    DEFAULT_WAREHOUSE_LABEL: str = "Almacén"
    COMPANY_FALLBACK_NAME: str = "ContaBi"
    PDF_PAGE_FORMAT: str = "A4_LANDSCAPE"
    MAX_EXPORT_ROWS: int = 5000
    SECRET_KEY: str = "change-me-please"


def load_settings() -> Settings:
    load_env()
    return Settings(
        DEBUG=_get_env_flag("STOCKCOUNT_DEBUG", default=False),
        DATA_DIR=Path(_get_env_str("STOCKCOUNT_DATA_DIR", str(PROJECT_ROOT / "data"))),
        DEFAULT_WAREHOUSE_LABEL=_get_env_str("STOCKCOUNT_DEFAULT_WAREHOUSE_LABEL", "Almacén"),
        COMPANY_FALLBACK_NAME=_get_env_str("STOCKCOUNT_COMPANY_FALLBACK", "ContaBi"),
        PDF_PAGE_FORMAT=_get_env_choice(
            "STOCKCOUNT_PDF_PAGE_FORMAT", {"A4", "A4_LANDSCAPE", "LETTER"}, "A4_LANDSCAPE"
        ),
        MAX_EXPORT_ROWS=_get_env_int("STOCKCOUNT_MAX_EXPORT_ROWS", 5000),
        SECRET_KEY=_get_env_str("STOCKCOUNT_SECRET_KEY", "change-me-please"),
    )


settings = load_settings()
