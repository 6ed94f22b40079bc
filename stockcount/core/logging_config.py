from __future__ import annotations

import logging
import logging.config
from collections.abc import Iterable

from stockcount.core.config import PROJECT_ROOT, settings

LOG_DIR = PROJECT_ROOT / "logs"


class AccessPathExcludeFilter(logging.Filter):
    """Drop uvicorn access records for noisy paths such as health checks."""

    def __init__(self, excluded_paths: Iterable[str] = ()) -> None:
        super().__init__()
        self.excluded_paths = tuple(excluded_paths)

    def filter(self, record: logging.LogRecord) -> bool:
        args = record.args
        if not isinstance(args, tuple) or len(args) < 3:
            return True
        path = str(args[2]).split("?", 1)[0]
        return path not in self.excluded_paths


def configure_logging() -> None:
    """Configure application-wide logging with a rotating file handler."""

    LOG_DIR.mkdir(parents=True, exist_ok=True)
    logging.captureWarnings(True)
    root_level = "DEBUG" if settings.DEBUG else "INFO"

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "verbose": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            }
        },
        "filters": {
            "exclude_health": {
                "()": AccessPathExcludeFilter,
                "excluded_paths": ["/health"],
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": "INFO",
                "formatter": "verbose",
            },
            "app_file": {
                "class": "logging.handlers.RotatingFileHandler",
                "level": "DEBUG",
                "formatter": "verbose",
                "filename": str(LOG_DIR / "stockcount.log"),
                "maxBytes": 5 * 1024 * 1024,
                "backupCount": 5,
                "encoding": "utf-8",
            },
        },
        "loggers": {
            "": {
                "handlers": ["console", "app_file"],
                "level": root_level,
            },
            "uvicorn": {
                "handlers": ["console", "app_file"],
                "level": "INFO",
                "propagate": False,
            },
            "uvicorn.error": {
                "handlers": ["console", "app_file"],
                "level": "INFO",
                "propagate": False,
            },
            "uvicorn.access": {
                "handlers": ["console", "app_file"],
                "filters": ["exclude_health"],
                "level": "INFO",
                "propagate": False,
            },
        },
    }

    logging.config.dictConfig(logging_config)


__all__ = ["AccessPathExcludeFilter", "configure_logging", "LOG_DIR"]
