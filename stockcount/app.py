"""Application FastAPI du service de toma física."""
from contextlib import asynccontextmanager

from fastapi import FastAPI

from stockcount import __version__
from stockcount.api import physical_count, physical_result
from stockcount.core import services
from stockcount.core.logging_config import configure_logging

configure_logging()


@asynccontextmanager
async def _lifespan(_: FastAPI):
    services.ensure_database_ready()
    yield


app = FastAPI(title="Toma de Inventario Físico API", version=__version__, lifespan=_lifespan)

app.include_router(physical_count.router, prefix="/inventory", tags=["physical-count"])
app.include_router(physical_result.router, prefix="/inventory", tags=["physical-result"])


@app.get("/health", tags=["health"])
async def healthcheck() -> dict[str, str]:
    """Renvoie l'état de santé générique du service."""
    return {"status": "ok"}
