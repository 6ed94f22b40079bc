from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

os.environ.setdefault("STOCKCOUNT_SECRET_KEY", "test-secret-key-with-enough-length!")

from stockcount.core import db, security  # noqa: E402


@pytest.fixture
def stock_db(tmp_path, monkeypatch) -> Path:
    """Point the sqlite layer at a fresh database for one test."""
    path = tmp_path / "data" / "stockcount.db"
    monkeypatch.setattr(db, "STOCK_DB_PATH", path)
    return path


@pytest.fixture
def auth_headers():
    def _headers(user_id: str) -> dict[str, str]:
        token = security.create_access_token(user_id)
        return {"Authorization": f"Bearer {token}"}

    return _headers
