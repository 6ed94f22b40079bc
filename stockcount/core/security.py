"""Vérification des jetons JWT émis par le service d'identité."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from stockcount.core.config import settings

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 30


def create_access_token(
    subject: str,
    *,
    expires_delta: timedelta | None = None,
) -> str:
    payload: dict[str, Any] = {"sub": subject}
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    payload["exp"] = expire
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    """Decode un JWT et renvoie sa charge utile."""
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
