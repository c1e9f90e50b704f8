# app/utils/errors.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from app.services.storage import StorageError
from app.utils import messages

logger = logging.getLogger(__name__)

# Postgres SQLSTATE for unique_violation
UNIQUE_VIOLATION = "23505"


def _sqlstate(exc: BaseException) -> Optional[str]:
    orig = getattr(exc, "orig", None) or exc
    # psycopg2 -> pgcode, psycopg 3 -> sqlstate
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def is_unique_violation(exc: BaseException) -> bool:
    code = _sqlstate(exc)
    if code:
        return code == UNIQUE_VIOLATION
    # Drivers without SQLSTATE (sqlite): fall back to the message.
    if isinstance(exc, IntegrityError):
        return "unique" in str(getattr(exc, "orig", exc)).lower()
    return False


def describe(exc: BaseException) -> str:
    """Short text for an exception; DBAPI errors are unwrapped."""
    orig = getattr(exc, "orig", None)
    return str(orig if orig is not None else exc)


def error_response(
    exc: BaseException,
    prefix: str = messages.ERROR,
    *,
    duplicate_message: str = messages.DUPLICATE,
) -> JSONResponse:
    """
    Map a failed operation to a JSON error body.
      - unique violation (23505) -> 409 + duplicate message
      - storage failure          -> 502
      - anything else            -> 500, exception text shown verbatim
    """
    if is_unique_violation(exc):
        return JSONResponse({"error": duplicate_message, "code": UNIQUE_VIOLATION}, status_code=409)
    if isinstance(exc, StorageError):
        return JSONResponse({"error": f"{prefix}: {exc}"}, status_code=502)
    return JSONResponse({"error": f"{prefix}: {describe(exc)}"}, status_code=500)


def bad_request(message: str, status_code: int = 400, **extra) -> JSONResponse:
    return JSONResponse({"error": message, **extra}, status_code=status_code)
