# app/routers/auth.py
from __future__ import annotations

import logging
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.models.profile import Profile
from app.utils import messages
from app.utils.authz import require_admin
from app.utils.security import verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


# ========= helpers =========
def _is_safe_next(next_url: str | None) -> bool:
    """
    Only allow local/relative redirects. Blocks absolute/externals.
    Accepts "" or None as safe (meaning: no redirect).
    """
    if not next_url:
        return True
    parts = urlparse(next_url)
    return not parts.scheme and not parts.netloc and next_url.startswith("/")


# ========= login =========
@router.get("/login")
def login_info(next: str | None = None):
    # The panel's frontend owns the form; this only documents the contract.
    return {"fields": ["email", "password"], "next": next or ""}


@router.post("/login")
def login_post(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    next: str | None = Form(default=None),
    db: Session = Depends(get_db),
):
    email_norm = (email or "").strip().lower()
    if not email_norm or not password:
        return JSONResponse({"error": messages.INVALID_CREDENTIALS}, status_code=400)

    me = db.query(Profile).filter(Profile.email == email_norm).first()
    if not me or not verify_password(password, me.password_hash):
        logger.info("Failed admin login for %s", email_norm)
        return JSONResponse({"error": messages.INVALID_CREDENTIALS}, status_code=400)
    if not me.is_admin:
        logger.warning("Non-admin profile %s tried to sign into the panel", me.id)
        return JSONResponse({"error": messages.FORBIDDEN}, status_code=403)

    request.session["user_id"] = me.id
    request.session["user"] = {"id": me.id, "email": me.email}

    if next and _is_safe_next(next):
        return RedirectResponse(url=next, status_code=303)
    return {"ok": True, "user": me.to_dict()}


# ========= logout =========
@router.post("/logout")
def logout(request: Request):
    request.session.pop("user_id", None)
    request.session.pop("user", None)
    return {"ok": True}


@router.get("/me")
def whoami(me: Profile = Depends(require_admin)):
    return me.to_dict()
