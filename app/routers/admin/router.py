# app/routers/admin/router.py
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, File, Form, Request, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app import config
from app.db.session import get_db
from app.models.audiobook import Audiobook
from app.models.narrator_request import NarratorRequest
from app.models.profile import Profile
from app.models.purchase import Purchase
from app.models.support import SupportTicket
from app.services.storage import ObjectStorage, StorageError, get_storage
from app.utils import messages
from app.utils.errors import bad_request, error_response

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin"])


# ---------------- Helpers ----------------
def _tpl(request: Request):
    # Use the shared Jinja2Templates configured in main.py
    return request.app.state.templates


def compute_stats(db: Session) -> dict:
    def count_content(*criteria) -> int:
        return db.query(func.count(Audiobook.id)).filter(*criteria).scalar() or 0

    by_type = dict(
        db.query(Audiobook.content_type, func.count(Audiobook.id)).group_by(Audiobook.content_type).all()
    )
    total_revenue = db.query(func.coalesce(func.sum(Purchase.amount), 0)).scalar() or 0

    return {
        "pending_content": count_content(Audiobook.status == "submitted"),
        "total_books": by_type.get("book", 0),
        "total_music": by_type.get("music", 0),
        "total_podcasts": by_type.get("podcast", 0),
        "total_content": sum(by_type.values()),
        "total_users": db.query(func.count(Profile.id))
        .filter(Profile.role.in_(("listener", "narrator")))
        .scalar()
        or 0,
        "total_narrators": db.query(func.count(Profile.id)).filter(Profile.role == "narrator").scalar() or 0,
        "total_purchases": db.query(func.count(Purchase.id)).scalar() or 0,
        "total_revenue": int(total_revenue),
        "pending_tickets": db.query(func.count(SupportTicket.id))
        .filter(SupportTicket.status != "closed")
        .scalar()
        or 0,
        "pending_narrator_requests": db.query(func.count(NarratorRequest.id))
        .filter(NarratorRequest.status == "pending")
        .scalar()
        or 0,
    }
# -----------------------------------------


# --------------- Dashboard ----------------
@router.get("/stats")
def stats(db: Session = Depends(get_db)):
    try:
        return compute_stats(db)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Dashboard stats failed")
        return error_response(e)


@router.get("/dashboard", response_class=HTMLResponse)
def dashboard(request: Request, db: Session = Depends(get_db)):
    latest = (
        db.query(Audiobook)
        .order_by(Audiobook.created_at.desc(), Audiobook.id.desc())
        .limit(20)
        .all()
    )
    return _tpl(request).TemplateResponse(
        request,
        "admin/dashboard.html",
        {"stats": compute_stats(db), "latest": latest, "title": "داشبورد"},
    )
# -----------------------------------------


# --------------- Upload Presign -----------
@router.post("/uploads/presign")
def presign_upload(payload: dict = Body(...), storage: ObjectStorage = Depends(get_storage)):
    """
    Body: {"bucket": "...", "key": "path/in/bucket/file.ext", "content_type": "..."}
    Returns:
    {
      "upload_url": "<pre-signed PUT>",
      "public_url": "<https://.../bucket/key>"
    }
    """
    bucket = (payload or {}).get("bucket") or ""
    key = ((payload or {}).get("key") or "").strip().lstrip("/")
    content_type = (payload or {}).get("content_type") or "application/octet-stream"
    if bucket not in config.KNOWN_BUCKETS:
        return bad_request(messages.INVALID_INPUT, bucket=bucket)
    if not key:
        return bad_request(messages.INVALID_INPUT)

    try:
        out = storage.presign_upload(bucket, key, content_type)
    except StorageError as e:
        return error_response(e, messages.UPLOAD_FAILED)
    return JSONResponse(out)


# --------------- Upload Fallback (POST) ---
@router.post("/uploads/upload")
def upload_via_server(
    file: UploadFile = File(...),
    bucket: str = Form(...),
    key: Optional[str] = Form(None),
    storage: ObjectStorage = Depends(get_storage),
):
    if bucket not in config.KNOWN_BUCKETS:
        return bad_request(messages.INVALID_INPUT, bucket=bucket)
    key = (key or (file.filename or "upload")).strip().lstrip("/")
    try:
        storage.upload_binary(bucket, key, file.file.read(), file.content_type)
    except StorageError as e:
        logger.exception("Server-side upload to %s/%s failed", bucket, key)
        return error_response(e, messages.UPLOAD_FAILED)
    return JSONResponse({"key": key, "public_url": storage.public_url(bucket, key)})
# -----------------------------------------
