# app/routers/admin/narrator_requests.py
import datetime as dt
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app import config
from app.db.session import get_db
from app.models.narrator_request import REQUEST_STATUSES, NarratorRequest
from app.models.profile import Profile
from app.routers.admin.helpers import clean_str
from app.services.storage import ObjectStorage, StorageError, get_storage
from app.utils import messages
from app.utils.authz import require_admin
from app.utils.errors import bad_request, error_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/narrator-requests", tags=["admin:narrator-requests"])


def _summary(req: NarratorRequest) -> dict:
    data = req.to_dict()
    user = req.user
    data["user_name"] = (user.display_name or user.full_name or user.email) if user else None
    return data


@router.get("")
def list_requests(status: Optional[str] = None, db: Session = Depends(get_db)):
    query = db.query(NarratorRequest)
    if status:
        if status not in REQUEST_STATUSES:
            return bad_request(messages.INVALID_STATUS)
        query = query.filter(NarratorRequest.status == status)
    rows = query.order_by(NarratorRequest.created_at.desc()).all()
    return {"requests": [_summary(r) for r in rows]}


@router.get("/stats")
def request_stats(db: Session = Depends(get_db)):
    stats = {status: 0 for status in REQUEST_STATUSES}
    rows = (
        db.query(NarratorRequest.status, func.count(NarratorRequest.id))
        .group_by(NarratorRequest.status)
        .all()
    )
    for status, count in rows:
        stats[status] = count
    return stats


@router.get("/{request_id}")
def get_request(
    request_id: str,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    req = db.get(NarratorRequest, request_id)
    if req is None:
        return bad_request(messages.REQUEST_NOT_FOUND, status_code=404)

    voice_url = None
    try:
        voice_url = storage.signed_url(config.NARRATOR_REQUESTS_BUCKET, req.voice_sample_path)
    except StorageError:
        # still reviewable without the sample
        logger.exception("Could not sign voice sample for request %s", request_id)

    return {
        "request": _summary(req),
        "user": req.user.to_dict() if req.user else None,
        "voice_sample_url": voice_url,
    }


def _review(req: NarratorRequest, me: Profile, status: str, feedback: Optional[str]) -> None:
    now = dt.datetime.now(dt.timezone.utc)
    req.status = status
    req.reviewed_by = me.id
    req.reviewed_at = now
    req.admin_feedback = feedback
    req.updated_at = now


@router.post("/{request_id}/approve")
def approve_request(
    request_id: str,
    payload: Optional[dict] = Body(None),
    db: Session = Depends(get_db),
    me: Profile = Depends(require_admin),
):
    req = db.get(NarratorRequest, request_id)
    if req is None:
        return bad_request(messages.REQUEST_NOT_FOUND, status_code=404)
    if req.status != "pending":
        return bad_request(messages.REQUEST_NOT_PENDING, status_code=409)

    try:
        _review(req, me, "approved", clean_str((payload or {}).get("feedback")))
        applicant = db.get(Profile, req.user_id)
        if applicant is not None:
            applicant.role = "narrator"
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Approving narrator request %s failed", request_id)
        return error_response(e)
    logger.info("Narrator request %s approved by %s", request_id, me.id)
    return {"message": messages.REQUEST_APPROVED, "request": _summary(req)}


@router.post("/{request_id}/reject")
def reject_request(
    request_id: str,
    payload: Optional[dict] = Body(None),
    db: Session = Depends(get_db),
    me: Profile = Depends(require_admin),
):
    req = db.get(NarratorRequest, request_id)
    if req is None:
        return bad_request(messages.REQUEST_NOT_FOUND, status_code=404)
    if req.status != "pending":
        return bad_request(messages.REQUEST_NOT_PENDING, status_code=409)

    try:
        _review(req, me, "rejected", clean_str((payload or {}).get("feedback")))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        return error_response(e)
    return {"message": messages.REQUEST_REJECTED, "request": _summary(req)}
