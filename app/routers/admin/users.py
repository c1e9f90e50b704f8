# app/routers/admin/users.py
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.models.profile import ROLES, Profile
from app.models.purchase import Purchase
from app.models.review import Review
from app.routers.admin.helpers import clean_str, to_bool
from app.utils import messages
from app.utils.authz import require_admin
from app.utils.errors import bad_request, error_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["admin:users"])

PAGE_LIMIT = 200


@router.get("")
def list_users(
    role: Optional[str] = None,
    q: Optional[str] = None,
    limit: int = PAGE_LIMIT,
    db: Session = Depends(get_db),
):
    query = db.query(Profile)
    if role:
        if role not in ROLES:
            return bad_request(messages.INVALID_ROLE)
        query = query.filter(Profile.role == role)
    term = (q or "").strip()
    if term:
        like = f"%{term}%"
        query = query.filter(
            or_(
                Profile.email.ilike(like),
                Profile.display_name.ilike(like),
                Profile.full_name.ilike(like),
            )
        )
    users = query.order_by(Profile.created_at.desc()).limit(max(1, min(limit, PAGE_LIMIT))).all()
    return {"users": [u.to_dict() for u in users]}


@router.get("/{user_id}")
def get_user(user_id: str, db: Session = Depends(get_db)):
    user = db.get(Profile, user_id)
    if user is None:
        return bad_request(messages.USER_NOT_FOUND, status_code=404)
    purchases = db.query(Purchase).filter(Purchase.user_id == user_id).count()
    reviews = db.query(Review).filter(Review.user_id == user_id).count()
    return {"user": user.to_dict(), "purchase_count": purchases, "review_count": reviews}


@router.put("/{user_id}/role")
def change_role(
    user_id: str,
    payload: dict = Body(...),
    db: Session = Depends(get_db),
    me: Profile = Depends(require_admin),
):
    new_role = clean_str(payload.get("role"))
    if new_role not in ROLES:
        return bad_request(messages.INVALID_ROLE)
    if user_id == me.id:
        return bad_request(messages.ROLE_CHANGE_DENIED, status_code=403)

    user = db.get(Profile, user_id)
    if user is None:
        return bad_request(messages.USER_NOT_FOUND, status_code=404)

    try:
        db.query(Profile).filter(Profile.id == user_id).update({"role": new_role})
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Role change failed for %s", user_id)
        return error_response(e, messages.ROLE_CHANGE_FAILED)

    # Read back to confirm the write actually landed.
    db.refresh(user)
    if user.role != new_role:
        return bad_request(messages.ROLE_CHANGE_DENIED, status_code=403)
    logger.info("Admin %s changed role of %s to %s", me.id, user_id, new_role)
    return {"message": messages.SAVED, "user": user.to_dict()}


@router.put("/{user_id}/disabled")
def set_disabled(
    user_id: str,
    payload: dict = Body(...),
    db: Session = Depends(get_db),
    me: Profile = Depends(require_admin),
):
    """Body: {"is_disabled": bool}; omitted means toggle."""
    if user_id == me.id:
        return bad_request(messages.SELF_DISABLE_DENIED, status_code=403)
    user = db.get(Profile, user_id)
    if user is None:
        return bad_request(messages.USER_NOT_FOUND, status_code=404)
    if "is_disabled" in payload:
        user.is_disabled = to_bool(payload["is_disabled"])
    else:
        user.is_disabled = not user.is_disabled
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        return error_response(e)
    return {"message": messages.SAVED, "user": user.to_dict()}


@router.put("/{user_id}/note")
def set_admin_note(user_id: str, payload: dict = Body(...), db: Session = Depends(get_db)):
    user = db.get(Profile, user_id)
    if user is None:
        return bad_request(messages.USER_NOT_FOUND, status_code=404)
    user.admin_note = clean_str(payload.get("admin_note"))
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        return error_response(e)
    return {"message": messages.NOTE_SAVED, "user": user.to_dict()}
