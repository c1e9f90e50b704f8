# app/routers/admin/reviews.py
from typing import Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.models.review import Review
from app.routers.admin.helpers import to_bool
from app.utils import messages
from app.utils.errors import bad_request, error_response

router = APIRouter(prefix="/reviews", tags=["admin:reviews"])

PAGE_LIMIT = 200


@router.get("")
def list_reviews(approved: Optional[bool] = None, limit: int = PAGE_LIMIT, db: Session = Depends(get_db)):
    query = db.query(Review)
    if approved is not None:
        query = query.filter(Review.is_approved.is_(approved))
    reviews = (
        query.order_by(Review.created_at.desc(), Review.id.desc())
        .limit(max(1, min(limit, PAGE_LIMIT)))
        .all()
    )
    return {"reviews": [r.to_dict() for r in reviews]}


@router.put("/{review_id}/approval")
def set_approval(review_id: int, payload: dict = Body(...), db: Session = Depends(get_db)):
    review = db.get(Review, review_id)
    if review is None:
        return bad_request(messages.REVIEW_NOT_FOUND, status_code=404)
    review.is_approved = to_bool(payload.get("is_approved", True))
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        return error_response(e)
    return {"message": messages.SAVED, "review": review.to_dict()}


@router.delete("/{review_id}")
def delete_review(review_id: int, db: Session = Depends(get_db)):
    review = db.get(Review, review_id)
    if review is None:
        return bad_request(messages.REVIEW_NOT_FOUND, status_code=404)
    try:
        db.delete(review)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        return error_response(e, messages.DELETE_FAILED)
    return {"message": messages.REVIEW_DELETED}
