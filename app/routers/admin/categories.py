# app/routers/admin/categories.py
import logging

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.models.category import Category, MusicCategory
from app.routers.admin.helpers import clean_str, to_bool, to_int_or_none
from app.services.chapter_order import move_item
from app.utils import messages
from app.utils.errors import bad_request, error_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/categories/{kind}", tags=["admin:categories"])

# kind -> (model, default icon, default sort_order)
KINDS = {
    "book": (Category, None, 999),
    "music": (MusicCategory, "🎵", 999),
}

EDITABLE = ("name_fa", "name_en", "description_fa", "icon")


def _model_for(kind: str):
    entry = KINDS.get(kind)
    return entry[0] if entry else None


def _ordered(db: Session, model) -> list:
    return db.query(model).order_by(model.sort_order.asc(), model.id.asc()).all()


def _save_failed(db: Session, e: Exception) -> JSONResponse:
    db.rollback()
    logger.exception("Category write failed")
    return error_response(e, duplicate_message=messages.CATEGORY_DUPLICATE)


@router.get("")
def list_categories(kind: str, db: Session = Depends(get_db)):
    model = _model_for(kind)
    if model is None:
        return bad_request(messages.NOT_FOUND, status_code=404)
    return {"categories": [c.to_dict() for c in _ordered(db, model)]}


@router.post("")
def create_category(kind: str, payload: dict = Body(...), db: Session = Depends(get_db)):
    if kind not in KINDS:
        return bad_request(messages.NOT_FOUND, status_code=404)
    model, default_icon, default_sort = KINDS[kind]

    name_fa = clean_str(payload.get("name_fa"))
    if not name_fa:
        return bad_request(messages.CATEGORY_NAME_REQUIRED)

    cat = model(
        name_fa=name_fa,
        name_en=clean_str(payload.get("name_en")),
        description_fa=clean_str(payload.get("description_fa")),
        icon=clean_str(payload.get("icon")) or default_icon,
        is_active=to_bool(payload.get("is_active", True)),
        sort_order=default_sort,
    )
    try:
        db.add(cat)
        db.commit()
    except SQLAlchemyError as e:
        return _save_failed(db, e)
    logger.info("Created %s category %s", kind, cat.id)
    return JSONResponse({"message": messages.SAVED, "category": cat.to_dict()}, status_code=201)


@router.patch("/{category_id}")
def update_category(kind: str, category_id: int, payload: dict = Body(...), db: Session = Depends(get_db)):
    model = _model_for(kind)
    cat = db.get(model, category_id) if model else None
    if cat is None:
        return bad_request(messages.NOT_FOUND, status_code=404)

    if "name_fa" in payload:
        name_fa = clean_str(payload["name_fa"])
        if not name_fa:
            return bad_request(messages.CATEGORY_NAME_REQUIRED)
        cat.name_fa = name_fa
    for key in EDITABLE[1:]:
        if key in payload:
            setattr(cat, key, clean_str(payload[key]))
    if "is_active" in payload:
        cat.is_active = to_bool(payload["is_active"])
    if "sort_order" in payload:
        sort_order = to_int_or_none(payload["sort_order"])
        if sort_order is None:
            return bad_request(messages.INVALID_INPUT)
        cat.sort_order = sort_order

    try:
        db.commit()
    except SQLAlchemyError as e:
        return _save_failed(db, e)
    return {"message": messages.SAVED, "category": cat.to_dict()}


@router.delete("/{category_id}")
def delete_category(kind: str, category_id: int, db: Session = Depends(get_db)):
    model = _model_for(kind)
    cat = db.get(model, category_id) if model else None
    if cat is None:
        return bad_request(messages.NOT_FOUND, status_code=404)
    try:
        db.delete(cat)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        return error_response(e, messages.DELETE_FAILED)
    return {"message": messages.DELETED}


@router.post("/reorder")
def reorder_categories(kind: str, payload: dict = Body(...), db: Session = Depends(get_db)):
    """Body: {"old_index": int, "new_index": int}; rewrites sort_order = 0..N-1."""
    model = _model_for(kind)
    if model is None:
        return bad_request(messages.NOT_FOUND, status_code=404)
    old_index = to_int_or_none(payload.get("old_index"))
    new_index = to_int_or_none(payload.get("new_index"))
    if old_index is None or new_index is None:
        return bad_request(messages.INVALID_INPUT)

    items = _ordered(db, model)
    try:
        move_item(items, old_index, new_index)
    except IndexError:
        return bad_request(messages.INVALID_INPUT)

    try:
        for i, cat in enumerate(items):
            cat.sort_order = i
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        return error_response(e, messages.SAVE_ORDER_FAILED)
    return {"message": messages.SAVED, "categories": [c.to_dict() for c in items]}
