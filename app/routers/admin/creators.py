# app/routers/admin/creators.py
import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Body, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app import config
from app.db.session import get_db
from app.models.audiobook import Audiobook
from app.models.creator import CREATOR_TYPE_LABELS, AudiobookCreator, Creator
from app.routers.admin.helpers import clean_str, file_extension, to_int_or_none
from app.services.storage import ObjectStorage, StorageError, get_storage
from app.services.uploads import cleanup_orphan
from app.utils import messages
from app.utils.errors import bad_request, error_response

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin:creators"])

IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "webp")
SEARCH_LIMIT = 20
BROWSE_LIMIT = 50


def _upload_avatar(storage: ObjectStorage, avatar: UploadFile):
    """Upload to the profile-images bucket; returns (key, public_url)."""
    ext = file_extension(avatar.filename)
    key = f"creators/{uuid.uuid4().hex}.{ext}"
    storage.upload_binary(config.PROFILE_IMAGES_BUCKET, key, avatar.file.read(), avatar.content_type)
    return key, storage.public_url(config.PROFILE_IMAGES_BUCKET, key)


def _has_avatar(avatar: Optional[UploadFile]) -> bool:
    return avatar is not None and bool(avatar.filename)


# --------------- Creators -----------------
@router.get("/creators")
def search_creators(q: Optional[str] = None, db: Session = Depends(get_db)):
    query = db.query(Creator)
    term = (q or "").strip()
    if term:
        like = f"%{term}%"
        query = query.filter(or_(Creator.display_name.ilike(like), Creator.display_name_latin.ilike(like)))
        limit = SEARCH_LIMIT
    else:
        limit = BROWSE_LIMIT
    creators = query.order_by(Creator.display_name.asc()).limit(limit).all()
    return {"creators": [c.to_dict() for c in creators]}


@router.get("/creators/types")
def creator_types():
    return {"types": [{"value": k, "label": v} for k, v in CREATOR_TYPE_LABELS.items()]}


@router.get("/creators/{creator_id}")
def get_creator(creator_id: str, db: Session = Depends(get_db)):
    creator = db.get(Creator, creator_id)
    if creator is None:
        return bad_request(messages.NOT_FOUND, status_code=404)
    works = db.query(AudiobookCreator).filter(AudiobookCreator.creator_id == creator_id).count()
    return {"creator": creator.to_dict(), "works_count": works}


def _save_creator(
    db: Session,
    storage: ObjectStorage,
    creator: Creator,
    *,
    display_name: str,
    display_name_latin: Optional[str],
    creator_type: str,
    bio: Optional[str],
    collection_label: Optional[str],
    avatar: Optional[UploadFile],
    is_new: bool,
):
    name = clean_str(display_name)
    if not name:
        return bad_request(messages.CREATOR_NAME_REQUIRED)
    if creator_type not in CREATOR_TYPE_LABELS:
        return bad_request(messages.INVALID_CREATOR_TYPE)
    if _has_avatar(avatar) and file_extension(avatar.filename) not in IMAGE_EXTENSIONS:
        return bad_request(messages.INVALID_FILE_TYPE)

    uploaded_key = None
    try:
        if _has_avatar(avatar):
            uploaded_key, url = _upload_avatar(storage, avatar)
            creator.avatar_url = url
            logger.debug("Creator avatar uploaded: %s", uploaded_key)
    except StorageError as e:
        db.rollback()
        return error_response(e, messages.CREATOR_SAVE_FAILED)

    creator.display_name = name
    creator.display_name_latin = clean_str(display_name_latin)
    creator.creator_type = creator_type
    creator.bio = clean_str(bio)
    creator.collection_label = clean_str(collection_label)
    try:
        if is_new:
            db.add(creator)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        if uploaded_key:
            cleanup_orphan(storage, config.PROFILE_IMAGES_BUCKET, uploaded_key)
        return error_response(e, messages.CREATOR_SAVE_FAILED)

    return JSONResponse(
        {"message": messages.CREATOR_SAVED, "creator": creator.to_dict()},
        status_code=201 if is_new else 200,
    )


@router.post("/creators")
def create_creator(
    display_name: str = Form(...),
    display_name_latin: Optional[str] = Form(None),
    creator_type: str = Form("other"),
    bio: Optional[str] = Form(None),
    collection_label: Optional[str] = Form(None),
    avatar: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    return _save_creator(
        db,
        storage,
        Creator(),
        display_name=display_name,
        display_name_latin=display_name_latin,
        creator_type=creator_type,
        bio=bio,
        collection_label=collection_label,
        avatar=avatar,
        is_new=True,
    )


@router.patch("/creators/{creator_id}")
def update_creator(
    creator_id: str,
    display_name: str = Form(...),
    display_name_latin: Optional[str] = Form(None),
    creator_type: str = Form("other"),
    bio: Optional[str] = Form(None),
    collection_label: Optional[str] = Form(None),
    avatar: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    creator = db.get(Creator, creator_id)
    if creator is None:
        return bad_request(messages.NOT_FOUND, status_code=404)
    return _save_creator(
        db,
        storage,
        creator,
        display_name=display_name,
        display_name_latin=display_name_latin,
        creator_type=creator_type,
        bio=bio,
        collection_label=collection_label,
        avatar=avatar,
        is_new=False,
    )


@router.delete("/creators/{creator_id}")
def delete_creator(creator_id: str, db: Session = Depends(get_db)):
    creator = db.get(Creator, creator_id)
    if creator is None:
        return bad_request(messages.NOT_FOUND, status_code=404)

    linked = db.query(AudiobookCreator).filter(AudiobookCreator.creator_id == creator_id).count()
    if linked:
        return bad_request(messages.CREATOR_HAS_WORKS, status_code=409, works_count=linked)

    name = creator.display_name
    try:
        db.delete(creator)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        return error_response(e, messages.CREATOR_DELETE_FAILED)
    return {"message": messages.creator_deleted(name)}


# --------------- Links --------------------
def creator_links(db: Session, audiobook_id: int) -> list:
    rows = (
        db.query(AudiobookCreator)
        .filter(AudiobookCreator.audiobook_id == audiobook_id)
        .order_by(AudiobookCreator.sort_order.asc(), AudiobookCreator.created_at.asc())
        .all()
    )
    return [
        {
            "id": link.id,
            "role": link.role,
            "role_label": CREATOR_TYPE_LABELS.get(link.role, link.role),
            "sort_order": link.sort_order,
            "creator": link.creator.to_dict() if link.creator else None,
        }
        for link in rows
    ]


@router.get("/audiobooks/{audiobook_id}/creators")
def list_audiobook_creators(audiobook_id: int, db: Session = Depends(get_db)):
    if db.get(Audiobook, audiobook_id) is None:
        return bad_request(messages.BOOK_NOT_FOUND, status_code=404)
    return {"creators": creator_links(db, audiobook_id)}


@router.post("/audiobooks/{audiobook_id}/creators")
def link_creator(audiobook_id: int, payload: dict = Body(...), db: Session = Depends(get_db)):
    """Body: {"creator_id", "role", "sort_order"?}. Upserts on (audiobook, creator, role)."""
    if db.get(Audiobook, audiobook_id) is None:
        return bad_request(messages.BOOK_NOT_FOUND, status_code=404)
    creator_id = clean_str(payload.get("creator_id"))
    if not creator_id or db.get(Creator, creator_id) is None:
        return bad_request(messages.NOT_FOUND, status_code=404)
    role = clean_str(payload.get("role")) or "other"
    if role not in CREATOR_TYPE_LABELS:
        return bad_request(messages.INVALID_CREATOR_TYPE)
    sort_order = to_int_or_none(payload.get("sort_order")) or 0

    link = (
        db.query(AudiobookCreator)
        .filter(
            AudiobookCreator.audiobook_id == audiobook_id,
            AudiobookCreator.creator_id == creator_id,
            AudiobookCreator.role == role,
        )
        .first()
    )
    try:
        if link is None:
            link = AudiobookCreator(audiobook_id=audiobook_id, creator_id=creator_id, role=role)
            db.add(link)
        link.sort_order = sort_order
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        return error_response(e)
    return {"message": messages.SAVED, "creators": creator_links(db, audiobook_id)}


@router.delete("/audiobooks/{audiobook_id}/creators/{creator_id}")
def unlink_creator(
    audiobook_id: int,
    creator_id: str,
    role: Optional[str] = None,
    db: Session = Depends(get_db),
):
    query = db.query(AudiobookCreator).filter(
        AudiobookCreator.audiobook_id == audiobook_id,
        AudiobookCreator.creator_id == creator_id,
    )
    if role:
        query = query.filter(AudiobookCreator.role == role)
    try:
        removed = query.delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        return error_response(e, messages.DELETE_FAILED)
    if not removed:
        return bad_request(messages.NOT_FOUND, status_code=404)
    return {"message": messages.DELETED, "creators": creator_links(db, audiobook_id)}
