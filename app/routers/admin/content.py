# app/routers/admin/content.py
import logging
import time
import uuid
from typing import Optional

from fastapi import APIRouter, Body, Depends, File, UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app import config
from app.db.session import get_db
from app.models.audiobook import (
    CONTENT_TYPES,
    STATUSES,
    Audiobook,
    AudiobookMusicCategory,
    BookMetadata,
    MusicMetadata,
)
from app.models.chapter import Chapter
from app.models.profile import Profile
from app.routers.admin.creators import creator_links
from app.routers.admin.helpers import clean_str, file_extension, to_bool, to_id_list, to_int_or_none
from app.services.content_workflow import PENDING_STATUSES, InvalidTransition, apply_transition, can_apply
from app.services.storage import ObjectStorage, StorageError, get_storage
from app.services.uploads import cleanup_orphan
from app.utils import messages
from app.utils.authz import require_admin
from app.utils.errors import bad_request, error_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/content", tags=["admin:content"])

PAGE_LIMIT = 200
COVER_EXTENSIONS = ("jpg", "jpeg", "png", "webp")
EBOOK_EXTENSIONS = ("epub", "pdf")

TEXT_FIELDS = ("title_fa", "title_en", "subtitle_fa", "description_fa")
FLAG_FIELDS = ("is_free", "is_featured", "is_parasto_brand")

TRANSITION_MESSAGES = {
    "submit": messages.CONTENT_SUBMITTED,
    "start_review": messages.CONTENT_UNDER_REVIEW,
    "approve": messages.CONTENT_APPROVED,
    "reject": messages.CONTENT_REJECTED,
}


# ---------------- Helpers ----------------
def _object_key(book: Audiobook, kind: str, ext: str) -> str:
    owner = book.narrator_id or "admin"
    return f"{owner}/{book.id}/{kind}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}.{ext}"


def _detail(db: Session, book: Audiobook) -> dict:
    chapters = (
        db.query(Chapter)
        .filter(Chapter.audiobook_id == book.id)
        .order_by(Chapter.chapter_index.is_(None), Chapter.chapter_index.asc(), Chapter.id.asc())
        .all()
    )
    music_category_ids = [
        row.music_category_id
        for row in db.query(AudiobookMusicCategory).filter(AudiobookMusicCategory.audiobook_id == book.id)
    ]
    narrator: Optional[Profile] = book.narrator
    return {
        "content": book.to_dict(),
        "narrator": narrator.to_dict() if narrator else None,
        "category": book.category.to_dict() if book.category else None,
        "music_category_ids": music_category_ids,
        "book_metadata": book.book_metadata.to_dict() if book.book_metadata else None,
        "music_metadata": book.music_metadata.to_dict() if book.music_metadata else None,
        "chapters": [c.to_dict() for c in chapters],
        "creators": creator_links(db, book.id),
    }


def _upsert_metadata(db: Session, book: Audiobook, data: dict) -> None:
    if book.content_type == "music":
        model, attr = MusicMetadata, "music_metadata"
    else:
        model, attr = BookMetadata, "book_metadata"
    row = getattr(book, attr)
    if row is None:
        row = model(audiobook_id=book.id)
        db.add(row)
        setattr(book, attr, row)
    for key in model.EDITABLE:
        if key not in data:
            continue
        value = data[key]
        if key == "publication_year":
            value = to_int_or_none(value)
        else:
            value = clean_str(value)
        setattr(row, key, value)


def _replace_music_categories(db: Session, book: Audiobook, ids: list) -> None:
    db.query(AudiobookMusicCategory).filter(AudiobookMusicCategory.audiobook_id == book.id).delete(
        synchronize_session=False
    )
    for category_id in ids:
        db.add(AudiobookMusicCategory(audiobook_id=book.id, music_category_id=category_id))


def _remove_quietly(storage: ObjectStorage, bucket: str, keys: list) -> None:
    keys = [k for k in keys if k]
    if not keys:
        return
    try:
        storage.remove(bucket, keys)
    except StorageError:
        logger.exception("Failed to remove %d object(s) from %s", len(keys), bucket)
# -----------------------------------------


# --------------- List / Detail ------------
@router.get("")
def list_content(
    filter: Optional[str] = None,
    status: Optional[str] = None,
    content_type: Optional[str] = None,
    limit: int = PAGE_LIMIT,
    db: Session = Depends(get_db),
):
    query = db.query(Audiobook)
    if filter == "pending":
        query = query.filter(Audiobook.status.in_(PENDING_STATUSES))
    elif filter == "featured":
        query = query.filter(Audiobook.is_featured.is_(True))
    if status:
        if status not in STATUSES:
            return bad_request(messages.INVALID_STATUS)
        query = query.filter(Audiobook.status == status)
    if content_type:
        if content_type not in CONTENT_TYPES:
            return bad_request(messages.INVALID_INPUT)
        query = query.filter(Audiobook.content_type == content_type)

    items = (
        query.order_by(Audiobook.created_at.desc(), Audiobook.id.desc())
        .limit(max(1, min(limit, PAGE_LIMIT)))
        .all()
    )
    return {"content": [b.to_dict() for b in items]}


# --------------- Bulk ---------------------
@router.post("/bulk/approve")
def bulk_approve(payload: dict = Body(...), db: Session = Depends(get_db), me: Profile = Depends(require_admin)):
    return _bulk_transition(db, me, "approve", payload)


@router.post("/bulk/reject")
def bulk_reject(payload: dict = Body(...), db: Session = Depends(get_db), me: Profile = Depends(require_admin)):
    if not clean_str(payload.get("reason")):
        return bad_request(messages.REJECTION_REASON_REQUIRED)
    return _bulk_transition(db, me, "reject", payload)


def _bulk_transition(db: Session, me: Profile, action: str, payload: dict):
    ids = to_id_list(payload.get("ids"))
    if not ids:
        return bad_request(messages.NOTHING_SELECTED)

    books = db.query(Audiobook).filter(Audiobook.id.in_(ids)).all()
    found = {b.id for b in books}
    skipped = [i for i in ids if i not in found]
    done = []
    for book in books:
        if not can_apply(action, book.status):
            skipped.append(book.id)
            continue
        apply_transition(book, action, reviewer_id=me.id, reason=payload.get("reason"))
        done.append(book.id)

    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        return error_response(e)

    logger.info("Bulk %s by %s: %d done, %d skipped", action, me.id, len(done), len(skipped))
    message = messages.items_approved(len(done)) if action == "approve" else messages.items_rejected(len(done))
    return {"message": message, "updated": done, "skipped": skipped}


@router.post("/bulk/feature")
def bulk_feature(payload: dict = Body(...), db: Session = Depends(get_db)):
    """Body: {"ids": [...], "featured": bool}."""
    ids = to_id_list(payload.get("ids"))
    if not ids:
        return bad_request(messages.NOTHING_SELECTED)
    featured = to_bool(payload.get("featured", True))
    try:
        count = (
            db.query(Audiobook)
            .filter(Audiobook.id.in_(ids))
            .update({"is_featured": featured}, synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        return error_response(e)
    return {"message": messages.items_featured(count, featured), "updated": count}


@router.post("/bulk/delete")
def bulk_delete(
    payload: dict = Body(...),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    ids = to_id_list(payload.get("ids"))
    if not ids:
        return bad_request(messages.NOTHING_SELECTED)

    books = db.query(Audiobook).filter(Audiobook.id.in_(ids)).all()
    covers, ebooks, audio = [], [], []
    try:
        for book in books:
            covers.append(book.cover_storage_path)
            ebooks.append(book.epub_storage_path)
            audio.extend(ch.audio_storage_path for ch in book.chapters)
            db.delete(book)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Bulk delete failed")
        return error_response(e, messages.DELETE_FAILED)

    # Rows are gone; storage cleanup failures are only logged.
    _remove_quietly(storage, config.COVERS_BUCKET, covers)
    _remove_quietly(storage, config.EBOOK_BUCKET, ebooks)
    _remove_quietly(storage, config.AUDIO_BUCKET, audio)
    return {"message": messages.items_deleted(len(books)), "deleted": [b.id for b in books]}


@router.get("/{audiobook_id}")
def get_content(audiobook_id: int, db: Session = Depends(get_db)):
    book = db.get(Audiobook, audiobook_id)
    if book is None:
        return bad_request(messages.BOOK_NOT_FOUND, status_code=404)
    return _detail(db, book)


# --------------- Update -------------------
@router.patch("/{audiobook_id}")
def update_content(audiobook_id: int, payload: dict = Body(...), db: Session = Depends(get_db)):
    book = db.get(Audiobook, audiobook_id)
    if book is None:
        return bad_request(messages.BOOK_NOT_FOUND, status_code=404)

    if "title_fa" in payload and not clean_str(payload["title_fa"]):
        return bad_request(messages.TITLE_FA_REQUIRED)
    if "content_type" in payload and payload["content_type"] not in CONTENT_TYPES:
        return bad_request(messages.INVALID_INPUT)
    price = to_int_or_none(payload.get("price_toman"))
    if "price_toman" in payload and (price is None or price < 0):
        return bad_request(messages.INVALID_INPUT)

    for key in TEXT_FIELDS:
        if key in payload:
            setattr(book, key, clean_str(payload[key]))
    for key in FLAG_FIELDS:
        if key in payload:
            setattr(book, key, to_bool(payload[key]))
    if "price_toman" in payload:
        book.price_toman = price
    if "category_id" in payload:
        book.category_id = to_int_or_none(payload["category_id"])
    if "content_type" in payload:
        book.content_type = payload["content_type"]

    try:
        if isinstance(payload.get("metadata"), dict):
            _upsert_metadata(db, book, payload["metadata"])
        if "music_category_ids" in payload:
            _replace_music_categories(db, book, to_id_list(payload["music_category_ids"]))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Content update failed for %s", audiobook_id)
        return error_response(e, messages.EDIT_FAILED)
    return {"message": messages.SAVED, **_detail(db, book)}


# --------------- Workflow -----------------
@router.post("/{audiobook_id}/status")
def change_status(
    audiobook_id: int,
    payload: dict = Body(...),
    db: Session = Depends(get_db),
    me: Profile = Depends(require_admin),
):
    """Body: {"action": submit|start_review|approve|reject, "reason"?}."""
    action = payload.get("action")
    if action not in TRANSITION_MESSAGES:
        return bad_request(messages.INVALID_INPUT)
    reason = clean_str(payload.get("reason"))
    if action == "reject" and not reason:
        return bad_request(messages.REJECTION_REASON_REQUIRED)

    book = db.get(Audiobook, audiobook_id)
    if book is None:
        return bad_request(messages.BOOK_NOT_FOUND, status_code=404)

    try:
        apply_transition(book, action, reviewer_id=me.id, reason=reason)
    except InvalidTransition:
        return bad_request(messages.INVALID_TRANSITION, status_code=409, status=book.status)

    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        return error_response(e)
    logger.info("Content %s: %s by %s -> %s", audiobook_id, action, me.id, book.status)
    return {"message": TRANSITION_MESSAGES[action], "content": book.to_dict()}


# --------------- Files --------------------
def _replace_file(
    db: Session,
    storage: ObjectStorage,
    book: Audiobook,
    upload: UploadFile,
    *,
    bucket: str,
    kind: str,
    allowed: tuple,
    path_attr: str,
    url_attr: Optional[str],
    success_message: str,
):
    ext = file_extension(upload.filename)
    if ext not in allowed:
        return bad_request(messages.INVALID_FILE_TYPE)

    key = _object_key(book, kind, ext)
    try:
        storage.upload_binary(bucket, key, upload.file.read(), upload.content_type)
    except StorageError as e:
        return error_response(e, messages.UPLOAD_FAILED)

    old_key = getattr(book, path_attr)
    setattr(book, path_attr, key)
    if url_attr:
        setattr(book, url_attr, storage.public_url(bucket, key))
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        cleanup_orphan(storage, bucket, key)
        return error_response(e, messages.UPLOAD_FAILED)

    if old_key and old_key != key:
        _remove_quietly(storage, bucket, [old_key])
    return {"message": success_message, "content": book.to_dict()}


@router.post("/{audiobook_id}/cover")
def upload_cover(
    audiobook_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    book = db.get(Audiobook, audiobook_id)
    if book is None:
        return bad_request(messages.BOOK_NOT_FOUND, status_code=404)
    return _replace_file(
        db,
        storage,
        book,
        file,
        bucket=config.COVERS_BUCKET,
        kind="cover",
        allowed=COVER_EXTENSIONS,
        path_attr="cover_storage_path",
        url_attr="cover_url",
        success_message=messages.COVER_UPLOADED,
    )


@router.post("/{audiobook_id}/ebook")
def upload_ebook(
    audiobook_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    book = db.get(Audiobook, audiobook_id)
    if book is None:
        return bad_request(messages.BOOK_NOT_FOUND, status_code=404)
    return _replace_file(
        db,
        storage,
        book,
        file,
        bucket=config.EBOOK_BUCKET,
        kind="ebook",
        allowed=EBOOK_EXTENSIONS,
        path_attr="epub_storage_path",
        url_attr=None,
        success_message=messages.EBOOK_UPLOADED,
    )
