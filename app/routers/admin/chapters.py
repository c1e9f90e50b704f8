# app/routers/admin/chapters.py
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app import config
from app.db.session import get_db
from app.models.audiobook import Audiobook
from app.models.chapter import Chapter
from app.routers.admin.helpers import clean_str, to_bool, to_id_list, upload_mime, upload_size
from app.services.chapter_order import (
    move_item,
    next_chapter_index,
    resolve_manual_order,
    title_from_filename,
)
from app.services.storage import ObjectStorage, StorageError, get_storage
from app.services.uploads import PendingUpload, bulk_upload_chapters, upload_chapter
from app.utils import audio_validator, messages
from app.utils.errors import bad_request, error_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/audiobooks/{audiobook_id}/chapters", tags=["admin:chapters"])


# ---------------- Helpers ----------------
def _ordered_chapters(db: Session, audiobook_id: int) -> list:
    # chapter_index ASC with NULLs last on every backend, id as tie-breaker
    return (
        db.query(Chapter)
        .filter(Chapter.audiobook_id == audiobook_id)
        .order_by(Chapter.chapter_index.is_(None), Chapter.chapter_index.asc(), Chapter.id.asc())
        .all()
    )


def normalize_chapter_indices(db: Session, chapters: list) -> bool:
    """Give NULL-index chapters fresh indices after the current max. True if anything changed."""
    missing = [c for c in chapters if c.chapter_index is None]
    if not missing:
        return False
    logger.debug("Found %d NULL chapter_index values, normalizing", len(missing))
    next_index = next_chapter_index(c.chapter_index for c in chapters)
    for chapter in missing:
        chapter.chapter_index = next_index
        next_index += 1
    db.commit()
    return True


def persist_order(db: Session, ordered: list) -> None:
    """
    Write chapter_index = 1..N following ``ordered``.

    Two phases inside one transaction: every row first moves to -id, then to
    its final value, so no intermediate state collides on the
    (audiobook_id, chapter_index) unique constraint.
    """
    for chapter in ordered:
        db.query(Chapter).filter(Chapter.id == chapter.id).update({"chapter_index": -chapter.id})
    for position, chapter in enumerate(ordered, start=1):
        db.query(Chapter).filter(Chapter.id == chapter.id).update({"chapter_index": position})
    db.commit()


def refresh_chapter_count(db: Session, book: Audiobook) -> int:
    count = db.query(func.count(Chapter.id)).filter(Chapter.audiobook_id == book.id).scalar() or 0
    book.chapter_count = count
    db.commit()
    return count


def _load_book(db: Session, audiobook_id: int):
    """(book, error_response); exactly one of them is None."""
    if audiobook_id <= 0:
        return None, bad_request(messages.INVALID_BOOK_ID)
    book = db.get(Audiobook, audiobook_id)
    if book is None:
        return None, bad_request(messages.BOOK_NOT_FOUND, status_code=404)
    return book, None


def _serialize(chapters: list) -> list:
    return [c.to_dict() for c in chapters]
# -----------------------------------------


# --------------- List ---------------------
@router.get("")
def list_chapters(audiobook_id: int, db: Session = Depends(get_db)):
    book, err = _load_book(db, audiobook_id)
    if err:
        return err
    try:
        chapters = _ordered_chapters(db, audiobook_id)
        if normalize_chapter_indices(db, chapters):
            chapters = _ordered_chapters(db, audiobook_id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Error loading chapters for audiobook %s", audiobook_id)
        return error_response(e, messages.LOAD_CHAPTERS_FAILED)
    return {"audiobook": {"id": book.id, "title_fa": book.title_fa}, "chapters": _serialize(chapters)}


# --------------- Ordering -----------------
@router.put("/order")
def save_manual_order(audiobook_id: int, payload: dict = Body(...), db: Session = Depends(get_db)):
    """
    Body: {"orders": {"<chapter_id>": "<typed order>", ...}}
    Unparsable/missing values go last, keeping their current relative order.
    """
    book, err = _load_book(db, audiobook_id)
    if err:
        return err

    raw = (payload or {}).get("orders") or {}
    if not isinstance(raw, dict):
        return bad_request(messages.INVALID_INPUT)
    orders = {str(k): (None if v is None else str(v)) for k, v in raw.items()}

    try:
        chapters = _ordered_chapters(db, audiobook_id)
        if not chapters:
            return {"message": messages.ORDER_SAVED, "chapters": []}

        entries = resolve_manual_order(chapters, orders, key=lambda ch: str(ch.id))
        for entry in entries:
            logger.debug("chapter %s -> %s (key %s)", entry.chapter.id, entry.new_order, entry.sort_key)
        persist_order(db, [e.chapter for e in entries])
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Error saving manual order for audiobook %s", audiobook_id)
        return error_response(e, messages.SAVE_ORDER_FAILED)

    logger.info("Manual chapter order saved for audiobook %s", audiobook_id)
    return {"message": messages.ORDER_SAVED, "chapters": _serialize(_ordered_chapters(db, audiobook_id))}


@router.post("/move")
def move_chapter(audiobook_id: int, payload: dict = Body(...), db: Session = Depends(get_db)):
    """Body: {"old_index": int, "new_index": int} (list positions, drag-and-drop style)."""
    book, err = _load_book(db, audiobook_id)
    if err:
        return err
    try:
        old_index = int(payload["old_index"])
        new_index = int(payload["new_index"])
    except (KeyError, TypeError, ValueError):
        return bad_request(messages.INVALID_INPUT)

    try:
        chapters = _ordered_chapters(db, audiobook_id)
        try:
            move_item(chapters, old_index, new_index)
        except IndexError:
            return bad_request(messages.INVALID_INPUT)
        persist_order(db, chapters)
    except SQLAlchemyError as e:
        db.rollback()
        return error_response(e, messages.SAVE_ORDER_FAILED)
    return {"message": messages.ORDER_SAVED, "chapters": _serialize(_ordered_chapters(db, audiobook_id))}


# --------------- Edit / Delete ------------
@router.patch("/{chapter_id}")
def edit_chapter(audiobook_id: int, chapter_id: int, payload: dict = Body(...), db: Session = Depends(get_db)):
    chapter = db.get(Chapter, chapter_id)
    if chapter is None or chapter.audiobook_id != audiobook_id:
        return bad_request(messages.CHAPTER_NOT_FOUND, status_code=404)

    title_fa = clean_str((payload or {}).get("title_fa"))
    if not title_fa:
        return bad_request(messages.TITLE_FA_REQUIRED)

    chapter.title_fa = title_fa
    chapter.title_en = clean_str(payload.get("title_en"))
    if "is_preview" in payload:
        chapter.is_preview = to_bool(payload["is_preview"])
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        return error_response(e, messages.EDIT_FAILED)
    return {"message": messages.CHAPTER_EDITED, "chapter": chapter.to_dict()}


@router.delete("/{chapter_id}")
def delete_chapter(
    audiobook_id: int,
    chapter_id: int,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    book, err = _load_book(db, audiobook_id)
    if err:
        return err
    chapter = db.get(Chapter, chapter_id)
    if chapter is None or chapter.audiobook_id != audiobook_id:
        return bad_request(messages.CHAPTER_NOT_FOUND, status_code=404)

    try:
        # Audio goes first; a failed commit leaves the row pointing at a removed object.
        if chapter.audio_storage_path:
            storage.remove(config.AUDIO_BUCKET, [chapter.audio_storage_path])
        db.delete(chapter)
        db.commit()
        refresh_chapter_count(db, book)
    except (SQLAlchemyError, StorageError) as e:
        db.rollback()
        logger.exception("Error deleting chapter %s", chapter_id)
        return error_response(e, messages.DELETE_FAILED)
    return {"message": messages.CHAPTER_DELETED, "chapters": _serialize(_ordered_chapters(db, audiobook_id))}


# --------------- Upload (single) ----------
@router.post("")
def add_chapter(
    audiobook_id: int,
    file: UploadFile = File(...),
    title_fa: str = Form(...),
    title_en: Optional[str] = Form(None),
    is_preview: bool = Form(False),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    book, err = _load_book(db, audiobook_id)
    if err:
        return err
    if not clean_str(title_fa):
        return bad_request(messages.TITLE_FA_REQUIRED)

    file_name = file.filename or ""
    size = upload_size(file)
    validation = audio_validator.validate(
        file_name=file_name, file_size_bytes=size, mime_type=upload_mime(file)
    )
    if not validation.is_valid:
        return bad_request(validation.error_message)

    item = PendingUpload(
        file_name=file_name,
        file_size=size,
        title_fa=title_fa,
        title_en=title_en,
        is_preview=is_preview,
        stream=file.file,
    )
    try:
        existing = db.query(Chapter.chapter_index).filter(Chapter.audiobook_id == audiobook_id).all()
        chapter = upload_chapter(
            db,
            storage,
            audiobook_id=audiobook_id,
            narrator_id=book.narrator_id,
            item=item,
            chapter_index=next_chapter_index(row[0] for row in existing),
        )
        refresh_chapter_count(db, book)
    except (SQLAlchemyError, StorageError, ValueError) as e:
        db.rollback()
        logger.exception("Upload error for audiobook %s", audiobook_id)
        return error_response(e, messages.UPLOAD_FAILED)

    return JSONResponse(
        {
            "message": messages.CHAPTER_ADDED,
            "warning": validation.warning_message,
            "chapter": chapter.to_dict(),
        },
        status_code=201,
    )


# --------------- Upload (bulk) ------------
@router.post("/bulk")
def add_chapters_bulk(
    audiobook_id: int,
    files: list[UploadFile] = File(...),
    titles_fa: Optional[list[str]] = Form(None),
    preview_indices: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    """
    Multipart: files[] plus optional titles_fa[] (same order) and
    preview_indices ("0,3"). Files are uploaded one at a time; each file's
    bytes are read right before its upload and released right after.
    """
    book, err = _load_book(db, audiobook_id)
    if err:
        return err

    titles = titles_fa or []
    previews = set(to_id_list(preview_indices))
    existing_count = db.query(func.count(Chapter.id)).filter(Chapter.audiobook_id == audiobook_id).scalar() or 0

    pending: list[PendingUpload] = []
    rejected = []
    for i, upload in enumerate(files):
        file_name = upload.filename or ""
        size = upload_size(upload)
        validation = audio_validator.validate(
            file_name=file_name, file_size_bytes=size, mime_type=upload_mime(upload)
        )
        if not validation.is_valid:
            first_line = (validation.error_message or "").split("\n")[0]
            rejected.append({"file_name": file_name, "error": first_line})
            continue

        title = clean_str(titles[i]) if i < len(titles) else None
        pending.append(
            PendingUpload(
                file_name=file_name,
                file_size=size,
                title_fa=title or title_from_filename(file_name, existing_count + len(pending) + 1),
                is_preview=i in previews,
                stream=upload.file,
            )
        )

    if not pending:
        return bad_request(messages.NO_VALID_FILES, rejected=rejected)

    try:
        existing = db.query(Chapter.chapter_index).filter(Chapter.audiobook_id == audiobook_id).all()
        result = bulk_upload_chapters(
            db,
            storage,
            audiobook_id=audiobook_id,
            narrator_id=book.narrator_id,
            items=pending,
            start_index=next_chapter_index(row[0] for row in existing),
        )
        if result.uploaded:
            refresh_chapter_count(db, book)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Bulk upload error for audiobook %s", audiobook_id)
        return error_response(e, messages.BULK_UPLOAD_FAILED)

    failed = [{"file_name": it.file_name, "error": it.error} for it in result.failed]
    if failed:
        message = messages.chapters_uploaded_with_errors(result.uploaded, len(failed))
    else:
        message = messages.chapters_uploaded(result.uploaded)
    return {
        "message": message,
        "uploaded": result.uploaded,
        "failed": failed,
        "rejected": rejected,
        "rejected_message": messages.files_rejected(len(rejected)) if rejected else None,
        "chapters": _serialize(_ordered_chapters(db, audiobook_id)),
    }
