# app/services/uploads.py
"""
Chapter uploads: storage first, then the chapter row.

Bytes are loaded lazily right before each upload and dropped right after, so a
batch of N files never holds more than one file in memory. If the row insert
fails after the object landed in storage, the object is removed again
(best-effort; a failed cleanup is only logged).
"""
from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Optional, Sequence, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app import config
from app.models.chapter import Chapter
from app.services.storage import ObjectStorage
from app.utils.audio_validator import content_type_for, get_extension, upload_error_message

logger = logging.getLogger(__name__)


class PendingUpload:
    """A chapter waiting to be uploaded; bytes are read only on demand."""

    def __init__(
        self,
        *,
        file_name: str,
        file_size: int,
        title_fa: str,
        title_en: Optional[str] = None,
        is_preview: bool = False,
        data: Optional[bytes] = None,
        stream: Optional[BinaryIO] = None,
        path: Union[str, Path, None] = None,
    ):
        self.file_name = file_name
        self.file_size = file_size
        self.title_fa = title_fa
        self.title_en = title_en
        self.is_preview = is_preview

        self._bytes = data
        self._stream = stream
        self._path = Path(path) if path else None

        self.is_uploaded = False
        self.error: Optional[str] = None
        self.storage_path: Optional[str] = None
        self.chapter_id: Optional[int] = None

    @property
    def bytes_loaded(self) -> bool:
        return self._bytes is not None

    @property
    def extension(self) -> str:
        return get_extension(self.file_name)

    def get_bytes(self) -> bytes:
        if self._bytes is not None:
            return self._bytes
        if self._stream is not None:
            self._stream.seek(0)
            self._bytes = self._stream.read()
            return self._bytes
        if self._path is not None:
            self._bytes = self._path.read_bytes()
            return self._bytes
        raise ValueError(f"No bytes available for file: {self.file_name}")

    def release_bytes(self) -> None:
        self._bytes = None

    def __repr__(self) -> str:
        return f"<PendingUpload {self.file_name!r} loaded={self.bytes_loaded} uploaded={self.is_uploaded}>"


@dataclass
class BulkUploadResult:
    uploaded: int = 0
    results: list = field(default_factory=list)

    @property
    def failed(self) -> list:
        return [item for item in self.results if item.error is not None]


def build_storage_path(narrator_id: Optional[str], audiobook_id: int, extension: str) -> str:
    """<narrator>/<audiobook>/<timestamp_ms>-<suffix>.<ext>"""
    owner = narrator_id or "admin"
    stamp = int(time.time() * 1000)
    suffix = uuid.uuid4().hex[:8]
    return f"{owner}/{audiobook_id}/{stamp}-{suffix}.{extension}"


def cleanup_orphan(storage: ObjectStorage, bucket: str, path: str) -> bool:
    """Remove an object whose database row never made it. Never raises."""
    logger.warning("DB write failed, cleaning up uploaded file: %s/%s", bucket, path)
    try:
        storage.remove(bucket, [path])
        return True
    except Exception:
        logger.exception("Failed to cleanup orphan file: %s/%s", bucket, path)
        return False


def upload_chapter(
    db: Session,
    storage: ObjectStorage,
    *,
    audiobook_id: int,
    narrator_id: Optional[str],
    item: PendingUpload,
    chapter_index: int,
    bucket: str = config.AUDIO_BUCKET,
) -> Chapter:
    """Upload one chapter file and insert its row. Raises on failure."""
    extension = item.extension
    path = build_storage_path(narrator_id, audiobook_id, extension)

    try:
        data = item.get_bytes()
        storage.upload_binary(bucket, path, data, content_type_for(item.file_name))
    finally:
        item.release_bytes()

    chapter = Chapter(
        audiobook_id=audiobook_id,
        title_fa=item.title_fa.strip(),
        title_en=(item.title_en or "").strip() or None,
        chapter_index=chapter_index,
        audio_storage_path=path,
        audio_format=extension,
        duration_seconds=0,
        file_size_bytes=item.file_size,
        is_preview=bool(item.is_preview),
    )
    try:
        db.add(chapter)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        cleanup_orphan(storage, bucket, path)
        raise

    item.storage_path = path
    item.chapter_id = chapter.id
    item.is_uploaded = True
    logger.debug("Uploaded chapter %s (index %s) -> %s", chapter.id, chapter_index, path)
    return chapter


def bulk_upload_chapters(
    db: Session,
    storage: ObjectStorage,
    *,
    audiobook_id: int,
    narrator_id: Optional[str],
    items: Sequence[PendingUpload],
    start_index: int,
    bucket: str = config.AUDIO_BUCKET,
) -> BulkUploadResult:
    """
    Upload ``items`` one at a time. A failing item is recorded and skipped;
    only successful uploads consume a chapter index.
    """
    result = BulkUploadResult(results=list(items))
    next_index = start_index

    for item in items:
        if item.is_uploaded:
            continue
        try:
            upload_chapter(
                db,
                storage,
                audiobook_id=audiobook_id,
                narrator_id=narrator_id,
                item=item,
                chapter_index=next_index,
                bucket=bucket,
            )
        except Exception as e:
            logger.exception("Bulk upload failed for %s", item.file_name)
            item.error = upload_error_message(e)
            continue
        finally:
            item.release_bytes()

        item.error = None
        next_index += 1
        result.uploaded += 1

    logger.info(
        "Bulk upload for audiobook %s: %d uploaded, %d failed",
        audiobook_id,
        result.uploaded,
        len(result.failed),
    )
    return result
