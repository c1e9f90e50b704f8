import io
import logging
import re

import pytest
from sqlalchemy.exc import IntegrityError

from app import config
from app.models.chapter import Chapter
from app.services.uploads import (
    PendingUpload,
    build_storage_path,
    bulk_upload_chapters,
    cleanup_orphan,
    upload_chapter,
)


def _item(name="a.mp3", payload=b"ID3audio", **kw):
    return PendingUpload(file_name=name, file_size=len(payload), title_fa=kw.pop("title_fa", name), stream=io.BytesIO(payload), **kw)


def test_pending_upload_loads_lazily_and_releases():
    item = _item(payload=b"12345")
    assert not item.bytes_loaded
    assert item.get_bytes() == b"12345"
    assert item.bytes_loaded
    item.release_bytes()
    assert not item.bytes_loaded
    # stream is rewound, so a second read still works
    assert item.get_bytes() == b"12345"


def test_pending_upload_from_path(tmp_path):
    f = tmp_path / "x.m4a"
    f.write_bytes(b"m4a-bytes")
    item = PendingUpload(file_name="x.m4a", file_size=9, title_fa="x", path=f)
    assert item.extension == "m4a"
    assert item.get_bytes() == b"m4a-bytes"


def test_pending_upload_without_source():
    with pytest.raises(ValueError):
        PendingUpload(file_name="x.mp3", file_size=0, title_fa="x").get_bytes()


def test_storage_path_shape():
    path = build_storage_path("narr-1", 42, "mp3")
    assert re.fullmatch(r"narr-1/42/\d{13}-[0-9a-f]{8}\.mp3", path)
    assert build_storage_path(None, 7, "m4a").startswith("admin/7/")
    assert build_storage_path("n", 1, "mp3") != build_storage_path("n", 1, "mp3")


def test_upload_chapter_success(db_session, storage, fake_s3, make_book):
    book = make_book(narrator_id=None)
    item = _item("01 intro.mp3", title_fa="  مقدمه  ")

    ch = upload_chapter(db_session, storage, audiobook_id=book.id, narrator_id=None, item=item, chapter_index=1)

    assert ch.id is not None
    assert ch.title_fa == "مقدمه"
    assert ch.chapter_index == 1
    assert ch.audio_format == "mp3"
    assert item.is_uploaded and item.storage_path == ch.audio_storage_path
    assert not item.bytes_loaded
    assert fake_s3.keys_in(config.AUDIO_BUCKET) == [ch.audio_storage_path]


def test_insert_failure_removes_uploaded_object(db_session, storage, fake_s3, make_book, make_chapter, caplog):
    book = make_book()
    make_chapter(book, 1)
    item = _item()

    with caplog.at_level(logging.WARNING, logger="app.services.uploads"):
        with pytest.raises(IntegrityError):
            # index 1 is taken -> unique violation on insert
            upload_chapter(db_session, storage, audiobook_id=book.id, narrator_id=None, item=item, chapter_index=1)

    assert fake_s3.keys_in(config.AUDIO_BUCKET) == []
    assert len(fake_s3.put_keys) == 1
    assert not item.is_uploaded
    assert not item.bytes_loaded
    assert any(r.levelno == logging.WARNING and "cleaning up" in r.getMessage() for r in caplog.records)


def test_cleanup_failure_is_only_logged(db_session, storage, fake_s3, make_book, make_chapter, caplog):
    book = make_book()
    make_chapter(book, 1)
    fake_s3.fail_delete = True

    with caplog.at_level(logging.WARNING, logger="app.services.uploads"):
        # the original database error surfaces, not the storage one
        with pytest.raises(IntegrityError):
            upload_chapter(db_session, storage, audiobook_id=book.id, narrator_id=None, item=_item(), chapter_index=1)

    assert any(r.levelno == logging.ERROR and "orphan" in r.getMessage() for r in caplog.records)


def test_repeated_failures_leave_no_orphans(db_session, storage, fake_s3, make_book, make_chapter):
    book = make_book()
    make_chapter(book, 1)

    for _ in range(3):
        with pytest.raises(IntegrityError):
            upload_chapter(db_session, storage, audiobook_id=book.id, narrator_id=None, item=_item(), chapter_index=1)

    assert fake_s3.keys_in(config.AUDIO_BUCKET) == []
    assert len(set(fake_s3.put_keys)) == 3


def test_cleanup_orphan_returns_status(storage, fake_s3):
    fake_s3.objects[(config.AUDIO_BUCKET, "x.mp3")] = b"1"
    assert cleanup_orphan(storage, config.AUDIO_BUCKET, "x.mp3") is True
    fake_s3.fail_delete = True
    assert cleanup_orphan(storage, config.AUDIO_BUCKET, "y.mp3") is False


def test_bulk_holds_at_most_one_file_in_memory(db_session, storage, fake_s3, make_book):
    book = make_book()
    items = [_item(f"{i}.mp3", payload=bytes([i]) * 64) for i in range(1, 6)]
    seen = []

    def check(bucket, key):
        seen.append(sum(1 for it in items if it.bytes_loaded))

    fake_s3.on_put = check

    result = bulk_upload_chapters(
        db_session, storage, audiobook_id=book.id, narrator_id=None, items=items, start_index=1
    )

    assert result.uploaded == 5
    assert seen == [1, 1, 1, 1, 1]
    assert all(not it.bytes_loaded for it in items)
    indices = [c.chapter_index for c in db_session.query(Chapter).order_by(Chapter.chapter_index)]
    assert indices == [1, 2, 3, 4, 5]


def test_bulk_continues_after_a_failure(db_session, storage, fake_s3, make_book):
    book = make_book()
    items = [_item("1.mp3"), _item("2.mp3"), _item("3.mp3")]
    calls = {"n": 0}

    def fail_second(bucket, key):
        calls["n"] += 1
        fake_s3.fail_put = calls["n"] == 2

    fake_s3.on_put = fail_second

    result = bulk_upload_chapters(
        db_session, storage, audiobook_id=book.id, narrator_id=None, items=items, start_index=4
    )

    assert result.uploaded == 2
    assert [it.file_name for it in result.failed] == ["2.mp3"]
    assert "دسترسی" in items[1].error
    # only successes consume an index
    indices = sorted(c.chapter_index for c in db_session.query(Chapter).filter(Chapter.audiobook_id == book.id))
    assert indices == [4, 5]
    assert all(not it.bytes_loaded for it in items)


def test_bulk_skips_already_uploaded_items(db_session, storage, fake_s3, make_book):
    book = make_book()
    done = _item("done.mp3")
    done.is_uploaded = True
    result = bulk_upload_chapters(
        db_session, storage, audiobook_id=book.id, narrator_id=None, items=[done, _item("new.mp3")], start_index=1
    )
    assert result.uploaded == 1
    assert len(fake_s3.put_keys) == 1
