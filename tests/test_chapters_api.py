from app import config
from app.models.chapter import Chapter
from app.utils import messages


def _url(book_id, suffix=""):
    return f"/admin/audiobooks/{book_id}/chapters{suffix}"


def _mp3(name="a.mp3", payload=b"ID3" + b"\x00" * 32):
    return (name, payload, "audio/mpeg")


def test_list_rejects_non_positive_id(client):
    assert client.get(_url(0)).status_code == 400
    r = client.get(_url(-3))
    assert r.status_code == 400
    assert r.json()["error"] == messages.INVALID_BOOK_ID


def test_list_unknown_book(client):
    assert client.get(_url(999)).status_code == 404


def test_list_orders_and_normalizes_null_indices(client, db_session, make_book, make_chapter):
    book = make_book()
    c3 = make_chapter(book, 3)
    n1 = make_chapter(book, None, title_fa="بی‌شماره ۱")
    c1 = make_chapter(book, 1)
    n2 = make_chapter(book, None, title_fa="بی‌شماره ۲")

    r = client.get(_url(book.id))
    assert r.status_code == 200
    chapters = r.json()["chapters"]
    assert [c["id"] for c in chapters] == [c1.id, c3.id, n1.id, n2.id]
    assert [c["chapter_index"] for c in chapters] == [1, 3, 4, 5]

    db_session.expire_all()
    assert db_session.get(Chapter, n2.id).chapter_index == 5


def test_save_manual_order(client, db_session, make_book, make_chapter):
    book = make_book()
    a, b, c = make_chapter(book, 1), make_chapter(book, 2), make_chapter(book, 3)

    r = client.put(_url(book.id, "/order"), json={"orders": {str(a.id): "3", str(b.id): "invalid", str(c.id): "1"}})

    assert r.status_code == 200, r.text
    assert r.json()["message"] == messages.ORDER_SAVED
    assert [ch["id"] for ch in r.json()["chapters"]] == [c.id, a.id, b.id]
    assert [ch["chapter_index"] for ch in r.json()["chapters"]] == [1, 2, 3]

    db_session.expire_all()
    stored = {ch.id: ch.chapter_index for ch in db_session.query(Chapter).filter(Chapter.audiobook_id == book.id)}
    assert stored == {c.id: 1, a.id: 2, b.id: 3}


def test_save_order_swaps_without_unique_collisions(client, make_book, make_chapter):
    book = make_book()
    a, b = make_chapter(book, 1), make_chapter(book, 2)
    r = client.put(_url(book.id, "/order"), json={"orders": {str(a.id): "2", str(b.id): "1"}})
    assert r.status_code == 200
    assert [ch["id"] for ch in r.json()["chapters"]] == [b.id, a.id]


def test_save_order_on_empty_book_is_noop(client, make_book):
    book = make_book()
    r = client.put(_url(book.id, "/order"), json={"orders": {}})
    assert r.status_code == 200
    assert r.json()["chapters"] == []


def test_move_chapter(client, make_book, make_chapter):
    book = make_book()
    a, b, c = make_chapter(book, 1), make_chapter(book, 2), make_chapter(book, 3)

    r = client.post(_url(book.id, "/move"), json={"old_index": 0, "new_index": 3})

    assert r.status_code == 200
    assert [ch["id"] for ch in r.json()["chapters"]] == [b.id, c.id, a.id]
    assert [ch["chapter_index"] for ch in r.json()["chapters"]] == [1, 2, 3]


def test_move_chapter_bad_index(client, make_book, make_chapter):
    book = make_book()
    make_chapter(book, 1)
    assert client.post(_url(book.id, "/move"), json={"old_index": 4, "new_index": 0}).status_code == 400
    assert client.post(_url(book.id, "/move"), json={"old_index": "x"}).status_code == 400


def test_edit_chapter(client, make_book, make_chapter):
    book = make_book()
    ch = make_chapter(book, 1, title_en="Old")

    r = client.patch(_url(book.id, f"/{ch.id}"), json={"title_fa": "  فصل تازه ", "title_en": "  ", "is_preview": True})

    assert r.status_code == 200
    body = r.json()["chapter"]
    assert body["title_fa"] == "فصل تازه"
    assert body["title_en"] is None
    assert body["is_preview"] is True


def test_edit_chapter_requires_title(client, make_book, make_chapter):
    book = make_book()
    ch = make_chapter(book, 1)
    r = client.patch(_url(book.id, f"/{ch.id}"), json={"title_fa": "   "})
    assert r.status_code == 400
    assert r.json()["error"] == messages.TITLE_FA_REQUIRED


def test_edit_chapter_of_other_book_is_404(client, make_book, make_chapter):
    book, other = make_book(), make_book()
    ch = make_chapter(other, 1)
    assert client.patch(_url(book.id, f"/{ch.id}"), json={"title_fa": "x"}).status_code == 404


def test_delete_chapter_removes_audio_and_updates_count(client, db_session, fake_s3, make_book, make_chapter):
    book = make_book(chapter_count=2)
    ch = make_chapter(book, 1, audio_storage_path="admin/1/x.mp3")
    make_chapter(book, 2)
    fake_s3.objects[(config.AUDIO_BUCKET, "admin/1/x.mp3")] = b"1"

    r = client.delete(_url(book.id, f"/{ch.id}"))

    assert r.status_code == 200
    assert fake_s3.keys_in(config.AUDIO_BUCKET) == []
    assert len(r.json()["chapters"]) == 1
    db_session.expire_all()
    assert db_session.get(Chapter, ch.id) is None
    assert book.chapter_count == 1


def test_delete_chapter_storage_failure_keeps_row(client, db_session, fake_s3, make_book, make_chapter):
    book = make_book()
    ch = make_chapter(book, 1, audio_storage_path="admin/1/x.mp3")
    fake_s3.fail_delete = True

    r = client.delete(_url(book.id, f"/{ch.id}"))

    assert r.status_code == 502
    db_session.expire_all()
    assert db_session.get(Chapter, ch.id) is not None


def test_add_single_chapter(client, fake_s3, make_book, make_chapter, make_profile):
    narrator = make_profile(role="narrator")
    book = make_book(narrator_id=narrator.id)
    make_chapter(book, 4)

    r = client.post(
        _url(book.id),
        files={"file": _mp3("intro.mp3")},
        data={"title_fa": "پیش‌گفتار", "title_en": "Intro", "is_preview": "true"},
    )

    assert r.status_code == 201, r.text
    body = r.json()
    assert body["message"] == messages.CHAPTER_ADDED
    assert body["chapter"]["chapter_index"] == 5
    assert body["chapter"]["is_preview"] is True
    assert body["chapter"]["audio_storage_path"].startswith(f"{narrator.id}/{book.id}/")
    assert fake_s3.keys_in(config.AUDIO_BUCKET) == [body["chapter"]["audio_storage_path"]]
    assert book.chapter_count == 2


def test_add_chapter_rejects_bad_file(client, fake_s3, make_book):
    book = make_book()
    r = client.post(_url(book.id), files={"file": ("song.wav", b"RIFF", "audio/wav")}, data={"title_fa": "x"})
    assert r.status_code == 400
    assert fake_s3.put_keys == []


def test_add_chapter_storage_failure(client, fake_s3, make_book):
    book = make_book()
    fake_s3.fail_put = True
    r = client.post(_url(book.id), files={"file": _mp3()}, data={"title_fa": "x"})
    assert r.status_code == 502
    assert book.chapter_count == 0


def test_bulk_upload(client, db_session, fake_s3, make_book):
    book = make_book()

    r = client.post(
        _url(book.id, "/bulk"),
        files=[
            ("files", _mp3("01 - Beginning.mp3")),
            ("files", ("notes.txt", b"hello", "text/plain")),
            ("files", _mp3("02.mp3")),
        ],
        data={"preview_indices": "0"},
    )

    assert r.status_code == 200, r.text
    body = r.json()
    assert body["uploaded"] == 2
    assert body["message"] == messages.chapters_uploaded(2)
    assert [x["file_name"] for x in body["rejected"]] == ["notes.txt"]
    assert body["failed"] == []
    titles = [c["title_fa"] for c in body["chapters"]]
    assert titles == ["Beginning", messages.chapter_title(2)]
    assert [c["is_preview"] for c in body["chapters"]] == [True, False]
    assert len(fake_s3.keys_in(config.AUDIO_BUCKET)) == 2
    assert book.chapter_count == 2


def test_bulk_upload_uses_given_titles(client, make_book):
    book = make_book()
    r = client.post(
        _url(book.id, "/bulk"),
        files=[("files", _mp3("a.mp3")), ("files", _mp3("b.mp3"))],
        data={"titles_fa": ["یک", "دو"]},
    )
    assert [c["title_fa"] for c in r.json()["chapters"]] == ["یک", "دو"]


def test_bulk_upload_with_no_valid_files(client, fake_s3, make_book):
    book = make_book()
    r = client.post(_url(book.id, "/bulk"), files=[("files", ("a.wav", b"x", "audio/wav"))])
    assert r.status_code == 400
    assert r.json()["error"] == messages.NO_VALID_FILES
    assert fake_s3.put_keys == []


def test_bulk_upload_storage_failures_are_reported(client, fake_s3, make_book):
    book = make_book()
    fake_s3.fail_put = True

    r = client.post(_url(book.id, "/bulk"), files=[("files", _mp3("a.mp3")), ("files", _mp3("b.mp3"))])

    assert r.status_code == 200
    body = r.json()
    assert body["uploaded"] == 0
    assert [f["file_name"] for f in body["failed"]] == ["a.mp3", "b.mp3"]
    assert body["message"] == messages.chapters_uploaded_with_errors(0, 2)
    assert book.chapter_count == 0
