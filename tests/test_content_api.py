from app import config
from app.models.audiobook import Audiobook
from app.models.category import MusicCategory
from app.models.chapter import Chapter
from app.utils import messages


def _status(client, book_id, action, **extra):
    return client.post(f"/admin/content/{book_id}/status", json={"action": action, **extra})


def test_list_filters(client, make_book):
    draft = make_book(title_fa="پیش‌نویس")
    submitted = make_book(title_fa="ارسالی", status="submitted")
    reviewing = make_book(title_fa="در بررسی", status="under_review", content_type="music")
    featured = make_book(title_fa="ویژه", status="approved", is_featured=True)

    def ids(**params):
        return {c["id"] for c in client.get("/admin/content", params=params).json()["content"]}

    assert ids() == {draft.id, submitted.id, reviewing.id, featured.id}
    assert ids(filter="pending") == {submitted.id, reviewing.id}
    assert ids(filter="featured") == {featured.id}
    assert ids(status="draft") == {draft.id}
    assert ids(content_type="music") == {reviewing.id}
    assert client.get("/admin/content", params={"status": "lost"}).status_code == 400


def test_detail(client, db_session, make_book, make_chapter):
    book = make_book()
    make_chapter(book, 2)
    make_chapter(book, 1)
    body = client.get(f"/admin/content/{book.id}").json()
    assert body["content"]["id"] == book.id
    assert [c["chapter_index"] for c in body["chapters"]] == [1, 2]
    assert body["book_metadata"] is None
    assert body["creators"] == []
    assert client.get("/admin/content/999").status_code == 404


def test_update_fields_and_metadata(client, db_session, make_book):
    book = make_book()
    r = client.patch(
        f"/admin/content/{book.id}",
        json={
            "title_fa": "  عنوان تازه ",
            "description_fa": "",
            "price_toman": "120000",
            "is_free": False,
            "is_parasto_brand": "true",
            "metadata": {"author_name": " فردوسی ", "publication_year": "1390", "isbn": ""},
        },
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["content"]["title_fa"] == "عنوان تازه"
    assert body["content"]["description_fa"] is None
    assert body["content"]["price_toman"] == 120000
    assert body["content"]["is_parasto_brand"] is True
    assert body["book_metadata"]["author_name"] == "فردوسی"
    assert body["book_metadata"]["publication_year"] == 1390
    assert body["book_metadata"]["isbn"] is None

    # second update edits the same metadata row
    r = client.patch(f"/admin/content/{book.id}", json={"metadata": {"translator": "مترجم"}})
    assert r.json()["book_metadata"]["author_name"] == "فردوسی"
    assert r.json()["book_metadata"]["translator"] == "مترجم"


def test_update_music_metadata_and_genres(client, db_session, make_book):
    genre = MusicCategory(name_fa="پاپ")
    db_session.add(genre)
    db_session.commit()
    album = make_book(content_type="music")

    r = client.patch(
        f"/admin/content/{album.id}",
        json={"metadata": {"artist_name": "گوگوش"}, "music_category_ids": [genre.id]},
    )
    assert r.status_code == 200
    assert r.json()["music_metadata"]["artist_name"] == "گوگوش"
    assert r.json()["music_category_ids"] == [genre.id]


def test_update_validation(client, make_book):
    book = make_book()
    assert client.patch(f"/admin/content/{book.id}", json={"title_fa": " "}).status_code == 400
    assert client.patch(f"/admin/content/{book.id}", json={"content_type": "video"}).status_code == 400
    assert client.patch(f"/admin/content/{book.id}", json={"price_toman": "-5"}).status_code == 400


def test_workflow_happy_path(client, admin, make_book):
    book = make_book()

    assert _status(client, book.id, "submit").json()["content"]["status"] == "submitted"
    r = _status(client, book.id, "start_review")
    assert r.json()["message"] == messages.CONTENT_UNDER_REVIEW
    r = _status(client, book.id, "approve")
    assert r.status_code == 200
    content = r.json()["content"]
    assert content["status"] == "approved"
    assert content["reviewed_by"] == admin.id
    assert content["published_at"] is not None


def test_illegal_transition_is_409(client, make_book):
    book = make_book()
    r = _status(client, book.id, "approve")
    assert r.status_code == 409
    assert r.json()["error"] == messages.INVALID_TRANSITION
    assert book.status == "draft"


def test_reject_needs_reason(client, make_book):
    book = make_book(status="submitted")
    r = _status(client, book.id, "reject", reason="   ")
    assert r.status_code == 400
    assert r.json()["error"] == messages.REJECTION_REASON_REQUIRED

    r = _status(client, book.id, "reject", reason="کیفیت ضبط")
    assert r.json()["content"]["status"] == "rejected"
    assert r.json()["content"]["rejection_reason"] == "کیفیت ضبط"
    # rejected content can be resubmitted
    assert _status(client, book.id, "submit").status_code == 200


def test_unknown_action(client, make_book):
    book = make_book()
    assert _status(client, book.id, "publish").status_code == 400


def test_bulk_approve_skips_ineligible(client, make_book):
    a = make_book(status="submitted")
    b = make_book(status="under_review")
    c = make_book(status="draft")

    r = client.post("/admin/content/bulk/approve", json={"ids": [a.id, b.id, c.id, 999]})

    assert r.status_code == 200
    body = r.json()
    assert sorted(body["updated"]) == sorted([a.id, b.id])
    assert sorted(body["skipped"]) == sorted([c.id, 999])
    assert body["message"] == messages.items_approved(2)
    assert c.status == "draft"


def test_bulk_reject(client, make_book):
    a = make_book(status="submitted")
    assert client.post("/admin/content/bulk/reject", json={"ids": [a.id]}).status_code == 400
    r = client.post("/admin/content/bulk/reject", json={"ids": [a.id], "reason": "ناقص"})
    assert r.json()["updated"] == [a.id]
    assert a.rejection_reason == "ناقص"


def test_bulk_requires_selection(client):
    assert client.post("/admin/content/bulk/approve", json={"ids": []}).json()["error"] == messages.NOTHING_SELECTED


def test_bulk_feature(client, db_session, make_book):
    a, b = make_book(), make_book()
    r = client.post("/admin/content/bulk/feature", json={"ids": [a.id, b.id], "featured": True})
    assert r.json()["updated"] == 2
    assert r.json()["message"] == messages.items_featured(2, True)
    db_session.expire_all()
    assert db_session.get(Audiobook, a.id).is_featured is True


def test_bulk_delete_cleans_storage(client, db_session, fake_s3, make_book, make_chapter):
    book = make_book(cover_storage_path="admin/1/cover.jpg", epub_storage_path="admin/1/book.epub")
    make_chapter(book, 1, audio_storage_path="admin/1/1.mp3")
    keep = make_book()
    fake_s3.objects[(config.COVERS_BUCKET, "admin/1/cover.jpg")] = b"c"
    fake_s3.objects[(config.EBOOK_BUCKET, "admin/1/book.epub")] = b"e"
    fake_s3.objects[(config.AUDIO_BUCKET, "admin/1/1.mp3")] = b"a"

    r = client.post("/admin/content/bulk/delete", json={"ids": [book.id]})

    assert r.status_code == 200
    assert r.json()["message"] == messages.items_deleted(1)
    assert fake_s3.objects == {}
    db_session.expire_all()
    assert db_session.get(Audiobook, book.id) is None
    assert db_session.get(Audiobook, keep.id) is not None
    assert db_session.query(Chapter).count() == 0


def test_bulk_delete_survives_storage_failure(client, db_session, fake_s3, make_book):
    book = make_book(cover_storage_path="admin/1/cover.jpg")
    fake_s3.fail_delete = True
    r = client.post("/admin/content/bulk/delete", json={"ids": [book.id]})
    assert r.status_code == 200
    db_session.expire_all()
    assert db_session.get(Audiobook, book.id) is None


def test_cover_upload_replaces_old_object(client, fake_s3, make_book):
    book = make_book(cover_storage_path="admin/x/old.jpg")
    fake_s3.objects[(config.COVERS_BUCKET, "admin/x/old.jpg")] = b"old"

    r = client.post(f"/admin/content/{book.id}/cover", files={"file": ("new.png", b"\x89PNG", "image/png")})

    assert r.status_code == 200
    content = r.json()["content"]
    assert content["cover_storage_path"].startswith(f"admin/{book.id}/cover-")
    assert content["cover_url"] == f"https://cdn.test/{config.COVERS_BUCKET}/{content['cover_storage_path']}"
    assert fake_s3.keys_in(config.COVERS_BUCKET) == [content["cover_storage_path"]]


def test_ebook_upload(client, fake_s3, make_book):
    book = make_book()
    bad = client.post(f"/admin/content/{book.id}/ebook", files={"file": ("book.docx", b"PK", "application/zip")})
    assert bad.status_code == 400
    r = client.post(f"/admin/content/{book.id}/ebook", files={"file": ("book.epub", b"PK", "application/epub+zip")})
    assert r.status_code == 200
    assert r.json()["message"] == messages.EBOOK_UPLOADED
    assert fake_s3.keys_in(config.EBOOK_BUCKET) == [r.json()["content"]["epub_storage_path"]]
