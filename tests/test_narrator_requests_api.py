import pytest

from app import config
from app.models.narrator_request import NarratorRequest
from app.utils import messages


@pytest.fixture
def applicant(make_profile):
    return make_profile(display_name="نگار")


@pytest.fixture
def pending(db_session, applicant):
    req = NarratorRequest(user_id=applicant.id, experience_text="ده سال گویندگی رادیو", voice_sample_path="u1/sample.m4a")
    db_session.add(req)
    db_session.commit()
    return req


def test_list_and_stats(client, db_session, applicant, pending):
    db_session.add(
        NarratorRequest(user_id=applicant.id, experience_text="x", voice_sample_path="p", status="rejected")
    )
    db_session.commit()

    assert client.get("/admin/narrator-requests/stats").json() == {"pending": 1, "approved": 0, "rejected": 1}
    only_pending = client.get("/admin/narrator-requests", params={"status": "pending"}).json()["requests"]
    assert [r["id"] for r in only_pending] == [pending.id]
    assert only_pending[0]["user_name"] == "نگار"
    assert len(client.get("/admin/narrator-requests").json()["requests"]) == 2


def test_detail_has_signed_voice_url(client, pending):
    body = client.get(f"/admin/narrator-requests/{pending.id}").json()
    assert body["voice_sample_url"].startswith(f"https://s3.test/{config.NARRATOR_REQUESTS_BUCKET}/u1/sample.m4a")
    assert f"exp={config.AUDIO_URL_EXPIRY}" in body["voice_sample_url"]
    assert body["user"]["display_name"] == "نگار"
    assert client.get("/admin/narrator-requests/missing").status_code == 404


def test_approve_promotes_applicant(client, db_session, admin, applicant, pending):
    r = client.post(f"/admin/narrator-requests/{pending.id}/approve")

    assert r.status_code == 200
    assert r.json()["message"] == messages.REQUEST_APPROVED
    assert r.json()["request"]["status"] == "approved"
    assert r.json()["request"]["reviewed_by"] == admin.id
    db_session.expire_all()
    assert applicant.role == "narrator"

    again = client.post(f"/admin/narrator-requests/{pending.id}/approve")
    assert again.status_code == 409
    assert again.json()["error"] == messages.REQUEST_NOT_PENDING


def test_reject_with_feedback(client, applicant, pending):
    r = client.post(f"/admin/narrator-requests/{pending.id}/reject", json={"feedback": " کیفیت نمونه پایین است "})
    assert r.json()["request"]["status"] == "rejected"
    assert r.json()["request"]["admin_feedback"] == "کیفیت نمونه پایین است"
    assert applicant.role == "listener"
    assert client.post(f"/admin/narrator-requests/{pending.id}/approve").status_code == 409
