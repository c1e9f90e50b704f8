import json

from sqlalchemy.exc import IntegrityError, OperationalError

from app.services.storage import StorageError
from app.utils import messages
from app.utils.errors import bad_request, error_response, is_unique_violation


class _PgError(Exception):
    def __init__(self, msg, pgcode):
        super().__init__(msg)
        self.pgcode = pgcode


def _body(resp):
    return json.loads(resp.body)


def test_unique_violation_by_sqlstate():
    exc = IntegrityError("INSERT", {}, _PgError("duplicate key value violates unique constraint", "23505"))
    assert is_unique_violation(exc)
    resp = error_response(exc, duplicate_message=messages.CATEGORY_DUPLICATE)
    assert resp.status_code == 409
    assert _body(resp) == {"error": messages.CATEGORY_DUPLICATE, "code": "23505"}


def test_other_sqlstate_is_not_unique():
    exc = IntegrityError("INSERT", {}, _PgError("null value in column violates not-null constraint", "23502"))
    assert not is_unique_violation(exc)
    assert error_response(exc).status_code == 500


def test_unique_violation_from_message_without_sqlstate():
    exc = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: categories.name_fa"))
    assert is_unique_violation(exc)


def test_storage_error_maps_to_502():
    resp = error_response(StorageError("bucket gone"), messages.UPLOAD_FAILED)
    assert resp.status_code == 502
    assert _body(resp)["error"] == f"{messages.UPLOAD_FAILED}: bucket gone"


def test_other_errors_show_text_verbatim():
    exc = OperationalError("SELECT", {}, Exception("connection refused"))
    resp = error_response(exc, messages.SAVE_ORDER_FAILED)
    assert resp.status_code == 500
    assert _body(resp)["error"] == f"{messages.SAVE_ORDER_FAILED}: connection refused"


def test_bad_request_extra_fields():
    resp = bad_request(messages.NO_VALID_FILES, rejected=[{"file_name": "a.wav"}])
    assert resp.status_code == 400
    assert _body(resp) == {"error": messages.NO_VALID_FILES, "rejected": [{"file_name": "a.wav"}]}
