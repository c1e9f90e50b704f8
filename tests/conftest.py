import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret")

import bcrypt
import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.db.base import Base
from app.db.session import get_db
from app.main import app as fastapi_app
from app.models.audiobook import Audiobook
from app.models.chapter import Chapter
from app.models.profile import Profile
from app.services.storage import ObjectStorage

ADMIN_EMAIL = "admin@parasto.test"
ADMIN_PASSWORD = "s3cret-pass"
# Low cost factor keeps the suite fast.
ADMIN_HASH = bcrypt.hashpw(ADMIN_PASSWORD.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode("utf-8")


class FakeS3:
    """In-memory stand-in for the boto3 S3 client calls ObjectStorage makes."""

    def __init__(self):
        self.objects = {}
        self.put_keys = []
        self.fail_put = False
        self.fail_delete = False
        self.on_put = None

    def put_object(self, Bucket, Key, Body, ContentType=None):
        if self.on_put is not None:
            self.on_put(Bucket, Key)
        if self.fail_put:
            raise ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject")
        self.put_keys.append((Bucket, Key))
        self.objects[(Bucket, Key)] = Body
        return {"ETag": '"fake"'}

    def delete_objects(self, Bucket, Delete):
        if self.fail_delete:
            raise ClientError({"Error": {"Code": "InternalError", "Message": "boom"}}, "DeleteObjects")
        deleted = []
        for obj in Delete["Objects"]:
            self.objects.pop((Bucket, obj["Key"]), None)
            deleted.append({"Key": obj["Key"]})
        return {"Deleted": deleted}

    def generate_presigned_url(self, ClientMethod, Params, ExpiresIn):
        return f"https://s3.test/{Params['Bucket']}/{Params['Key']}?op={ClientMethod}&exp={ExpiresIn}"

    def keys_in(self, bucket):
        return sorted(k for (b, k) in self.objects if b == bucket)


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def db_session(engine):
    TestingSession = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = TestingSession()
    yield session
    session.close()


@pytest.fixture
def fake_s3():
    return FakeS3()


@pytest.fixture
def storage(fake_s3):
    return ObjectStorage(fake_s3, endpoint="https://s3.test", assets_base="https://cdn.test")


@pytest.fixture
def admin(db_session):
    me = Profile(
        email=ADMIN_EMAIL,
        display_name="مدیر",
        role="admin",
        password_hash=ADMIN_HASH,
    )
    db_session.add(me)
    db_session.commit()
    return me


@pytest.fixture
def anon_client(db_session, storage):
    def override_get_db():
        yield db_session

    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.state.storage = storage
    with TestClient(fastapi_app) as c:
        yield c
    fastapi_app.dependency_overrides.clear()
    fastapi_app.state.storage = None


@pytest.fixture
def client(anon_client, admin):
    r = anon_client.post("/auth/login", data={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert r.status_code == 200, r.text
    return anon_client


@pytest.fixture
def make_profile(db_session):
    counter = {"n": 0}

    def _make(**kw):
        counter["n"] += 1
        kw.setdefault("email", f"user{counter['n']}@parasto.test")
        kw.setdefault("display_name", f"کاربر {counter['n']}")
        kw.setdefault("role", "listener")
        p = Profile(**kw)
        db_session.add(p)
        db_session.commit()
        return p

    return _make


@pytest.fixture
def make_book(db_session):
    def _make(**kw):
        kw.setdefault("title_fa", "کتاب آزمایشی")
        kw.setdefault("content_type", "book")
        kw.setdefault("status", "draft")
        book = Audiobook(**kw)
        db_session.add(book)
        db_session.commit()
        return book

    return _make


@pytest.fixture
def make_chapter(db_session):
    def _make(book, index, **kw):
        kw.setdefault("title_fa", f"فصل {index}")
        ch = Chapter(audiobook_id=book.id, chapter_index=index, **kw)
        db_session.add(ch)
        db_session.commit()
        return ch

    return _make
