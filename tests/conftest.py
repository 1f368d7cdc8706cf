"""Shared fixtures: settings, stores for both backends and an API client."""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from config import Settings
from database import Database
from file_store import FilePostStore, FileResumeStore
from main import create_app
from schemas import Post
from sql_store import SqlPostStore, SqlResumeStore

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "correct-horse-battery"
JWT_SECRET = "test-secret-that-is-long-enough-for-hs256-signing"


def make_post(slug, published_at=None, status="published", tags=None, **fields):
    published_at = published_at or datetime(2024, 1, 1, tzinfo=timezone.utc)
    values = dict(
        slug=slug,
        title=slug.replace("-", " ").title(),
        date=published_at,
        published_at=published_at,
        author="Jane Doe",
        excerpt="",
        content="Some body text.",
        category="Tech",
        tags=tags or [],
        status=status,
    )
    values.update(fields)
    return Post(**values)


@pytest.fixture
def make_settings(tmp_path):
    def _make(backend="file", **overrides):
        values = dict(
            ADMIN_EMAIL=ADMIN_EMAIL,
            ADMIN_PASSWORD=ADMIN_PASSWORD,
            ADMIN_PASSWORD_HASH=None,
            JWT_SECRET=JWT_SECRET,
            CONTENT_BACKEND=backend,
            CONTENT_DIR=tmp_path / "content" / "blog",
            RESUME_FILE=tmp_path / "content" / "resume.json",
            DATABASE_URL=f"sqlite:///{tmp_path / 'portfolio.db'}",
            LOG_LEVEL="WARNING",
        )
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def settings(make_settings):
    return make_settings()


@pytest.fixture
def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'stores.db'}")
    yield db
    db.dispose()


@pytest.fixture(params=["file", "database"])
def post_store(request, tmp_path, database):
    if request.param == "file":
        return FilePostStore(tmp_path / "blog")
    return SqlPostStore(database)


@pytest.fixture(params=["file", "database"])
def resume_store(request, tmp_path, database):
    if request.param == "file":
        return FileResumeStore(tmp_path / "resume.json")
    return SqlResumeStore(database)


@pytest.fixture(params=["file", "database"])
def client(request, make_settings):
    app = create_app(make_settings(request.param))
    with TestClient(app) as client:
        yield client


@pytest.fixture
def auth_headers(client):
    response = client.post("/api/auth", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}
