import os
import tempfile

# Settings are read at import time, so the environment must be ready first.
_TMP_DIR = tempfile.mkdtemp(prefix="praxis-tests-")
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR}/praxis.db"
os.environ["OPENROUTER_API_KEY"] = "test-key"
os.environ["IDENTITY_USERINFO_URL"] = "https://identity.test/oauth/userinfo"
os.environ["YOUTUBE_ENABLE_TRANSCRIPT_API_FALLBACK"] = "0"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from praxis.core.auth import Identity, get_identity  # noqa: E402
from praxis.db.base import Base  # noqa: E402
from praxis.db.session import SessionLocal, engine  # noqa: E402
from praxis.main import app  # noqa: E402

Base.metadata.create_all(bind=engine)

TEST_SUBJECT = "user_test_1"
TEST_SUBJECTS = ["Mathematics", "Physics", "Chemistry"]


@pytest.fixture
def login():
    """Override identity resolution; returns a function to switch users."""

    def _login(subject: str = TEST_SUBJECT, metadata: dict | None = None) -> None:
        meta = {"subjects": TEST_SUBJECTS} if metadata is None else metadata
        app.dependency_overrides[get_identity] = lambda: Identity(subject=subject, metadata=meta)

    yield _login
    app.dependency_overrides.pop(get_identity, None)


@pytest.fixture
def client(login):
    login()
    return TestClient(app)


@pytest.fixture
def anon_client():
    app.dependency_overrides.pop(get_identity, None)
    return TestClient(app)


@pytest.fixture
def db():
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()
