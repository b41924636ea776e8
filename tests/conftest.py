from __future__ import annotations

import os
import tempfile
from pathlib import Path

_TEST_ROOT = Path(tempfile.mkdtemp(prefix="resumeforge-tests-"))
os.environ["APP_ENV"] = "test"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DATA_DIR"] = str(_TEST_ROOT)
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_ROOT / 'resumeforge-test.db'}"
os.environ["UPLOAD_DIR"] = str(_TEST_ROOT / "uploads")

import pytest  # noqa: E402

from resumeforge.core.security import hash_password  # noqa: E402
from resumeforge.db.base import Base  # noqa: E402
from resumeforge.db.models import User  # noqa: E402
from resumeforge.db.session import SessionLocal, engine  # noqa: E402


@pytest.fixture(autouse=True)
def reset_db() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    with SessionLocal() as session:
        yield session


def create_user(session, username: str, password: str = "secret123") -> User:
    user = User(username=username, password_hash=hash_password(password))
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def make_user(db):
    def _make(username: str, password: str = "secret123") -> User:
        return create_user(db, username, password)

    return _make


@pytest.fixture
def user(make_user) -> User:
    return make_user("alice")


@pytest.fixture
def other_user(make_user) -> User:
    return make_user("bob")
