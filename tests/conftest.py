"""
Test configuration and fixtures.

Provides:
- In-memory SQLite database rebuilt for every test
- Users, forms and bearer tokens for authenticated tests
- HTTPX AsyncClient bound to the ASGI app
"""
import os
import shutil
import tempfile
from typing import AsyncGenerator, Generator

# Settings are read at import time; configure before importing the app
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["TESTING"] = "1"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["GOOGLE_DRIVE_ENABLED"] = "false"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="formdesk-uploads-")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session

from formdesk.core.config import settings
from formdesk.core.deps import get_db
from formdesk.core.security import create_access_token
from formdesk.db.base import Base
from formdesk.db.enums import Role
from formdesk.db.models import Form, Question, User
from formdesk.db.session import SessionLocal, engine
from formdesk.main import app


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Fresh schema per test; the app shares this session via get_db override."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def upload_dir() -> Generator[str, None, None]:
    """
    The directory the app stages into and serves from /uploads, emptied
    around every test.
    """
    path = os.path.abspath(settings.UPLOAD_DIR)
    os.makedirs(path, exist_ok=True)
    _empty_dir(path)
    yield path
    _empty_dir(path)


def _empty_dir(path: str) -> None:
    for name in os.listdir(path):
        target = os.path.join(path, name)
        if os.path.isdir(target):
            shutil.rmtree(target)
        else:
            os.remove(target)


def _create_user(db: Session, *, name: str, email: str, role: Role) -> User:
    user = User(name=name, email=email, password="not-a-real-hash", role=role.value)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture(scope="function")
def owner_user(db: Session) -> User:
    """Regular user who builds the forms under test."""
    return _create_user(db, name="Form Owner", email="owner@formdesk.io", role=Role.USER)


@pytest.fixture(scope="function")
def other_user(db: Session) -> User:
    return _create_user(db, name="Someone Else", email="other@formdesk.io", role=Role.USER)


@pytest.fixture(scope="function")
def admin_user(db: Session) -> User:
    return _create_user(db, name="Admin", email="admin@formdesk.io", role=Role.ADMIN)


@pytest.fixture(scope="function")
def make_form(db: Session, owner_user: User):
    """
    Factory for forms with questions.

    Questions are ``(id, text, type)`` tuples; pass ``id=None`` to let the
    database assign one.
    """
    def _make(*, id: int | None = None, questions=(), **fields) -> Form:
        fields.setdefault("title", "Feedback")
        fields.setdefault("created_by", owner_user.id)
        form = Form(id=id, **fields)
        form.questions = [
            Question(id=qid, question_text=text, question_type=qtype, position=position)
            for position, (qid, text, qtype) in enumerate(questions)
        ]
        db.add(form)
        db.commit()
        db.refresh(form)
        return form

    return _make


# =============================================================================
# Auth Fixtures
# =============================================================================

def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(user.id, user.email, user.role)
    return {"Authorization": f"Bearer {token}"}


# =============================================================================
# Client Fixtures
# =============================================================================

def _client(db: Session, headers: dict[str, str] | None = None) -> AsyncClient:
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    return AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers=headers or {},
    )


@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """Unauthenticated client for public endpoints."""
    async with _client(db) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def owner_client(db: Session, owner_user: User) -> AsyncGenerator[AsyncClient, None]:
    async with _client(db, auth_headers(owner_user)) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def other_client(db: Session, other_user: User) -> AsyncGenerator[AsyncClient, None]:
    async with _client(db, auth_headers(other_user)) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def admin_client(db: Session, admin_user: User) -> AsyncGenerator[AsyncClient, None]:
    async with _client(db, auth_headers(admin_user)) as c:
        yield c
    app.dependency_overrides.clear()
