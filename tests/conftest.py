"""
Test configuration and fixtures.

Provides:
- Fresh schema per test (in-memory SQLite unless DATABASE_URL is set)
- Seeded departments and users holding each portal role
- Session token minting for authenticated tests
- HTTPX AsyncClient wired to the test session
"""
import os
import uuid
from typing import AsyncGenerator, Callable, Generator

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ["RATE_LIMIT_API"] = "0"
os.environ["STATUS_EMAILS_ENABLED"] = "false"
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session

from grievance_api.core.access import Capabilities
from grievance_api.core.config import settings
from grievance_api.core.deps import get_db
from grievance_api.core.security import create_session_token
from grievance_api.db.base import Base
from grievance_api.db.enums import Role
from grievance_api.db.models import Department, User
from grievance_api.db.session import SessionLocal, engine
from grievance_api.main import app
from grievance_api.services import directory_service


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Session over a freshly created schema with the default departments.

    App code commits through UnitOfWork, so isolation comes from rebuilding
    the schema rather than from an outer rollback.
    """
    Base.metadata.create_all(engine)
    session = SessionLocal()
    directory_service.seed_departments(session)
    session.commit()

    yield session

    session.close()
    Base.metadata.drop_all(engine)


@pytest.fixture
def departments(db: Session) -> dict[str, Department]:
    return {d.name: d for d in directory_service.list_departments(db)}


@pytest.fixture
def make_user(db: Session, departments: dict[str, Department]) -> Callable[..., User]:
    """Factory: make_user(role=Role.NODAL_OFFICER, department="Hostel")."""

    def _make(
        role: Role | None = None,
        department: str | None = None,
        full_name: str = "Test User",
        email: str | None = None,
    ) -> User:
        user = directory_service.create_user(
            db,
            email or f"user-{uuid.uuid4().hex[:8]}@uni.ac.in",
            full_name,
            role=role,
            department_id=departments[department].id if department else None,
        )
        db.commit()
        return user

    return _make


@pytest.fixture
def student(make_user) -> User:
    return make_user(full_name="Asha Student")


@pytest.fixture
def other_student(make_user) -> User:
    return make_user(full_name="Ravi Student")


@pytest.fixture
def hostel_officer(make_user) -> User:
    return make_user(Role.NODAL_OFFICER, "Hostel", full_name="Hostel Nodal")


@pytest.fixture
def hostel_head(make_user) -> User:
    return make_user(Role.DEPARTMENT_HEAD, "Hostel", full_name="Hostel Head")


@pytest.fixture
def library_officer(make_user) -> User:
    return make_user(Role.NODAL_OFFICER, "Library", full_name="Library Nodal")


@pytest.fixture
def admin(make_user) -> User:
    return make_user(Role.SUPER_ADMIN, full_name="Super Admin")


@pytest.fixture
def caps_for(db: Session) -> Callable[[User], Capabilities]:
    return lambda user: directory_service.resolve_capabilities(db, user.id)


# =============================================================================
# Auth Fixtures
# =============================================================================


def token_for(db: Session, user: User) -> str:
    roles = directory_service.role_payload(directory_service.get_role_assignments(db, user.id))
    return create_session_token(user.id, user.email, roles, user.token_version)


@pytest.fixture
def auth_headers(db: Session) -> Callable[[User], dict[str, str]]:
    """auth_headers(user) -> headers carrying a fresh session token."""
    return lambda user: {settings.AUTH_HEADER: token_for(db, user)}


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path / "uploads"))
    return tmp_path / "uploads"


# =============================================================================
# Client Fixtures
# =============================================================================


@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient sharing the test session; pass auth_headers(user) per request."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
