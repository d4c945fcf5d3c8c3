import os
import tempfile
import uuid
from pathlib import Path

_DB_PATH = Path(tempfile.mkdtemp(prefix="carenotes-tests-")) / "carenotes.db"

os.environ["DATABASE_URL"] = f"sqlite:///{_DB_PATH}"
os.environ["AUTH_SECRET"] = "test-secret-with-at-least-thirty-two-characters"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["PIN_HASH_ROUNDS"] = "4"
os.environ["NOTIFICATION_MOCK_MODE"] = "true"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from carenotes.auth.sessions import AuthSession, issue_session_token  # noqa: E402
from carenotes.db.base import Base  # noqa: E402
from carenotes.db.session import SessionLocal, engine  # noqa: E402
from carenotes.main import app  # noqa: E402
from carenotes.models import Organization  # noqa: E402
from carenotes.tenancy.context import build_tenant_context  # noqa: E402
from carenotes.tenancy.permissions import KNOWN_FEATURES  # noqa: E402
from carenotes.tenancy.regions import Region  # noqa: E402


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app, follow_redirects=False)


@pytest.fixture
def make_org(db):
    def _make(
        region: Region = Region.UK_ENGLAND,
        features=None,
        settings=None,
        timezone: str = "Europe/London",
        is_active: bool = True,
    ) -> Organization:
        organization = Organization(
            tenant_id=f"tenant-{uuid.uuid4().hex[:8]}",
            name="Test Care Home",
            region=region,
            timezone=timezone,
            features=sorted(KNOWN_FEATURES) if features is None else list(features),
            settings=settings or {},
            is_active=is_active,
        )
        db.add(organization)
        db.commit()
        return organization

    return _make


def session_for(organization, role: str = "manager", **overrides) -> AuthSession:
    claims = {
        "user_id": "user-1",
        "role": role,
        "organization_id": str(organization.id),
        "email": "manager@example.com",
        "name": "Test Manager",
    }
    claims.update(overrides)
    return AuthSession(**claims)


def auth_headers(organization, role: str = "manager", **overrides) -> dict[str, str]:
    token = issue_session_token(session_for(organization, role, **overrides))
    return {"Authorization": f"Bearer {token}"}


def context_for(organization, role: str = "manager"):
    return build_tenant_context(session_for(organization, role), organization)


@pytest.fixture(name="auth_headers")
def auth_headers_fixture():
    return auth_headers


@pytest.fixture(name="context_for")
def context_for_fixture():
    return context_for
