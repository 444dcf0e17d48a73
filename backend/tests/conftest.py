"""
Portfolio Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test that touches storage gets its own file-backed SQLite
       database under tmp_path, created from the ORM metadata, so tests
       never share state.

Fixture Hierarchy (all function-scoped):
    ├── db_engine:       async engine on a fresh SQLite file
    ├── session_factory: async_sessionmaker bound to db_engine
    ├── clock:           deterministic UTC clock, +1 second per call
    ├── store:           ContactInfoStore wired to the above, no retry waits
    ├── editor / admin / viewer: Actors with different capabilities
    ├── make_token:      signs bearer tokens with the test secret
    └── test_client:     HTTPX AsyncClient on a fresh app using `store`
"""

import os
import tempfile
from datetime import datetime, timedelta, timezone

# Settings are read at import time, so the environment is set first
os.environ["DATABASE_URL"] = (
    f"sqlite+aiosqlite:///{tempfile.mkdtemp(prefix='portfolio_test_')}/app.db"
)
os.environ["JWT_SECRET"] = "test-secret-not-for-production-use-0123456789"
os.environ["JWT_ALGORITHM"] = "HS256"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"

import jwt  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from portfolio.config import settings  # noqa: E402
from portfolio.database import build_engine, build_session_factory, create_schema  # noqa: E402
from portfolio.services.auth_service import EDIT_PROFILE, Actor  # noqa: E402
from portfolio.services.contact_info_store import ContactInfoStore  # noqa: E402
from portfolio.services.history_log import HistoryLog  # noqa: E402


class TickingClock:
    """Returns `start`, `start + step`, `start + 2*step`, ... on each call."""

    def __init__(self, start: datetime, step: timedelta = timedelta(seconds=1)):
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path}/contact_info.db")
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return build_session_factory(db_engine)


@pytest.fixture
def clock():
    return TickingClock(datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def store(session_factory, clock):
    return ContactInfoStore(
        session_factory,
        HistoryLog(session_factory),
        clock=clock,
        max_attempts=3,
        min_wait=0,
        max_wait=0,
    )


@pytest.fixture
def editor():
    return Actor(subject="editor-1", role="user", permissions=frozenset({EDIT_PROFILE}))


@pytest.fixture
def admin():
    return Actor(subject="admin-1", role="admin")


@pytest.fixture
def viewer():
    return Actor(subject="viewer-1", role="user")


@pytest.fixture
def make_token():
    """
    Signs a bearer token with the test secret.

    Usage:
        headers = {"Authorization": f"Bearer {make_token('u1', permissions=[...])}"}
    """

    def _make(subject="admin-1", role="user", permissions=None, expires_in=timedelta(hours=1), **claims):
        payload = {"role": role, "exp": datetime.now(timezone.utc) + expires_in, **claims}
        if subject is not None:
            payload["sub"] = subject
        if permissions is not None:
            payload["permissions"] = permissions
        return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)

    return _make


@pytest_asyncio.fixture
async def test_client(store):
    """
    HTTPX AsyncClient talking to a fresh app whose routes use `store`.

    ASGITransport does not run the lifespan, so the module-level engine is
    never touched.
    """
    from portfolio.main import create_app
    from portfolio.routes.dependencies import get_contact_info_store

    app = create_app()
    app.dependency_overrides[get_contact_info_store] = lambda: store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
