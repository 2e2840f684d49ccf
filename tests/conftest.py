"""
Shared pytest fixtures for the civic dispatch test suite.

Unit tests get a fresh SQLite file per test. API tests run the real app
against a throwaway SQLite database configured before the app is imported.
"""

import os
import tempfile

_TMP = tempfile.mkdtemp(prefix="civic-dispatch-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP, 'api.db')}"
os.environ["JWT_SECRET"] = "test-secret-for-civic-dispatch-suite-0123456789"
os.environ["DISPATCH_POLICY"] = "category"
os.environ["STRICT_WRITES"] = "false"
os.environ.pop("ROUTING_TABLE_PATH", None)

import pytest
from sqlalchemy import create_engine, delete
from sqlalchemy.orm import sessionmaker

from civic_dispatch.db.base import Base
from civic_dispatch.models.collection import StoredCollection
from civic_dispatch.schemas.issue import Coordinates, Issue, IssueStatus
from civic_dispatch.services.dispatch import CategoryRoutingPolicy
from civic_dispatch.services.issues import IssueService
from civic_dispatch.services.notifier import ChangeNotifier
from civic_dispatch.services.store import ReportStore

HOUR_MS = 60 * 60 * 1000
T0 = 1_700_000_000_000

WATER = "Priya (Water)"
ROADS = "Rajesh (Roads)"
SANITATION = "Amit (Sanitation)"


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = T0):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeMonotonic:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'unit.db'}", connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def store(db):
    return ReportStore(db, strict=False)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def local_notifier():
    return ChangeNotifier()


@pytest.fixture
def service(db, store, clock, local_notifier):
    return IssueService(
        db, store=store, policy=CategoryRoutingPolicy(), notifier=local_notifier, clock=clock
    )


@pytest.fixture
def make_issue():
    """Factory for Issue records with sensible defaults."""

    def _make(
        id,
        category="Pothole",
        lat=None,
        lng=None,
        assigned=ROADS,
        resolved_at=None,
        upvotes=0,
        downvotes=0,
    ):
        return Issue(
            id=id,
            issue_type=category,
            description=f"{category} report",
            coordinates=Coordinates(lat=lat, lng=lng) if lat is not None else None,
            status=IssueStatus.resolved if resolved_at is not None else IssueStatus.pending,
            assigned_name=assigned,
            assigned_phone="000",
            upvotes=upvotes,
            downvotes=downvotes,
            resolved_at=resolved_at,
        )

    return _make


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from civic_dispatch.core.deps import viewers
    from civic_dispatch.core.ratelimit import limiter
    from civic_dispatch.db.session import SessionLocal
    from civic_dispatch.main import app
    from civic_dispatch.services.notifier import notifier

    limiter.enabled = False
    with TestClient(app) as c:
        with SessionLocal() as s:
            s.execute(delete(StoredCollection))
            s.commit()
        viewers.clear()
        notifier.clear()
        yield c
    viewers.clear()
    notifier.clear()


def login(client, official_id: str, password: str = "pass123") -> dict:
    resp = client.post("/auth/login", json={"officialId": official_id, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


@pytest.fixture
def water_headers(client):
    return login(client, "admin_water")


@pytest.fixture
def roads_headers(client):
    return login(client, "admin_roads")
