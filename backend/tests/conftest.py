import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine, select  # noqa: E402

from bracketeer.database import get_session  # noqa: E402
from bracketeer.main import app  # noqa: E402
from bracketeer.models.match import Match  # noqa: E402
from bracketeer.models.participant import Participant  # noqa: E402
from bracketeer.models.tournament import FORMAT_SINGLE_ELIMINATION, Tournament  # noqa: E402
from bracketeer.services.notification_service import get_notification_sink  # noqa: E402

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. sqlite:///:memory: with StaticPool so ALL sessions share the same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. Tables created and dropped per test (see session_fixture)
# 4. get_session and get_notification_sink overridden for the app (see client_fixture)
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


class RecordingSink:
    """Notification sink that keeps every request in memory."""

    def __init__(self):
        self.requests = []

    def enqueue(self, requests):
        self.requests.extend(requests)

    def of_type(self, kind):
        return [r for r in self.requests if r.type == kind]

    def recipients(self, kind):
        return sorted(r.recipient_id for r in self.of_type(kind))


def override_get_session():
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    # Import all models so they're registered BEFORE create_all
    import bracketeer.models  # noqa: F401

    SQLModel.metadata.create_all(test_engine)
    with Session(test_engine) as session:
        yield session
    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="sink")
def sink_fixture():
    return RecordingSink()


@pytest.fixture(name="client")
def client_fixture(session: Session, sink: RecordingSink):
    """Test client wired to the in-memory engine and the recording sink"""
    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_notification_sink] = lambda: sink

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def make_tournament(session: Session):
    """Create a tournament with ``n`` participants seeded 1..n (Player 1 is the top seed)."""

    def _make(n, format=FORMAT_SINGLE_ELIMINATION, **kwargs):
        tournament = Tournament(name=f"{format} x{n}", format=format, **kwargs)
        session.add(tournament)
        session.commit()
        session.refresh(tournament)

        players = [
            Participant(tournament_id=tournament.id, user_id=f"user-{i}", display_name=f"Player {i}", seed=i)
            for i in range(1, n + 1)
        ]
        session.add_all(players)
        session.commit()
        for p in players:
            session.refresh(p)
        return tournament, players

    return _make


@pytest.fixture
def positions(session: Session):
    """Map bracket position -> Match for a tournament, re-read from the database."""

    def _positions(tournament_id):
        session.expire_all()
        matches = session.exec(select(Match).where(Match.tournament_id == tournament_id)).all()
        return {m.bracket_position: m for m in matches}

    return _positions
