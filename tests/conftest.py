# tests/conftest.py
import pytest
from datetime import datetime, timedelta, timezone
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Make the project root importable
import sys
import os
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# Settings are read when main is imported, so the environment has to be ready first
TEST_CLIENT_ID = "test-client-id.apps.googleusercontent.com"
os.environ["GOOGLE_CLIENT_ID"] = TEST_CLIENT_ID
os.environ["SESSION_SECRET_KEY"] = "test-session-secret"
os.environ["DATABASE_URL_OVERRIDE"] = "sqlite://"

from main import app
from src.core.database import Base, enable_sqlite_foreign_keys
from src.core.dependencies import get_db, get_identity_verifier, get_session_manager
from src.core.errors import InvalidToken
from src.core.tasks import InlineTaskRunner
from src.auth.google_token import GoogleClaims
from src.sessions.manager import SessionManager

# Every model has to be imported before Base.metadata.create_all()
from src.users.models import User
from src.sessions.models import UserSession

# --- Test database ---
SQLALCHEMY_DATABASE_URL = "sqlite://"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
enable_sqlite_foreign_keys(engine)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def override_get_db() -> Generator[Session, None, None]:
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db


class FakeClock:
    """Controllable UTC clock for expiry tests."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, delta: timedelta) -> None:
        self.current = self.current + delta


class FakeVerifier:
    """Stands in for Google: knows a fixed set of tokens."""

    def __init__(self):
        self.tokens: dict[str, GoogleClaims] = {}

    def add(self, token: str, **claims) -> None:
        claims.setdefault("email_verified", True)
        self.tokens[token] = GoogleClaims(**claims)

    def verify(self, token: str) -> GoogleClaims:
        if token not in self.tokens:
            raise InvalidToken("Invalid credential.", detail="unknown test token")
        return self.tokens[token]


@pytest.fixture(scope="function")
def setup_database() -> Generator[None, None, None]:
    assert len(Base.metadata.tables) > 0, "SQLAlchemy models were not imported, Base.metadata is empty!"

    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture(scope="function")
def db_session(setup_database: None) -> Generator[Session, None, None]:
    db = TestingSessionLocal()
    yield db
    db.close()

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime.now(timezone.utc).replace(microsecond=0))

@pytest.fixture
def session_factory(setup_database: None) -> sessionmaker:
    return TestingSessionLocal

@pytest.fixture
def session_manager(session_factory: sessionmaker, clock: FakeClock) -> SessionManager:
    return SessionManager(session_factory, InlineTaskRunner(), clock=clock)

@pytest.fixture
def verifier() -> FakeVerifier:
    return FakeVerifier()

@pytest.fixture
def test_user(db_session: Session) -> User:
    user = User(id="g-123", email="a@b.com", name="A B", picture="https://example.com/a.png")
    db_session.add(user)
    db_session.commit()
    return user

@pytest.fixture(scope="function")
def client(
    setup_database: None, session_manager: SessionManager, verifier: FakeVerifier
) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_session_manager] = lambda: session_manager
    app.dependency_overrides[get_identity_verifier] = lambda: verifier
    yield TestClient(app)
    app.dependency_overrides.pop(get_session_manager, None)
    app.dependency_overrides.pop(get_identity_verifier, None)
