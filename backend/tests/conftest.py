"""Shared fixtures for the forum backend tests."""
import os
import sys
from pathlib import Path

# must be set before database/config are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["APP_ENV"] = "test"
for _name in ("AI_PROVIDER", "AI_API_KEY", "GEMINI_API_KEY", "AI_API_URL"):
    os.environ.pop(_name, None)

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from auth import Identity, token_for  # noqa: E402
from cache import TTLCache  # noqa: E402
from database import Base, SessionLocal, engine  # noqa: E402
from events import EventLog  # noqa: E402
from main import create_app  # noqa: E402
from mutation_service import MutationService  # noqa: E402
from post_store import PostStore  # noqa: E402

ALICE = Identity(id="u-alice", display_name="alice", role="learner")
BOB = Identity(id="u-bob", display_name="bob", role="learner")
PROF = Identity(id="u-prof", display_name="prof", role="instructor")


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeProvider:
    """Provider stand-in: returns queued replies in order, or raises ``error``."""

    provider = "fake"

    def __init__(self, *replies, error: Exception = None):
        self.replies = list(replies)
        self.error = error
        self.prompts = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        if len(self.replies) > 1:
            return self.replies.pop(0)
        return self.replies[0] if self.replies else ""


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def store(db):
    return PostStore(db)


@pytest.fixture
def event_log():
    return EventLog()


@pytest.fixture
def service(store, event_log):
    return MutationService(store, event_log)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return TTLCache(ttl_sec=300, max_entries=100, clock=clock)


@pytest.fixture
def make_client(db):
    """Factory for a TestClient around a fresh app; ``provider=None`` means fallback only."""
    clients = []

    def _make(provider=None):
        client = TestClient(create_app(provider=provider))
        client.__enter__()
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client):
    return make_client()


def auth_header(identity: Identity) -> dict:
    return {"Authorization": f"Bearer {token_for(identity)}"}
