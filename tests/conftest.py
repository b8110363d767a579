"""
Shared fixtures: fixed clock, in-memory local stores and an in-memory sync server
"""
import os

# The server module builds its engine at import time; keep it off the disk
os.environ.setdefault("TALENTBOOK_DATABASE_URL", "sqlite://")

from datetime import datetime, timezone

import pytest
import requests
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from talentbook.clock import FixedClock
from talentbook.database import MEMORY
from talentbook.storage import MemoryKeyValueStore
from talentbook.stores import LocalStore

START = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    return FixedClock(START)


@pytest.fixture
def kv():
    return MemoryKeyValueStore()


@pytest.fixture
def store(kv, clock):
    """Local store over a dict backend"""
    return LocalStore(kv, clock=clock)


@pytest.fixture
def sqlite_store(clock):
    """Local store over an in-memory SQLite database"""
    return LocalStore.open(MEMORY, clock=clock)


@pytest.fixture
def category_id(store):
    return store.categories.ordered()[0].id


@pytest.fixture
def server_engine():
    """Create an in-memory server database engine"""
    from talentbook.server.database import Base, init_db, make_engine

    engine = make_engine("sqlite://")
    init_db(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def server_session_factory(server_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=server_engine)


@pytest.fixture
def client(server_session_factory):
    """Create a test client with in-memory database"""
    from talentbook.server.database import get_db
    from talentbook.server.main import app

    def override_get_db():
        db = server_session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def make_user(session_factory, token, name="Test User"):
    from talentbook.server import crud

    db = session_factory()
    try:
        return crud.create_user(db, api_token=token, name=name).id
    finally:
        db.close()


@pytest.fixture
def token(server_session_factory):
    make_user(server_session_factory, "token-1")
    return "token-1"


@pytest.fixture
def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


class StaticToken:
    """Auth collaborator with a fixed token"""

    def __init__(self, token):
        self.token = token

    def get_session_token(self):
        return self.token


class ServerSession:
    """Routes SyncEngine's requests-style post() into a FastAPI TestClient"""

    def __init__(self, test_client):
        self.test_client = test_client
        self.calls = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        path = url.split("://", 1)[-1]
        path = path[path.index("/"):]
        result = self.test_client.post(path, json=json, headers=headers)

        response = requests.Response()
        response.status_code = result.status_code
        response._content = result.content
        response.reason = result.reason_phrase
        response.url = url
        return response
