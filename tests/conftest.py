import os

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool

# Set environment variables for testing before importing application modules
os.environ["WEBGUI_API_URL"] = "http://webgui.test"

# Import logging configuration
from tests.conftest_logging import configure_test_logging

from webgui_client.api_client import WebGUIClient
from webgui_core.database import TableDatabase
from webgui_core.main import create_app

API_URL = "http://webgui.test"

USERS = [
    (1, "alice@example.com", "Alice"),
    (2, "bob@example.com", "Bob"),
    (3, "carol@example.com", None),
]


def create_test_engine():
    """In-memory SQLite shared by every connection of the engine."""
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


def seed(engine, event_count: int = 0):
    """Creates the sample tables used across the test suite."""
    with engine.begin() as conn:
        conn.execute(text(
            "CREATE TABLE users ("
            " id INTEGER PRIMARY KEY,"
            " email TEXT UNIQUE NOT NULL,"
            " name TEXT)"
        ))
        conn.execute(
            text("INSERT INTO users (id, email, name) VALUES (:id, :email, :name)"),
            [{"id": i, "email": e, "name": n} for i, e, n in USERS],
        )
        conn.execute(text("CREATE TABLE logs (message TEXT, level TEXT DEFAULT 'info')"))
        conn.execute(text("INSERT INTO logs (message) VALUES ('started')"))
        conn.execute(text("CREATE TABLE events (id INTEGER PRIMARY KEY, label TEXT NOT NULL)"))
        if event_count:
            conn.execute(
                text("INSERT INTO events (id, label) VALUES (:id, :label)"),
                [{"id": i, "label": f"event-{i}"} for i in range(1, event_count + 1)],
            )


@pytest.fixture
def engine():
    engine = create_test_engine()
    seed(engine, event_count=120)
    yield engine
    engine.dispose()


@pytest.fixture
def writable_db(engine):
    return TableDatabase(engine=engine, readonly=False)


@pytest.fixture
def readonly_db(engine):
    return TableDatabase(engine=engine, readonly=True)


@pytest.fixture
def writable_app(writable_db):
    return create_app(writable_db)


@pytest.fixture
def readonly_app(readonly_db):
    return create_app(readonly_db)


@pytest.fixture
def http_client(writable_app):
    """A TestClient against the writable core app."""
    return TestClient(writable_app)


@pytest.fixture
def readonly_http_client(readonly_app):
    """A TestClient against the read-only core app."""
    return TestClient(readonly_app)


@pytest.fixture
async def backend_api(writable_app):
    """A WebGUIClient wired straight to the writable core app."""
    client = WebGUIClient(base_url=API_URL, transport=httpx.ASGITransport(app=writable_app))
    yield client
    await client.close()


@pytest.fixture
async def mock_api():
    """A WebGUIClient meant to be used together with respx routes on API_URL."""
    client = WebGUIClient(base_url=API_URL)
    yield client
    await client.close()


@pytest.fixture
def users_schema():
    """Schema payload of the users table, as the backend reports it."""
    return [
        {"name": "id", "type": "INTEGER", "not_null": False, "default_value": None, "primary_key": True},
        {"name": "email", "type": "TEXT", "not_null": True, "default_value": None, "primary_key": False},
        {"name": "name", "type": "TEXT", "not_null": False, "default_value": None, "primary_key": False},
    ]


@pytest.fixture
def users_page():
    """First page of the users table, as the backend reports it."""
    return {
        "columns": ["id", "email", "name"],
        "rows": [[i, e, n] for i, e, n in USERS],
        "total": 3,
        "page": 1,
        "limit": 50,
    }
