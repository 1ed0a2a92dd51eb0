"""
Pytest fixtures for extguard tests.

Unit tests use an in-memory SQLite session (sync_db_session) or a store wired
to an ``httpx.MockTransport``. Integration tests drive the FastAPI app, either
through TestClient or by pointing a BlocklistStore at it via ASGITransport.
"""

from __future__ import annotations

import json
import os

# Settings are read at import time; keep tests off the default PostgreSQL URL.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SEED_DEFAULT_EXTENSIONS", "false")

from typing import Callable, Generator

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from extguard.db.base import Base
from extguard.db.session import get_db
from extguard.main import app
from extguard.models.custom_extension import CustomExtension
from extguard.models.fixed_extension import FixedExtension
from extguard.services.authority import AuthorityClient
from extguard.services.blocklist_store import BlocklistStore


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def sync_db_session() -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)

    TestSession = sessionmaker(bind=engine)
    session = TestSession()

    yield session

    session.close()
    engine.dispose()


@pytest.fixture
def override_db(sync_db_session):
    def override_get_db():
        yield sync_db_session

    app.dependency_overrides[get_db] = override_get_db
    yield sync_db_session
    app.dependency_overrides.clear()


@pytest.fixture
def sync_client(override_db) -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
async def asgi_store(override_db):
    """BlocklistStore talking to the real app over ASGITransport."""
    client = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")
    async with AuthorityClient(client) as authority:
        yield BlocklistStore(authority)


@pytest.fixture
def seeded_rules(sync_db_session):
    """exe (blocked) and bat (allowed) fixed rules plus one custom rule."""
    sync_db_session.add_all(
        [
            FixedExtension(extension="exe", description="Windows executable", is_blocked=True),
            FixedExtension(extension="bat", description="Windows batch file", is_blocked=False),
            CustomExtension(extension="custom1"),
        ]
    )
    sync_db_session.commit()
    return sync_db_session


class FakeAuthority:
    """
    Route table for httpx.MockTransport.

    Handlers are keyed by (method, path) and return (status, payload). Every
    request is recorded as (method, path, json_body) so tests can assert on
    the exact call sequence.
    """

    def __init__(self):
        self.routes: dict[tuple[str, str], Callable[[httpx.Request], tuple[int, object]]] = {}
        self.calls: list[tuple[str, str, object]] = []
        self.fixed: list[dict] = []
        self.custom: list[dict] = []
        self.on(
            "GET", "/api/extensions/fixed", lambda _: (200, {"success": True, "data": self.fixed})
        )
        self.on(
            "GET", "/api/extensions/custom", lambda _: (200, {"success": True, "data": self.custom})
        )

    def on(self, method: str, path: str, handler) -> None:
        self.routes[(method, path)] = handler

    def reply(self, method: str, path: str, status: int, payload: object) -> None:
        self.on(method, path, lambda _: (status, payload))

    def paths(self, method: str | None = None) -> list[str]:
        return [path for m, path, _ in self.calls if method is None or m == method]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        self.calls.append((request.method, request.url.path, body))
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(
                404, json={"success": False, "status": 404, "message": "No route"}
            )
        status, payload = handler(request)
        return httpx.Response(status, json=payload)


@pytest.fixture
def fake_authority() -> FakeAuthority:
    return FakeAuthority()


@pytest.fixture
async def store(fake_authority):
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(fake_authority), base_url="http://authority"
    )
    async with AuthorityClient(client) as authority:
        yield BlocklistStore(authority)
