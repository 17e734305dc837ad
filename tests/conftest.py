"""
Shared test fixtures.

Each test gets its own SQLite file under tmp_path. Tables are created
through a sync engine so the same database works for async service tests
and for TestClient-driven API tests (which run the app in their own loop).
"""

import os

os.environ.setdefault("AUTH_SECRET_KEY", "test-secret")
os.environ.setdefault("GEOLOCATION_ENABLED", "false")
os.environ.setdefault("CREATE_TABLES_ON_STARTUP", "false")

from datetime import datetime, timedelta, timezone

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from qr_redirect.core.client_manager import get_geolocation_service
from qr_redirect.core.request_context import RequestContext
from qr_redirect.core.security import TokenVerifier, get_token_verifier
from qr_redirect.db import models  # noqa: F401
from qr_redirect.db.models import QRCode, Visit, generate_id
from qr_redirect.db.session import get_session
from qr_redirect.db.sql_storage import SQLStorage
from qr_redirect.db.sqlite_adapter import SQLiteAdapter
from qr_redirect.main import app
from qr_redirect.services.geolocation import GeolocationService

TEST_SECRET = "test-secret"


def geolocation_with(handler) -> GeolocationService:
    """GeolocationService whose HTTP calls are answered by handler."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GeolocationService(client=client, url_template="https://geo.test/{ip}/json/", timeout=1.0)


def berlin_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        200,
        json={"ip": "1.2.3.4", "city": "Berlin", "country_name": "Germany", "country_code": "DE"},
    )


def failing_handler(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "test.db"
    sync_engine = create_engine(f"sqlite:///{path}")
    SQLModel.metadata.create_all(sync_engine)
    sync_engine.dispose()
    return path


@pytest.fixture
def count_rows(db_path):
    """Count rows of a table through a separate sync connection."""
    def _count(table: str) -> int:
        sync_engine = create_engine(f"sqlite:///{db_path}")
        try:
            with sync_engine.connect() as connection:
                return connection.execute(text(f"SELECT COUNT(*) FROM {table}")).scalar_one()
        finally:
            sync_engine.dispose()
    return _count


@pytest.fixture
def session_maker(db_path):
    engine = SQLiteAdapter().create_engine(f"sqlite+aiosqlite:///{db_path}")
    return async_sessionmaker(
        engine,
        class_=SQLModelAsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def storage(session):
    return SQLStorage(session)


@pytest.fixture
def geolocation():
    return geolocation_with(berlin_handler)


@pytest.fixture
def broken_geolocation():
    return geolocation_with(failing_handler)


@pytest.fixture
def desktop_context():
    return RequestContext(ip="1.2.3.4", device="Desktop")


@pytest.fixture
async def qr_code(storage):
    return await storage.create_qr_code(QRCode(
        id=generate_id(),
        user_id="u1",
        title="Site",
        target_url="https://example.com",
        slug="site-1",
    ))


def build_visit(qr_code_id: str, minutes_ago: int = 0, **fields) -> Visit:
    """Visit timestamped minutes_ago before 2025-03-01 12:00 UTC."""
    base = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
    return Visit(
        id=generate_id(),
        qr_code_id=qr_code_id,
        timestamp=base - timedelta(minutes=minutes_ago),
        **fields,
    )


@pytest.fixture
def make_visit():
    return build_visit


@pytest.fixture
def verifier():
    return TokenVerifier(TEST_SECRET)


@pytest.fixture
def auth_headers(verifier):
    def _headers(uid: str) -> dict:
        return {"Authorization": f"Bearer {verifier.issue(uid)}"}
    return _headers


@pytest.fixture
def api_geolocation():
    return geolocation_with(berlin_handler)


@pytest.fixture
def client(session_maker, api_geolocation, verifier):
    async def override_get_session():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_geolocation_service] = lambda: api_geolocation
    app.dependency_overrides[get_token_verifier] = lambda: verifier
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
