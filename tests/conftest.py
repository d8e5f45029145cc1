"""
Pytest configuration and fixtures for backend testing
"""

import os
import tempfile
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

# Set test environment before the app reads it
_TEST_ROOT = Path(tempfile.mkdtemp(prefix="unilib-tests-"))
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_ROOT}/test.db"
os.environ["BLOB_STORAGE_DIR"] = str(_TEST_ROOT / "media")
os.environ["AUTO_MIGRATE"] = "false"
os.environ["SEED_TAXONOMY"] = "false"

from app.main import app  # noqa: E402
from app.db.config import get_session, register_sqlite_functions  # noqa: E402
from app.models.persisted_library import Base, ResourceRecord  # noqa: E402
from app.services.blob_storage import LocalBlobSink, get_blob_sink  # noqa: E402


@pytest.fixture(scope="session")
def test_client():
    """Create a test client for FastAPI application"""
    with TestClient(app) as client:
        yield client


@pytest.fixture
async def session_factory(tmp_path):
    """Fresh SQLite database per test with the library schema created"""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path}/library.db",
        future=True,
        poolclass=NullPool,
    )
    register_sqlite_functions(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    yield factory
    await engine.dispose()


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:  # type: ignore
        yield s


@pytest.fixture
def blob_sink(tmp_path):
    return LocalBlobSink(root=tmp_path / "blobs", base_url="")


@pytest.fixture
async def test_app(session_factory, blob_sink):
    """App with database and blob storage pointed at per-test locations"""
    async def override_session():
        async with session_factory() as s:  # type: ignore
            yield s

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_blob_sink] = lambda: blob_sink
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def client(test_app):
    transport = ASGITransport(app=test_app)
    async with AsyncClient(
        transport=transport, base_url="http://test"
    ) as c:
        yield c


@pytest.fixture
def make_resource(session):
    """Insert a resource row directly, with an explicit creation time"""
    base = datetime(2025, 1, 1, 9, 0, 0)
    counter = {"n": 0}

    async def _make(**overrides) -> ResourceRecord:
        counter["n"] += 1
        values = {
            "title": f"Resource {counter['n']}",
            "description": None,
            "file_name": f"resource-{counter['n']}.pdf",
            "file_url": f"/api/v1/files/key{counter['n']}/resource.pdf",
            "file_type": "application/pdf",
            "category": "Notes",
            "course": None,
            "specialization": None,
            "created_at": base + timedelta(minutes=counter["n"]),
        }
        values.update(overrides)
        record = ResourceRecord(**values)
        session.add(record)
        await session.commit()
        await session.refresh(record)
        return record

    return _make


def pytest_collection_modifyitems(config, items):
    """Add markers to tests based on their location"""
    for item in items:
        if "api" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# Helper functions for tests
def assert_response_success(response, expected_status=200):
    """Assert that response is successful"""
    assert response.status_code == expected_status, f"Expected {expected_status}, got {response.status_code}: {response.text}"


def assert_response_error(response, expected_status=400):
    """Assert that response is an error"""
    assert response.status_code == expected_status, f"Expected error {expected_status}, got {response.status_code}"


def pdf_bytes(size: int) -> bytes:
    """A PDF-looking payload of exactly ``size`` bytes"""
    header = b"%PDF-1.4\n"
    return header + b"0" * (size - len(header))
