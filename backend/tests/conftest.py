"""
Notecard — Test Configuration (conftest.py)
=============================================

What:  Shared pytest fixtures for the entire test suite.
How:   Environment is pointed at throwaway SQLite and storage locations before
       any notecard module is imported; the app's database and storage
       dependencies are swapped through app.dependency_overrides.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── db_engine / session_factory / db_session: SQLite file under tmp_path
    ├── mock_db_session: AsyncMock session for failure paths
    ├── storage: LocalStorageService rooted in tmp_path
    ├── session_token / other_session_token / auth_headers
    ├── sample_png_bytes / sample_image_bytes
    └── test_client: HTTPX AsyncClient bound to the app
"""

import os
import tempfile
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup (before any notecard import)
# ══════════════════════════════════════════════════════════════════════════

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./notecard_test.db"
os.environ["AUTH_SECRET"] = "test-secret-not-real-0123456789abcdef"
os.environ["STORAGE_BACKEND"] = "local"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="notecard_test_")
os.environ["ROLLBACK_ON_UPLOAD_FAILURE"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool  # noqa: E402

from notecard.auth import create_session_token  # noqa: E402
from notecard.config import settings  # noqa: E402
from notecard.database import Base, get_db_session  # noqa: E402
from notecard.models.note import Note  # noqa: E402,F401
from notecard.services.storage_service import (  # noqa: E402
    LocalStorageService,
    get_storage_service,
)


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'notes.db'}",
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    A MagicMock that simulates AsyncSession behavior.

    Usage:
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception())
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Storage, sessions, payloads
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def storage(tmp_path):
    return LocalStorageService(
        str(tmp_path / "storage"),
        secret=settings.auth_secret,
        algorithm=settings.auth_algorithm,
        url_expires=900,
    )


@pytest.fixture
def session_token():
    return create_session_token("alice", identity_id="eu-west-1:alice")


@pytest.fixture
def other_session_token():
    return create_session_token("bob")


@pytest.fixture
def auth_headers(session_token):
    return {"Authorization": f"Bearer {session_token}"}


@pytest.fixture
def sample_png_bytes():
    """A 1x1 RGBA PNG: signature, IHDR, IDAT, IEND."""
    return bytes.fromhex(
        "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
        "1f15c4890000000d49444154789c63f8ffff3f0005fe02fe0def46b8"
        "0000000049454e44ae426082"
    )


@pytest.fixture
def sample_image_bytes():
    """Minimal JPEG: SOI + JFIF marker + EOI."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


# ══════════════════════════════════════════════════════════════════════════
# HTTP client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory, storage):
    """
    HTTPX AsyncClient talking to the app over ASGITransport.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from notecard.main import app

    async def override_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_db_session
    app.dependency_overrides[get_storage_service] = lambda: storage

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
