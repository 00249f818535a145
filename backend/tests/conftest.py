"""
Potluck Backend: Test Configuration (conftest.py)
==================================================

Shared fixtures for the whole suite.

Fixture Hierarchy (all function-scoped):
    test_settings ── in-memory SQLite, fixed secret, cheap bcrypt, tmp storage
    ├── local_storage ── LocalObjectStorage under tmp_path
    ├── app ── create_app(test_settings, storage=local_storage), tables created
    │   ├── session ── AsyncSession on the app's engine (direct DB assertions)
    │   └── test_client ── httpx AsyncClient over ASGITransport
    └── failing_app / failing_client ── same, but every upload fails

Every test gets its own app, engine and database, so nothing leaks between
tests.
"""

import os
import tempfile
from typing import AsyncGenerator, Dict
from uuid import UUID

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

# Importing potluck.main builds a module-level app from the environment;
# keep it away from PostgreSQL and the working directory
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("STORAGE_ROOT", tempfile.mkdtemp(prefix="potluck_test_"))
os.environ.setdefault("LOG_LEVEL", "WARNING")

from potluck.config import Settings  # noqa: E402
from potluck.database import dispose_engine, init_models  # noqa: E402
from potluck.exceptions import UploadError  # noqa: E402
from potluck.main import create_app  # noqa: E402
from potluck.services.storage import LocalObjectStorage, ObjectStorage  # noqa: E402

TEST_SECRET = "test-secret-not-for-production"

# Minimal JPEG: SOI + JFIF header + EOI. Enough for content-type checks.
JPEG_BYTES = (
    b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00"
    b"\xff\xd9"
)


class FailingStorage(ObjectStorage):
    """Object store double whose writes always fail."""

    def __init__(self):
        self.put_calls = 0
        self.deleted = []

    async def put_object(self, key: str, data: bytes, content_type: str) -> str:
        self.put_calls += 1
        raise UploadError(context={"key": key, "reason": "simulated outage"})

    async def delete_object(self, key: str) -> None:
        self.deleted.append(key)

    async def check(self) -> bool:
        return False


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url="sqlite+aiosqlite://",
        jwt_secret_key=TEST_SECRET,
        bcrypt_rounds=4,
        storage_backend="local",
        storage_root=str(tmp_path / "storage"),
        public_base_url="http://test",
        log_level="WARNING",
    )


@pytest.fixture
def local_storage(test_settings) -> LocalObjectStorage:
    return LocalObjectStorage(
        root=test_settings.storage_root,
        public_base_url=test_settings.public_base_url,
    )


@pytest.fixture
def sample_image_bytes() -> bytes:
    return JPEG_BYTES


async def _build_app(settings: Settings, storage: ObjectStorage):
    app = create_app(settings, storage=storage)
    await init_models(app.state.engine)
    return app


@pytest_asyncio.fixture
async def app(test_settings, local_storage):
    """
    Application wired to an in-memory database.

    ASGITransport does not run the lifespan, so tables are created here.
    """
    application = await _build_app(test_settings, local_storage)
    yield application
    await dispose_engine(application.state.engine)


@pytest_asyncio.fixture
async def failing_app(test_settings):
    application = await _build_app(test_settings, FailingStorage())
    yield application
    await dispose_engine(application.state.engine)


@pytest_asyncio.fixture
async def session(app) -> AsyncGenerator[AsyncSession, None]:
    async with app.state.session_factory() as db:
        yield db


def _client(application) -> AsyncClient:
    transport = ASGITransport(app=application, raise_app_exceptions=False)
    return AsyncClient(transport=transport, base_url="http://test")


@pytest_asyncio.fixture
async def test_client(app) -> AsyncGenerator[AsyncClient, None]:
    """
    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    async with _client(app) as client:
        yield client


@pytest_asyncio.fixture
async def failing_client(failing_app) -> AsyncGenerator[AsyncClient, None]:
    async with _client(failing_app) as client:
        yield client


# ══════════════════════════════════════════════════════════════════════════
# API Helpers
# ══════════════════════════════════════════════════════════════════════════

async def signup(
    client: AsyncClient,
    email: str = "test@example.com",
    password: str = "password123",
    username: str = "tester",
):
    return await client.post(
        "/signup",
        data={
            "username": username,
            "email": email,
            "date_of_birth": "1990-01-01",
            "password": password,
        },
        files={"media": ("avatar.jpg", JPEG_BYTES, "image/jpeg")},
    )


async def register_and_login(
    client: AsyncClient,
    email: str = "test@example.com",
    password: str = "password123",
    username: str = "tester",
) -> Dict[str, object]:
    """Create a user and return {"id": UUID, "headers": {...}} for API calls."""
    created = await signup(client, email=email, password=password, username=username)
    assert created.status_code == 201, created.text
    login = await client.post("/login", data={"email": email, "password": password})
    assert login.status_code == 200, login.text
    return {
        "id": UUID(created.json()["id"]),
        "headers": {"Authorization": f"Bearer {login.json()['token']}"},
    }


@pytest_asyncio.fixture
async def alice(test_client) -> Dict[str, object]:
    return await register_and_login(test_client, email="alice@example.com", username="alice")


@pytest_asyncio.fixture
async def bob(test_client) -> Dict[str, object]:
    return await register_and_login(test_client, email="bob@example.com", username="bob")
