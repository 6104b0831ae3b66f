# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# Sets up the test environment before the application is imported
# (settings and the engine are built at import time) and provides a fresh
# SQLite database plus an HTTP client per test.
# =============================================================================

import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="storefront-tests-")

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/storefront.db"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-that-is-at-least-32-bytes-long"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["OTEL_ENABLED"] = "false"
os.environ["SEED_CATALOG"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

import httpx
import pytest

from helpers import register
from main import app
from shared.config.database import AsyncSessionLocal, Base, engine


@pytest.fixture
async def db_schema():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


@pytest.fixture
async def db(db_schema):
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture
async def client(db_schema):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def token_service():
    return app.state.token_service


@pytest.fixture
def hasher():
    return app.state.password_hasher


@pytest.fixture
async def alice_token(client):
    return await register(client, "alice@example.com")


@pytest.fixture
async def bob_token(client):
    return await register(client, "bob@example.com")
