import os
import sys
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient


# Ensure project root is on sys.path so `api.*`, `services.*` imports work
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

# Settings are read at import time, so the test profile must be active first.
os.environ.setdefault("APP_PROFILE", "test")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("PASSWORD_HASH_ITERATIONS", "1000")


# Explicitly enable pytest-asyncio plugin for async tests/fixtures
pytest_plugins = ("pytest_asyncio",)


from config.settings import settings  # noqa: E402
from core.db import build_engine, build_session_maker, create_schema, get_db_session  # noqa: E402
from main import app  # noqa: E402


@pytest_asyncio.fixture()
async def db_engine():
    """A fresh in-memory database per test."""
    engine = build_engine(settings.TEST_DATABASE_URL)
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture()
async def session_maker(db_engine):
    return build_session_maker(db_engine)


@pytest_asyncio.fixture()
async def db_session(session_maker):
    """Session for calling services directly."""
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture()
async def client(session_maker):
    """Async test client for the API, bound to the per-test database."""

    async def _session_override():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db_session] = _session_override
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()


def address_payload(**overrides):
    payload = {
        "address_type": "Home",
        "address_line1": "1717 Old Forest Rd",
        "address_line2": None,
        "city": "Old Forest",
        "state": "Eriador",
        "zip_code": "17171",
        "country": "USA",
    }
    payload.update(overrides)
    return payload


def user_payload(**overrides):
    payload = {
        "username": "magicalwizardman4848",
        "email": "somewhere@someplace.com",
        "password": "oldforestsecret",
        "first_name": "Tom",
        "last_name": "Bombadil",
        "phone_number": "5746857273733",
        "profile_image_url": "www.someurl.com",
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def make_user_payload():
    return user_payload


@pytest.fixture()
def make_address_payload():
    return address_payload


@pytest_asyncio.fixture()
async def created_user(client):
    """A user (with one Home address) created through the API."""
    resp = await client.post("/v1/users", json=user_payload(address=address_payload()))
    assert resp.status_code == 201
    return resp.json()["data"]
