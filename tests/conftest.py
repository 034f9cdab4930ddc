"""Root conftest — shared test configuration and fixtures.

Invariants:
    - Every test app gets a fresh InMemoryAccountStore
    - Settings built explicitly — tests never depend on a developer's .env values
"""

import os

import pytest
from httpx import ASGITransport, AsyncClient

os.environ.setdefault("LOG_FORMAT", "text")

from boundary.config import Settings  # noqa: E402
from boundary.infrastructure.account_store import InMemoryAccountStore  # noqa: E402
from boundary.main import create_app  # noqa: E402

AUTH_HEADERS = {"Authorization": "Bearer test-token"}


@pytest.fixture
def settings():
    return Settings(
        app_name="boundary-test",
        app_version="0.0.1",
        service_timeout_seconds=5.0,
        disconnect_poll_seconds=0.05,
        log_format="text",
    )


@pytest.fixture
def account_store():
    return InMemoryAccountStore()


@pytest.fixture
def app(settings, account_store):
    return create_app(settings, account_store=account_store)


@pytest.fixture
async def client(app):
    """HTTP client bound to the app in-process."""
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c


@pytest.fixture
def auth_headers():
    return dict(AUTH_HEADERS)
