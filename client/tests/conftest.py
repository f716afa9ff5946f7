from __future__ import annotations

import os
from collections.abc import AsyncIterator
from typing import Final

import httpx
import pytest
import pytest_asyncio

_TEST_ENV_VARS: Final[dict[str, str]] = {
    "APP_ENV": "test",
    "BACKEND_URL": "http://testserver",
    "SIGN_IN_PATH": "/login",
}

for key, value in _TEST_ENV_VARS.items():
    os.environ.setdefault(key, value)

from rental_client.core.http import AuthenticatedGateway  # noqa: E402
from rental_client.core.session import AuthSession, InMemoryNavigator  # noqa: E402
from rental_client.schemas.auth import UserProfile, UserRole  # noqa: E402
from tests.helpers import API_BASE_URL, BackendStub  # noqa: E402


@pytest.fixture()
def backend() -> BackendStub:
    return BackendStub()


@pytest.fixture()
def auth_session() -> AuthSession:
    return AuthSession()


@pytest.fixture()
def navigator() -> InMemoryNavigator:
    return InMemoryNavigator("/dashboard")


@pytest.fixture()
def owner() -> UserProfile:
    return UserProfile(id="owner-1", email="owner@example.com", name="Olga", role=UserRole.OWNER)


@pytest.fixture()
def renter() -> UserProfile:
    return UserProfile(
        id="renter-7",
        email="renter@example.com",
        name="Ravi",
        role=UserRole.RENTER,
    )


@pytest_asyncio.fixture()
async def gateway(
    backend: BackendStub,
    auth_session: AuthSession,
    navigator: InMemoryNavigator,
) -> AsyncIterator[AuthenticatedGateway]:
    async with AuthenticatedGateway(
        auth_session,
        navigator,
        base_url=API_BASE_URL,
        transport=httpx.MockTransport(backend),
    ) as client:
        yield client
