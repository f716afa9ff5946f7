from __future__ import annotations

import httpx
import pytest

from rental_client.core.errors import NotSignedInError
from rental_client.core.http import AuthenticatedGateway
from rental_client.core.session import AuthSession, SessionEvent, SessionEventType
from rental_client.repositories.auth import AuthRepository
from rental_client.schemas.auth import AuthResult, UserProfile
from rental_client.services.auth_service import AuthService
from tests.helpers import BackendStub

USER = {"id": "u1", "email": "u@example.com", "name": "Uma", "role": "owner"}


class FakeAuthRepository:
    def __init__(self) -> None:
        self.logout_error: Exception | None = None
        self.logins: list[tuple[str, str]] = []

    async def login(self, email: str, password: str) -> AuthResult:
        self.logins.append((email, password))
        return AuthResult.model_validate({"accessToken": "t1", "user": USER})

    async def logout(self) -> None:
        if self.logout_error is not None:
            raise self.logout_error

    async def update_profile(self, changes: dict) -> UserProfile:
        return UserProfile.model_validate({**USER, **changes})


@pytest.fixture()
def repository() -> FakeAuthRepository:
    return FakeAuthRepository()


@pytest.fixture()
def service(repository: FakeAuthRepository, auth_session: AuthSession) -> AuthService:
    return AuthService(repository, auth_session)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_login_starts_session(
    service: AuthService,
    repository: FakeAuthRepository,
    auth_session: AuthSession,
) -> None:
    events: list[SessionEvent] = []
    auth_session.add_listener(events.append)

    profile = await service.login("  u@example.com ", "pw")

    assert repository.logins == [("u@example.com", "pw")]
    assert profile.id == "u1"
    assert auth_session.access_token == "t1"
    assert [event.type for event in events] == [SessionEventType.SIGNED_IN]


@pytest.mark.asyncio
async def test_logout_clears_session_even_when_backend_fails(
    service: AuthService,
    repository: FakeAuthRepository,
    auth_session: AuthSession,
) -> None:
    await service.login("u@example.com", "pw")
    repository.logout_error = httpx.ConnectError("offline")

    await service.logout()

    assert auth_session.user is None
    assert auth_session.access_token is None


@pytest.mark.asyncio
async def test_update_profile_requires_session(service: AuthService) -> None:
    with pytest.raises(NotSignedInError):
        await service.update_profile({"name": "New"})


@pytest.mark.asyncio
async def test_update_profile_keeps_token_without_new_session_event(
    service: AuthService,
    auth_session: AuthSession,
) -> None:
    await service.login("u@example.com", "pw")
    events: list[SessionEvent] = []
    auth_session.add_listener(events.append)

    profile = await service.update_profile({"name": "Uma K"})

    assert profile.name == "Uma K"
    assert auth_session.user == profile
    assert auth_session.access_token == "t1"
    assert events == []


@pytest.mark.asyncio
async def test_service_against_real_repository(
    gateway: AuthenticatedGateway,
    backend: BackendStub,
    auth_session: AuthSession,
) -> None:
    backend.reply("POST", "/api/auth/login", 200, {"data": {"accessToken": "t9", "user": USER}})
    backend.reply("POST", "/api/auth/logout", 500, {"message": "down"})
    service = AuthService(AuthRepository(gateway), auth_session)

    await service.login("u@example.com", "pw")
    assert auth_session.is_authenticated is True

    await service.logout()
    assert auth_session.is_authenticated is False
