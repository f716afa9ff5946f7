"""Sign-in, registration and sign-out flows driving the AuthSession."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from rental_client.core.errors import ClientError, NotSignedInError
from rental_client.core.session import AuthSession
from rental_client.repositories.auth import AuthRepository
from rental_client.schemas.auth import AuthResult, RegistrationRequest, UserProfile

logger = logging.getLogger("rental_client.services.auth_service")


class AuthService:
    """Account operations that change who is signed in."""

    def __init__(self, repository: AuthRepository, session: AuthSession) -> None:
        self.repository = repository
        self.session = session

    async def login(self, email: str, password: str) -> UserProfile:
        result = await self.repository.login(email.strip(), password)
        return self._start_session(result)

    async def register(self, request: RegistrationRequest) -> UserProfile:
        result = await self.repository.register(request)
        return self._start_session(result)

    async def logout(self) -> None:
        """End the session locally even when the backend call fails."""
        try:
            await self.repository.logout()
        except (httpx.HTTPError, ClientError):
            logger.warning("Backend logout failed, clearing local session anyway", exc_info=True)
        finally:
            self.session.sign_out()

    async def update_profile(self, changes: dict[str, Any]) -> UserProfile:
        if self.session.user is None:
            raise NotSignedInError()
        profile = await self.repository.update_profile(changes)
        self.session.sign_in(profile, self.session.access_token)
        return profile

    def _start_session(self, result: AuthResult) -> UserProfile:
        self.session.sign_in(result.user, result.access_token)
        logger.info(
            "Signed in",
            extra={"user_id": result.user.id, "role": result.user.role.value},
        )
        return result.user


__all__ = ["AuthService"]
