"""Repository wrapping the authentication and profile endpoints."""

from __future__ import annotations

from typing import Any

from rental_client.core.errors import InvalidResponseError
from rental_client.repositories.base import BaseRepository
from rental_client.schemas.auth import AuthResult, RegistrationRequest, UserProfile


class AuthRepository(BaseRepository):
    """Calls under `/auth` plus the profile update endpoint."""

    async def login(self, email: str, password: str) -> AuthResult:
        response = await self.gateway.post(
            "/auth/login",
            json={"email": email, "password": password},
        )
        return self._auth_result(self.unwrap(response))

    async def register(self, request: RegistrationRequest) -> AuthResult:
        response = await self.gateway.post("/auth/signup", json=request.model_dump(mode="json"))
        return self._auth_result(self.unwrap(response))

    async def logout(self) -> None:
        await self.gateway.post("/auth/logout", json={})

    async def forgot_password(self, email: str) -> None:
        await self.gateway.post("/auth/forgot-password", json={"email": email})

    async def reset_password(self, token: str, password: str) -> None:
        await self.gateway.post(
            "/auth/reset-password",
            json={"token": token, "password": password},
        )

    async def verify_email(self, token: str) -> None:
        await self.gateway.post("/auth/verify-email", json={"token": token})

    async def resend_verification(self, email: str) -> None:
        await self.gateway.post("/auth/resend-verification", json={"email": email})

    async def update_profile(self, changes: dict[str, Any]) -> UserProfile:
        response = await self.gateway.put("/profile", json=changes)
        payload = self.unwrap(response)
        if isinstance(payload, dict) and isinstance(payload.get("user"), dict):
            payload = payload["user"]
        return UserProfile.model_validate(payload)

    @staticmethod
    def _auth_result(payload: Any) -> AuthResult:
        if not isinstance(payload, dict) or "user" not in payload:
            raise InvalidResponseError("Authentication response did not include a user.")
        return AuthResult.model_validate(payload)


__all__ = ["AuthRepository"]
