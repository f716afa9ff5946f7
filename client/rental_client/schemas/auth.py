"""Schemas describing users and authentication payloads."""

from __future__ import annotations

from enum import StrEnum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class UserRole(StrEnum):
    RENTER = "renter"
    OWNER = "owner"
    ADMIN = "admin"


class UserProfile(BaseModel):
    """Profile of the signed-in user as returned by the auth endpoints."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str = Field(validation_alias=AliasChoices("id", "_id", "userId"))
    email: str
    name: str = ""
    role: UserRole = UserRole.RENTER
    avatar: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> str:
        if value is None or str(value).strip() == "":
            raise ValueError("User id must not be empty.")
        return str(value)

    @property
    def is_owner(self) -> bool:
        return self.role == UserRole.OWNER


class AuthResult(BaseModel):
    """Login/registration response: a profile plus an access token."""

    model_config = ConfigDict(extra="ignore")

    access_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("accessToken", "token", "access_token"),
    )
    user: UserProfile


class RegistrationRequest(BaseModel):
    email: str
    password: str = Field(min_length=1)
    name: str
    role: UserRole = UserRole.RENTER


__all__ = ["AuthResult", "RegistrationRequest", "UserProfile", "UserRole"]
