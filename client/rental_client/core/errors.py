"""Shared error primitives raised by the client gateway, repositories and services."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from http import HTTPStatus

import httpx


class ErrorCode(StrEnum):
    """Canonical error codes surfaced to the UI layer."""

    # Authentication & authorization
    AUTH_FAILED = "AUTH_FAILED"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"  # noqa: S105
    SESSION_EXPIRED = "SESSION_EXPIRED"
    NOT_SIGNED_IN = "NOT_SIGNED_IN"
    FORBIDDEN = "FORBIDDEN"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Validation
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_FIELD_VALUE = "INVALID_FIELD_VALUE"

    # Resources
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"

    # Transport / backend
    INVALID_RESPONSE = "INVALID_RESPONSE"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ClientError(Exception):
    """Base error for failures the UI layer is expected to handle."""

    def __init__(
        self,
        code: ErrorCode | str,
        message: str,
        *,
        status_code: int | None = None,
        details: object | None = None,
    ) -> None:
        super().__init__(message)
        self.code = str(code)
        self.message = message
        self.status_code = status_code
        self.details = details


class ApiResponseError(ClientError):
    """Backend answered with a non-success status."""

    def __init__(
        self,
        code: ErrorCode | str,
        message: str,
        *,
        status_code: int,
        details: object | None = None,
        response: httpx.Response | None = None,
    ) -> None:
        super().__init__(code, message, status_code=status_code, details=details)
        self.response = response

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ApiResponseError":
        """Build the error from the backend error envelope, tolerating odd bodies."""
        code: str = default_code_for_status(response.status_code)
        message = _reason_phrase(response.status_code)
        details: object | None = None

        body = _safe_json(response)
        if isinstance(body, Mapping):
            envelope = body.get("error")
            if isinstance(envelope, Mapping):
                code = str(envelope.get("code") or code)
                message = str(envelope.get("message") or message)
                details = envelope.get("details")
            elif isinstance(body.get("message"), str) and body["message"].strip():
                message = body["message"]
                if isinstance(body.get("code"), str):
                    code = body["code"]

        return cls(
            code,
            message,
            status_code=response.status_code,
            details=details,
            response=response,
        )


class SessionExpiredError(ClientError):
    """The session could not be renewed and the user has to sign in again."""

    def __init__(self, message: str = "Session expired. Please sign in again.") -> None:
        super().__init__(
            ErrorCode.SESSION_EXPIRED,
            message,
            status_code=HTTPStatus.UNAUTHORIZED,
        )


class InvalidResponseError(ClientError):
    """Backend returned a payload the client cannot interpret."""

    def __init__(self, message: str, *, details: object | None = None) -> None:
        super().__init__(ErrorCode.INVALID_RESPONSE, message, details=details)


class NotSignedInError(ClientError):
    """Operation requires an authenticated user."""

    def __init__(self, message: str = "Sign in to continue.") -> None:
        super().__init__(ErrorCode.NOT_SIGNED_IN, message)


def default_code_for_status(status_code: int) -> str:
    mapping: dict[int, ErrorCode] = {
        HTTPStatus.BAD_REQUEST: ErrorCode.VALIDATION_ERROR,
        HTTPStatus.UNAUTHORIZED: ErrorCode.AUTH_FAILED,
        HTTPStatus.FORBIDDEN: ErrorCode.FORBIDDEN,
        HTTPStatus.NOT_FOUND: ErrorCode.NOT_FOUND,
        HTTPStatus.CONFLICT: ErrorCode.CONFLICT,
        HTTPStatus.UNPROCESSABLE_ENTITY: ErrorCode.VALIDATION_ERROR,
        HTTPStatus.TOO_MANY_REQUESTS: ErrorCode.RATE_LIMIT_EXCEEDED,
        HTTPStatus.SERVICE_UNAVAILABLE: ErrorCode.SERVICE_UNAVAILABLE,
    }
    return mapping.get(status_code, ErrorCode.INTERNAL_ERROR).value


def _reason_phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return f"HTTP {status_code}"


def _safe_json(response: httpx.Response) -> object | None:
    try:
        return response.json()
    except ValueError:
        return None


__all__ = [
    "ApiResponseError",
    "ClientError",
    "ErrorCode",
    "InvalidResponseError",
    "NotSignedInError",
    "SessionExpiredError",
    "default_code_for_status",
]
