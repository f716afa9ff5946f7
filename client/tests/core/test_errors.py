from __future__ import annotations

import httpx

from rental_client.core.errors import (
    ApiResponseError,
    ErrorCode,
    SessionExpiredError,
    default_code_for_status,
)


def test_from_response_reads_error_envelope() -> None:
    response = httpx.Response(
        422,
        json={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "End date must be after start date",
                "details": {"endTime": "invalid"},
            }
        },
    )

    error = ApiResponseError.from_response(response)

    assert error.status_code == 422
    assert error.code == ErrorCode.VALIDATION_ERROR
    assert error.message == "End date must be after start date"
    assert error.details == {"endTime": "invalid"}
    assert error.response is response


def test_from_response_reads_flat_message() -> None:
    response = httpx.Response(400, json={"message": "Bike unavailable", "code": "BIKE_BUSY"})

    error = ApiResponseError.from_response(response)

    assert error.code == "BIKE_BUSY"
    assert error.message == "Bike unavailable"


def test_from_response_falls_back_to_status_phrase() -> None:
    response = httpx.Response(503, content=b"<html>bad gateway</html>")

    error = ApiResponseError.from_response(response)

    assert error.code == ErrorCode.SERVICE_UNAVAILABLE
    assert error.message == "Service Unavailable"


def test_default_code_for_unknown_status() -> None:
    assert default_code_for_status(418) == ErrorCode.INTERNAL_ERROR
    assert default_code_for_status(401) == ErrorCode.AUTH_FAILED


def test_session_expired_error_defaults() -> None:
    error = SessionExpiredError()

    assert error.code == ErrorCode.SESSION_EXPIRED
    assert error.status_code == 401
    assert "sign in" in error.message.lower()
