"""Common helpers for REST-backed repository implementations."""

from __future__ import annotations

from typing import Any

import httpx

from rental_client.core.errors import InvalidResponseError
from rental_client.core.http import AuthenticatedGateway


class BaseRepository:
    """Lightweight helper storing the gateway dependency."""

    def __init__(self, gateway: AuthenticatedGateway) -> None:
        self.gateway = gateway

    @staticmethod
    def unwrap(response: httpx.Response) -> Any:
        """Return `body["data"]` when the backend used the envelope, else the body."""
        if not response.content:
            return None
        try:
            body = response.json()
        except ValueError as exc:
            raise InvalidResponseError(
                "Backend returned a non-JSON body.",
                details={"path": response.request.url.path},
            ) from exc
        if isinstance(body, dict) and body.get("data") is not None:
            return body["data"]
        return body

    @staticmethod
    def as_list(payload: Any, *keys: str) -> list[Any]:
        """Pick the item list out of a payload that may nest it under a key."""
        if isinstance(payload, list):
            return payload
        if isinstance(payload, dict):
            for key in keys:
                candidate = payload.get(key)
                if isinstance(candidate, list):
                    return candidate
        return []


__all__ = ["BaseRepository"]
