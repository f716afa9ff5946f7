"""
Authenticated request gateway.

Every outbound REST call goes through :class:`AuthenticatedGateway`. It
attaches the in-memory bearer token, and when the backend answers 401 it
renews the token once through the cookie-authenticated refresh endpoint and
replays the request. Concurrent callers that hit a stale token while a
renewal is running queue up behind it instead of issuing their own refresh.
The renewal runs as its own task, so cancelling the caller that started it
does not affect the others.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from http import HTTPStatus
from typing import Any

import httpx

from rental_client.core.config import settings
from rental_client.core.errors import (
    ApiResponseError,
    ClientError,
    InvalidResponseError,
    SessionExpiredError,
)
from rental_client.core.logging import current_or_new_request_id
from rental_client.core.metrics import record_replay, record_token_refresh
from rental_client.core.session import AuthSession, Navigator

logger = logging.getLogger("rental_client.core.http")

REFRESH_PATH = "/auth/refresh"
AUTH_PATH_MARKER = "/auth/"
REQUEST_ID_HEADER = "X-Request-ID"


class AuthenticatedGateway:
    """Bearer-token HTTP pipeline with single-flight token refresh."""

    def __init__(
        self,
        session: AuthSession,
        navigator: Navigator,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        sign_in_path: str | None = None,
        refresh_path: str = REFRESH_PATH,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.session = session
        self.navigator = navigator
        self.sign_in_path = sign_in_path or settings.sign_in_path
        self.refresh_path = refresh_path
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            timeout=timeout or settings.http_timeout_seconds,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )
        self._refresh_task: asyncio.Task[str] | None = None
        self._waiting = 0

    @property
    def is_refreshing(self) -> bool:
        return self._refresh_task is not None

    @property
    def pending_replays(self) -> int:
        return self._waiting

    async def __aenter__(self) -> "AuthenticatedGateway":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        task, self._refresh_task = self._refresh_task, None
        if task is not None:
            task.cancel()
        await self._client.aclose()

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PUT", url, **kwargs)

    async def patch(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PATCH", url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("DELETE", url, **kwargs)

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        """
        Send a request and return the successful response.

        Raises ApiResponseError for non-success statuses and
        SessionExpiredError when the token could not be renewed. Transport
        errors from httpx propagate unchanged.
        """
        return await self._send(
            method,
            url,
            params=params,
            json=json,
            headers=headers,
            retried=False,
        )

    async def _send(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None,
        json: Any,
        headers: Mapping[str, str] | None,
        retried: bool,
        token: str | None = None,
    ) -> httpx.Response:
        request = self._client.build_request(
            method,
            url,
            params=_clean_params(params),
            json=json,
            headers=self._build_headers(headers, token),
        )
        response = await self._client.send(request)

        if response.status_code != HTTPStatus.UNAUTHORIZED:
            if response.is_error:
                raise ApiResponseError.from_response(response)
            return response

        path = request.url.path
        if not retried and not _is_auth_endpoint(path):
            new_token = await self._wait_for_token(path)
            record_replay()
            logger.debug("Replaying request with refreshed token", extra={"http_path": path})
            return await self._send(
                method,
                url,
                params=params,
                json=json,
                headers=headers,
                retried=True,
                token=new_token,
            )

        if not _is_auth_endpoint(path) and not self._on_sign_in_page():
            logger.warning(
                "Unauthorized after token refresh, ending session",
                extra={"http_method": method, "http_path": path},
            )
            self._terminate_session()
        raise ApiResponseError.from_response(response)

    async def _wait_for_token(self, path: str) -> str:
        task = self._refresh_task
        if task is None:
            task = asyncio.get_running_loop().create_task(
                self._run_refresh(),
                name="access-token-refresh",
            )
            task.add_done_callback(_discard_result)
            self._refresh_task = task
        else:
            logger.debug(
                "Token refresh in flight, queueing request",
                extra={"http_path": path, "queued": self._waiting + 1},
            )

        # Cancelling one caller never cancels the shared refresh.
        self._waiting += 1
        try:
            return await asyncio.shield(task)
        except SessionExpiredError as exc:
            raise SessionExpiredError() from exc
        finally:
            self._waiting -= 1

    async def _run_refresh(self) -> str:
        try:
            token = await self._refresh_access_token()
        except (httpx.HTTPError, ClientError) as exc:
            self._refresh_task = None
            record_token_refresh(succeeded=False)
            logger.warning(
                "Token refresh failed",
                extra={"error": str(exc), "queued": self._waiting},
            )
            self._terminate_session()
            raise SessionExpiredError() from exc
        except asyncio.CancelledError:
            self._refresh_task = None
            raise

        self._refresh_task = None
        self.session.set_access_token(token)
        record_token_refresh(succeeded=True)
        logger.info("Access token refreshed", extra={"released": self._waiting})
        return token

    async def _refresh_access_token(self) -> str:
        # The http-only refresh cookie lives in the client's cookie jar.
        response = await self._client.post(
            self.refresh_path,
            json={},
            headers={REQUEST_ID_HEADER: current_or_new_request_id()},
        )
        if response.is_error:
            raise ApiResponseError.from_response(response)
        return extract_access_token(response)

    def _build_headers(
        self,
        headers: Mapping[str, str] | None,
        token: str | None,
    ) -> dict[str, str]:
        merged = dict(headers or {})
        merged.setdefault(REQUEST_ID_HEADER, current_or_new_request_id())
        bearer = token or self.session.access_token
        if bearer:
            merged["Authorization"] = f"Bearer {bearer}"
        return merged

    def _on_sign_in_page(self) -> bool:
        return self.sign_in_path in self.navigator.current_path

    def _terminate_session(self) -> None:
        self.session.clear()
        self.navigator.redirect(self.sign_in_path)


def extract_access_token(response: httpx.Response) -> str:
    """Read the access token from `{"data": {"accessToken"}}` or `{"accessToken"}`."""
    try:
        body = response.json()
    except ValueError as exc:
        raise InvalidResponseError("Refresh response is not valid JSON.") from exc

    candidates: list[object] = []
    if isinstance(body, Mapping):
        data = body.get("data")
        if isinstance(data, Mapping):
            candidates.append(data.get("accessToken"))
        candidates.append(body.get("accessToken"))

    for candidate in candidates:
        if isinstance(candidate, str) and candidate.strip():
            return candidate
    raise InvalidResponseError("Refresh response did not include an access token.")


def _discard_result(task: asyncio.Task[str]) -> None:
    # Retrieve the outcome even when no caller is left to await it.
    if not task.cancelled():
        task.exception()


def _is_auth_endpoint(path: str) -> bool:
    return AUTH_PATH_MARKER in path


def _clean_params(params: Mapping[str, Any] | None) -> dict[str, Any] | None:
    if params is None:
        return None
    return {key: value for key, value in params.items() if value is not None}


__all__ = ["AuthenticatedGateway", "REFRESH_PATH", "extract_access_token"]
