"""Shared helpers for tests."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

import httpx

Handler = Callable[[httpx.Request], Awaitable[httpx.Response]]

API_BASE_URL = "http://testserver/api"


class BackendStub:
    """Routes requests by (method, path) and records everything it receives."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Handler] = {}
        self.requests: list[httpx.Request] = []

    def route(self, method: str, path: str, handler: Handler) -> None:
        self.routes[(method.upper(), path)] = handler

    def reply(self, method: str, path: str, status_code: int, payload: Any = None) -> None:
        async def handler(request: httpx.Request) -> httpx.Response:
            if payload is None:
                return httpx.Response(status_code)
            return httpx.Response(status_code, json=payload)

        self.route(method, path, handler)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [
            request
            for request in self.requests
            if request.method == method.upper() and request.url.path == path
        ]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(
                404,
                json={"error": {"code": "NOT_FOUND", "message": "no route"}},
            )
        return await handler(request)


class FakeSocketClient:
    """In-memory stand-in for socketio.AsyncClient."""

    def __init__(self, *, failures_before_connect: int = 0) -> None:
        self.connected = False
        self.handlers: dict[tuple[str, str | None], Callable[..., Any]] = {}
        self.emitted: list[tuple[str, Any, str | None]] = []
        self.connect_calls: list[tuple[str, dict[str, Any]]] = []
        self.disconnects = 0
        self._failures_left = failures_before_connect

    def on(self, event: str, handler: Callable[..., Any], namespace: str | None = None) -> None:
        self.handlers[(event, namespace)] = handler

    async def connect(self, url: str, **kwargs: Any) -> None:
        from socketio.exceptions import ConnectionError as SocketConnectionError

        self.connect_calls.append((url, kwargs))
        if self._failures_left > 0:
            self._failures_left -= 1
            raise SocketConnectionError("connection refused")
        self.connected = True

    async def emit(self, event: str, data: Any = None, namespace: str | None = None) -> None:
        self.emitted.append((event, data, namespace))

    async def disconnect(self) -> None:
        self.connected = False
        self.disconnects += 1

    def push(self, event: str, payload: Any, namespace: str | None = "/socket") -> None:
        self.handlers[(event, namespace)](payload)


class FakeNotificationRepository:
    """Notification repository double with scripted responses."""

    def __init__(
        self,
        payloads: list[Any] | None = None,
        *,
        unread: int = 0,
    ) -> None:
        self.payloads = payloads or []
        self.unread = unread
        self.list_error: Exception | None = None
        self.count_error: Exception | None = None
        self.mark_error: Exception | None = None
        self.list_calls = 0
        self.marked: list[str] = []

    async def list_notifications(self) -> list[Any]:
        self.list_calls += 1
        if self.list_error is not None:
            raise self.list_error
        return list(self.payloads)

    async def count_unread(self) -> int:
        if self.count_error is not None:
            raise self.count_error
        return self.unread

    async def mark_read(self, notification_id: str) -> None:
        self.marked.append(notification_id)
        if self.mark_error is not None:
            raise self.mark_error
