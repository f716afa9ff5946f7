"""Reference-counted live notification channel over Socket.IO."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import Any, Protocol
from urllib.parse import urlsplit, urlunsplit

import socketio
from socketio.exceptions import ConnectionError as SocketConnectionError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from rental_client.core.config import settings

logger = logging.getLogger("rental_client.core.socket")

OWNER_NOTIFICATION_EVENT = "owner:notification"
OWNER_SUBSCRIBE_EVENT = "owner:subscribe"
OWNER_UNSUBSCRIBE_EVENT = "owner:unsubscribe"

PushHandler = Callable[[Any], None]


class SocketClient(Protocol):
    """Subset of socketio.AsyncClient used by the channel."""

    connected: bool

    def on(self, event: str, handler: Callable[..., Any], namespace: str | None = None) -> Any: ...

    async def connect(self, url: str, **kwargs: Any) -> None: ...

    async def emit(self, event: str, data: Any = None, namespace: str | None = None) -> None: ...

    async def disconnect(self) -> None: ...


def split_socket_url(url: str) -> tuple[str, str]:
    """Split a socket URL into the server origin and the Socket.IO namespace."""
    parts = urlsplit(url)
    origin = urlunsplit((parts.scheme, parts.netloc, "", "", ""))
    namespace = parts.path.rstrip("/") or "/"
    return origin, namespace


class Subscription:
    """Handle returned by LiveChannel.subscribe; closing it is idempotent."""

    def __init__(self, channel: "LiveChannel", owner_id: str, handler: PushHandler) -> None:
        self._channel = channel
        self.owner_id = owner_id
        self._handler = handler
        self.closed = False

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        await self._channel.unsubscribe(self.owner_id, self._handler)


class LiveChannel:
    """
    Shared socket connection for owner notification pushes.

    Subscriptions are reference counted per owner: the first subscriber
    emits ``owner:subscribe`` and the last one to leave emits
    ``owner:unsubscribe``. The socket itself is connected lazily and torn
    down once no subscription remains.
    """

    def __init__(
        self,
        url: str | None = None,
        *,
        client: SocketClient | None = None,
        connect_attempts: int | None = None,
        retry_wait: wait_base | None = None,
    ) -> None:
        self.url = url or settings.resolved_socket_url
        self.origin, self.namespace = split_socket_url(self.url)
        self.connect_attempts = connect_attempts or settings.socket_connect_attempts
        self._retry_wait = retry_wait or wait_exponential(multiplier=0.5, min=0.5, max=5)
        self._client: SocketClient = client or socketio.AsyncClient(reconnection=True)
        self._client.on(OWNER_NOTIFICATION_EVENT, self._dispatch, namespace=self.namespace)
        self._handlers: dict[str, list[PushHandler]] = {}
        self._lock = asyncio.Lock()

    @property
    def connected(self) -> bool:
        return bool(self._client.connected)

    def subscriber_count(self, owner_id: str | None = None) -> int:
        if owner_id is not None:
            return len(self._handlers.get(owner_id, ()))
        return sum(len(handlers) for handlers in self._handlers.values())

    async def subscribe(self, owner_id: str, handler: PushHandler) -> Subscription:
        owner_key = str(owner_id)
        async with self._lock:
            await self._ensure_connected()
            handlers = self._handlers.setdefault(owner_key, [])
            handlers.append(handler)
            if len(handlers) == 1:
                await self._client.emit(
                    OWNER_SUBSCRIBE_EVENT,
                    {"ownerId": owner_key},
                    namespace=self.namespace,
                )
                logger.info("Subscribed to owner notifications", extra={"owner_id": owner_key})
        return Subscription(self, owner_key, handler)

    async def unsubscribe(self, owner_id: str, handler: PushHandler) -> None:
        owner_key = str(owner_id)
        async with self._lock:
            handlers = self._handlers.get(owner_key)
            if not handlers or handler not in handlers:
                return
            handlers.remove(handler)
            if handlers:
                return

            del self._handlers[owner_key]
            if self._client.connected:
                await self._client.emit(
                    OWNER_UNSUBSCRIBE_EVENT,
                    {"ownerId": owner_key},
                    namespace=self.namespace,
                )
            logger.info("Unsubscribed from owner notifications", extra={"owner_id": owner_key})

            if not self._handlers and self._client.connected:
                await self._client.disconnect()
                logger.info("Live channel disconnected", extra={"socket_url": self.url})

    async def _ensure_connected(self) -> None:
        if self._client.connected:
            return
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.connect_attempts),
            wait=self._retry_wait,
            retry=retry_if_exception_type(SocketConnectionError),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                await self._client.connect(
                    self.origin,
                    namespaces=[self.namespace],
                    transports=["websocket"],
                )
        logger.info("Live channel connected", extra={"socket_url": self.url})

    def _dispatch(self, payload: Any) -> None:
        owner_hint = None
        if isinstance(payload, Mapping):
            raw_owner = payload.get("ownerId")
            owner_hint = str(raw_owner) if raw_owner is not None else None

        if owner_hint is not None and owner_hint in self._handlers:
            targets = list(self._handlers[owner_hint])
        else:
            targets = [handler for handlers in self._handlers.values() for handler in handlers]

        for handler in targets:
            try:
                handler(payload)
            except Exception:  # noqa: BLE001
                logger.exception("Live push handler failed")


__all__ = [
    "LiveChannel",
    "OWNER_NOTIFICATION_EVENT",
    "OWNER_SUBSCRIBE_EVENT",
    "OWNER_UNSUBSCRIBE_EVENT",
    "PushHandler",
    "SocketClient",
    "Subscription",
    "split_socket_url",
]
