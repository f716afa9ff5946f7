"""
Client-side notification synchronization.

One :class:`NotificationSynchronizer` exists per signed-in user. It folds
three inputs into a single ordered collection with an unread counter: the
bulk load from ``GET /notifications``, live pushes from the socket channel
and local read/unread mutations.

Read-state changes are optimistic. The local collection is authoritative for
the rest of the session and the server is updated in the background through
:class:`BestEffortSync`; a failed background call is logged and ignored, it
never rolls the local state back and is never retried.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

import httpx
from socketio.exceptions import ConnectionError as SocketConnectionError

from rental_client.core.errors import ClientError
from rental_client.core.metrics import record_live_push, record_sync_failure
from rental_client.core.socket import LiveChannel, Subscription
from rental_client.repositories.notification import NotificationRepository
from rental_client.schemas.auth import UserProfile
from rental_client.schemas.notification import (
    Notification,
    count_unread,
    map_notification,
    merge_notifications,
)

logger = logging.getLogger("rental_client.services.notifications")


class SyncState(StrEnum):
    SIGNED_OUT = "signed_out"
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"


@dataclass(slots=True, frozen=True)
class NotificationSnapshot:
    """Immutable view handed to UI listeners."""

    notifications: tuple[Notification, ...]
    unread_count: int
    is_loading: bool
    has_loaded: bool
    state: SyncState


SnapshotListener = Callable[[NotificationSnapshot], None]
PushListener = Callable[[Notification], None]


class BestEffortSync:
    """
    Background persistence of local changes.

    Scheduled calls run as tasks on the running loop. Failures are counted
    and logged, then dropped: there is no retry queue and the caller's local
    state stays as it is.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(
        self,
        operation: str,
        call: Callable[[], Awaitable[object]],
    ) -> asyncio.Task[None]:
        """Start `call` in the background. Must be invoked from the event loop."""
        task = asyncio.get_running_loop().create_task(
            self._run(operation, call),
            name=f"best-effort-{operation}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every scheduled call to settle."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()

    async def _run(self, operation: str, call: Callable[[], Awaitable[object]]) -> None:
        try:
            await call()
        except Exception:  # noqa: BLE001
            record_sync_failure(operation)
            logger.warning(
                "Background sync failed, keeping local state",
                extra={"operation": operation},
                exc_info=True,
            )


class NotificationSynchronizer:
    """Session-scoped notification collection with an unread counter."""

    def __init__(
        self,
        repository: NotificationRepository,
        *,
        user: UserProfile,
        channel: LiveChannel | None = None,
        sync: BestEffortSync | None = None,
    ) -> None:
        self.repository = repository
        self.user = user
        self.channel = channel
        self._sync = sync or BestEffortSync()
        self._notifications: list[Notification] = []
        self._unread_count = 0
        self._has_loaded = False
        self._loads_in_flight = 0
        self._deferred_unread_pushes = 0
        self._closed = False
        self._subscription: Subscription | None = None
        self._listeners: list[SnapshotListener] = []
        self._push_listeners: list[PushListener] = []

    @property
    def notifications(self) -> tuple[Notification, ...]:
        return tuple(self._notifications)

    @property
    def unread_count(self) -> int:
        return self._unread_count

    @property
    def has_loaded(self) -> bool:
        return self._has_loaded

    @property
    def is_loading(self) -> bool:
        return self._loads_in_flight > 0

    @property
    def state(self) -> SyncState:
        if self._closed:
            return SyncState.SIGNED_OUT
        if self._has_loaded:
            return SyncState.READY
        if self._loads_in_flight:
            return SyncState.LOADING
        return SyncState.IDLE

    def snapshot(self) -> NotificationSnapshot:
        return NotificationSnapshot(
            notifications=tuple(self._notifications),
            unread_count=self._unread_count,
            is_loading=self.is_loading,
            has_loaded=self._has_loaded,
            state=self.state,
        )

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register a snapshot listener; returns the callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def add_push_listener(self, listener: PushListener) -> Callable[[], None]:
        """Register a callback for every live push (toasts and similar)."""
        self._push_listeners.append(listener)

        def remove() -> None:
            if listener in self._push_listeners:
                self._push_listeners.remove(listener)

        return remove

    async def start(self, *, probe_unread: bool = True) -> None:
        """Attach to the live channel and optionally probe the unread count."""
        if self.channel is not None and self._subscription is None:
            try:
                self._subscription = await self.channel.subscribe(self.user.id, self.on_live_push)
            except SocketConnectionError:
                logger.warning(
                    "Live channel unavailable, relying on explicit loads",
                    extra={"user_id": self.user.id},
                    exc_info=True,
                )
        if probe_unread:
            await self.fetch_unread_count()

    async def close(self) -> None:
        """Detach from the live channel and discard all session state."""
        if self._closed:
            return
        self._closed = True
        self._sync.cancel_all()
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            await subscription.close()
        self._notifications = []
        self._unread_count = 0
        self._deferred_unread_pushes = 0
        self._has_loaded = False
        self._notify()
        self._listeners.clear()
        self._push_listeners.clear()
        logger.info("Notification session closed", extra={"user_id": self.user.id})

    async def fetch_unread_count(self) -> int:
        """
        Probe the server unread count without loading the list.

        Unread pushes that arrive while the probe is in flight are added on
        top of the server figure. Once the list has loaded the collection is
        authoritative and the probe result is not applied.
        """
        pushes_before = self._deferred_unread_pushes
        try:
            count = await self.repository.count_unread()
        except (httpx.HTTPError, ClientError):
            logger.warning("Failed to fetch notification count", exc_info=True)
            return self._unread_count

        if not self._closed and not self._has_loaded:
            self._unread_count = count + self._deferred_unread_pushes - pushes_before
            self._notify()
        return count

    async def load_notifications(self, force: bool = False) -> bool:
        """
        Fetch the full list and merge it into the collection.

        Skipped when already loaded unless `force` is set. A failed fetch is
        logged and leaves the state untouched; returns False in that case.
        """
        if self._closed:
            return False
        if self._has_loaded and not force:
            return True

        self._loads_in_flight += 1
        self._notify()
        try:
            payloads = await self.repository.list_notifications()
            incoming = [map_notification(payload) for payload in payloads]
        except (httpx.HTTPError, ClientError):
            logger.warning(
                "Failed to load notifications",
                extra={"user_id": self.user.id},
                exc_info=True,
            )
            return False
        else:
            if self._closed:
                return False
            self._notifications = merge_notifications(self._notifications, incoming)
            self._has_loaded = True
            self._unread_count = count_unread(self._notifications)
            logger.debug(
                "Notifications loaded",
                extra={"fetched": len(incoming), "unread": self._unread_count},
            )
            return True
        finally:
            self._loads_in_flight -= 1
            self._notify()

    def mark_as_read(self, notification_id: str, call_api: bool = True) -> None:
        """
        Mark one record read locally, then persist it in the background.

        Must be called from the event loop when `call_api` is set.
        """
        if self._closed:
            return
        if call_api:
            self._sync.schedule(
                "mark_read",
                lambda: self.repository.mark_read(notification_id),
            )

        changed = False
        updated: list[Notification] = []
        for item in self._notifications:
            if item.id == notification_id and not item.read:
                item = item.model_copy(update={"read": True})
                changed = True
            updated.append(item)

        if not changed:
            return
        self._notifications = updated
        self._unread_count = count_unread(self._notifications)
        self._notify()

    def mark_all_as_read(self) -> None:
        if self._closed:
            return
        if self._unread_count == 0 and all(item.read for item in self._notifications):
            return
        self._notifications = [
            item if item.read else item.model_copy(update={"read": True})
            for item in self._notifications
        ]
        self._unread_count = 0
        self._notify()

    def on_live_push(self, payload: Any) -> None:
        """
        Apply a push from the socket channel.

        Before the first bulk load only the counter moves; the record itself
        arrives with the load. Afterwards the record is merged and the
        counter recomputed from the collection.
        """
        if self._closed:
            return
        notification = map_notification(payload)

        if self._has_loaded:
            self._notifications = merge_notifications(self._notifications, [notification])
            self._unread_count = count_unread(self._notifications)
            record_live_push(merged=True)
        else:
            if not notification.read:
                self._unread_count += 1
                self._deferred_unread_pushes += 1
            record_live_push(merged=False)

        self._notify()
        for listener in list(self._push_listeners):
            try:
                listener(notification)
            except Exception:  # noqa: BLE001
                logger.exception("Push listener failed")

    async def drain_pending_sync(self) -> None:
        await self._sync.drain()

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:  # noqa: BLE001
                logger.exception("Notification listener failed")


__all__ = [
    "BestEffortSync",
    "NotificationSnapshot",
    "NotificationSynchronizer",
    "PushListener",
    "SnapshotListener",
    "SyncState",
]
