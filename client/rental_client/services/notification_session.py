"""Binds the notification synchronizer lifetime to the authenticated session."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from rental_client.core.session import AuthSession, SessionEvent
from rental_client.core.socket import LiveChannel
from rental_client.repositories.notification import NotificationRepository
from rental_client.schemas.auth import UserProfile
from rental_client.services.notifications import NotificationSynchronizer, PushListener

logger = logging.getLogger("rental_client.services.notification_session")


class NotificationSessionBinder:
    """
    Creates a synchronizer on sign-in and tears it down on sign-out.

    A user switch closes the previous user's synchronizer before the next one
    is opened. Session events arrive synchronously, so each transition runs as
    a task chained behind the previous one.
    """

    def __init__(
        self,
        session: AuthSession,
        repository: NotificationRepository,
        channel: LiveChannel | None = None,
        *,
        probe_unread: bool = True,
    ) -> None:
        self.session = session
        self.repository = repository
        self.channel = channel
        self.probe_unread = probe_unread
        self._current: NotificationSynchronizer | None = None
        self._transition: asyncio.Task[None] | None = None
        self._remove_listener: Callable[[], None] | None = None
        self._push_listeners: list[PushListener] = []

    @property
    def synchronizer(self) -> NotificationSynchronizer | None:
        return self._current

    def add_push_listener(self, listener: PushListener) -> None:
        """Attach a push callback to the current and every future synchronizer."""
        self._push_listeners.append(listener)
        if self._current is not None:
            self._current.add_push_listener(listener)

    def start(self) -> None:
        """Follow session events. Must be called from the event loop."""
        if self._remove_listener is not None:
            return
        self._remove_listener = self.session.add_listener(self._on_session_event)
        if self.session.user is not None:
            self._schedule(self.session.user)

    async def shutdown(self) -> None:
        if self._remove_listener is not None:
            self._remove_listener()
            self._remove_listener = None
        await self.wait_idle()
        await self._close_current()

    async def wait_idle(self) -> None:
        """Wait until the latest session transition has finished."""
        while self._transition is not None and not self._transition.done():
            await asyncio.shield(self._transition)

    def _on_session_event(self, event: SessionEvent) -> None:
        self._schedule(event.user)

    def _schedule(self, user: UserProfile | None) -> None:
        previous = self._transition
        self._transition = asyncio.get_running_loop().create_task(
            self._switch(previous, user),
            name="notification-session-transition",
        )

    async def _switch(
        self,
        previous: asyncio.Task[None] | None,
        user: UserProfile | None,
    ) -> None:
        if previous is not None and not previous.done():
            await previous
        await self._close_current()
        if user is None:
            return

        synchronizer = NotificationSynchronizer(
            self.repository,
            user=user,
            channel=self.channel if user.is_owner else None,
        )
        for listener in self._push_listeners:
            synchronizer.add_push_listener(listener)
        self._current = synchronizer
        logger.info(
            "Notification session opened",
            extra={"user_id": user.id, "live": synchronizer.channel is not None},
        )
        await synchronizer.start(probe_unread=self.probe_unread)

    async def _close_current(self) -> None:
        current, self._current = self._current, None
        if current is not None:
            await current.close()


__all__ = ["NotificationSessionBinder"]
