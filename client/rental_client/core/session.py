"""Authenticated session state and application navigation."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

from rental_client.schemas.auth import UserProfile

logger = logging.getLogger("rental_client.core.session")


class SessionEventType(StrEnum):
    SIGNED_IN = "signed_in"
    SIGNED_OUT = "signed_out"
    USER_SWITCHED = "user_switched"


@dataclass(slots=True, frozen=True)
class SessionEvent:
    """Change notification delivered to session listeners."""

    type: SessionEventType
    user: UserProfile | None
    previous_user: UserProfile | None = None


SessionListener = Callable[[SessionEvent], None]


class AuthSession:
    """
    In-memory credentials plus the cached profile of the signed-in user.

    The access token never leaves process memory; renewal relies on the
    http-only cookie held by the HTTP client. Listeners are notified on
    sign-in, sign-out and user switch so that session-scoped state (the
    notification synchronizer) can be created and torn down with it.
    """

    def __init__(self) -> None:
        self._access_token: str | None = None
        self._user: UserProfile | None = None
        self._listeners: list[SessionListener] = []

    @property
    def access_token(self) -> str | None:
        return self._access_token

    @property
    def user(self) -> UserProfile | None:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._access_token is not None and self._user is not None

    def set_access_token(self, token: str | None) -> None:
        self._access_token = token or None

    def sign_in(self, user: UserProfile, access_token: str | None) -> None:
        previous = self._user
        self._user = user
        self.set_access_token(access_token)

        if previous is not None and previous.id == user.id:
            logger.debug("Session profile refreshed", extra={"user_id": user.id})
            return

        if previous is None:
            event = SessionEvent(SessionEventType.SIGNED_IN, user)
        else:
            event = SessionEvent(SessionEventType.USER_SWITCHED, user, previous_user=previous)
        logger.info("Session started", extra={"user_id": user.id, "event": event.type.value})
        self._emit(event)

    def sign_out(self) -> None:
        self.clear()

    def clear(self) -> None:
        """Drop the token and the cached profile, notifying listeners once."""
        previous = self._user
        self._access_token = None
        self._user = None
        if previous is None:
            return
        logger.info("Session cleared", extra={"user_id": previous.id})
        self._emit(SessionEvent(SessionEventType.SIGNED_OUT, None, previous_user=previous))

    def add_listener(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener and return the callable that removes it."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _emit(self, event: SessionEvent) -> None:
        for listener in list(self._listeners):
            listener(event)


class Navigator(Protocol):
    """Application router seen by the gateway."""

    @property
    def current_path(self) -> str: ...

    def redirect(self, path: str) -> None: ...


class InMemoryNavigator:
    """Navigator for headless shells and tests; remembers every redirect."""

    def __init__(self, initial_path: str = "/") -> None:
        self._current_path = initial_path
        self.history: list[str] = [initial_path]

    @property
    def current_path(self) -> str:
        return self._current_path

    def redirect(self, path: str) -> None:
        logger.info("Navigating", extra={"from_path": self._current_path, "to_path": path})
        self._current_path = path
        self.history.append(path)


__all__ = [
    "AuthSession",
    "InMemoryNavigator",
    "Navigator",
    "SessionEvent",
    "SessionEventType",
    "SessionListener",
]
