"""Client services orchestrating repositories and session state."""

from rental_client.services.auth_service import AuthService
from rental_client.services.notification_session import NotificationSessionBinder
from rental_client.services.notifications import (
    BestEffortSync,
    NotificationSnapshot,
    NotificationSynchronizer,
    SyncState,
)
from rental_client.services.pricing import calculate_price

__all__ = [
    "AuthService",
    "BestEffortSync",
    "NotificationSessionBinder",
    "NotificationSnapshot",
    "NotificationSynchronizer",
    "SyncState",
    "calculate_price",
]
