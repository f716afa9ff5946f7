"""Repository wrapping the notification REST endpoints."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

from rental_client.repositories.base import BaseRepository

logger = logging.getLogger("rental_client.repositories.notification")

_COUNT_KEYS = ("count", "unreadCount", "unread_count", "unread")


class NotificationRepository(BaseRepository):
    """Read/write helpers for `/notifications`."""

    async def list_notifications(self) -> list[Any]:
        """Return the raw notification payloads for the signed-in user."""
        response = await self.gateway.get("/notifications")
        return self.as_list(self.unwrap(response), "notifications", "items")

    async def count_unread(self) -> int:
        """
        Return the server-side unread count.

        The endpoint has shipped several envelope shapes; anything that does
        not resolve to a non-negative integer counts as zero.
        """
        response = await self.gateway.get("/notifications/count")
        count = _extract_count(self.unwrap(response))
        if count is None:
            logger.warning("Unreadable notification count payload, assuming zero")
            return 0
        return count

    async def mark_read(self, notification_id: str) -> None:
        await self.gateway.post(f"/notifications/{quote(str(notification_id), safe='')}/read")


def _extract_count(payload: Any) -> int | None:
    if isinstance(payload, bool):
        return None
    if isinstance(payload, int):
        return max(payload, 0)
    if isinstance(payload, str) and payload.strip().isdigit():
        return int(payload.strip())
    if isinstance(payload, Mapping):
        for key in _COUNT_KEYS:
            if key in payload:
                return _extract_count(payload[key])
    return None


__all__ = ["NotificationRepository"]
