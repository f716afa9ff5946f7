from __future__ import annotations

from typing import Any

import pytest

from rental_client.core.http import AuthenticatedGateway
from rental_client.repositories.notification import NotificationRepository
from tests.helpers import BackendStub


@pytest.mark.asyncio
async def test_list_notifications_unwraps_envelope(
    gateway: AuthenticatedGateway,
    backend: BackendStub,
) -> None:
    backend.reply(
        "GET",
        "/api/notifications",
        200,
        {"data": [{"id": "n1"}, {"id": "n2"}]},
    )

    payloads = await NotificationRepository(gateway).list_notifications()

    assert payloads == [{"id": "n1"}, {"id": "n2"}]


@pytest.mark.asyncio
async def test_list_notifications_accepts_nested_list(
    gateway: AuthenticatedGateway,
    backend: BackendStub,
) -> None:
    backend.reply("GET", "/api/notifications", 200, {"notifications": [{"id": "n1"}]})

    payloads = await NotificationRepository(gateway).list_notifications()

    assert payloads == [{"id": "n1"}]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("body", "expected"),
    [
        ({"data": {"count": 4}}, 4),
        ({"data": {"unreadCount": 2}}, 2),
        ({"count": 3}, 3),
        ({"data": 5}, 5),
        ({"data": "7"}, 7),
        ({"data": {"count": -2}}, 0),
        ({"data": {"count": "many"}}, 0),
        ({"data": {"total": 9}}, 0),
        ([], 0),
    ],
)
async def test_count_unread_tolerates_shapes(
    gateway: AuthenticatedGateway,
    backend: BackendStub,
    body: Any,
    expected: int,
) -> None:
    backend.reply("GET", "/api/notifications/count", 200, body)

    assert await NotificationRepository(gateway).count_unread() == expected


@pytest.mark.asyncio
async def test_mark_read_posts_to_quoted_path(
    gateway: AuthenticatedGateway,
    backend: BackendStub,
) -> None:
    backend.reply("POST", "/api/notifications/a/b/read", 200, {"success": True})

    await NotificationRepository(gateway).mark_read("a/b")

    assert backend.requests[-1].url.raw_path == b"/api/notifications/a%2Fb/read"
