from __future__ import annotations

from typing import Any

import pytest
from socketio.exceptions import ConnectionError as SocketConnectionError
from tenacity import wait_none

from rental_client.core.socket import (
    OWNER_NOTIFICATION_EVENT,
    OWNER_SUBSCRIBE_EVENT,
    OWNER_UNSUBSCRIBE_EVENT,
    LiveChannel,
    split_socket_url,
)
from tests.helpers import FakeSocketClient

SOCKET_URL = "http://testserver/socket"


def _channel(client: FakeSocketClient, **kwargs: Any) -> LiveChannel:
    return LiveChannel(SOCKET_URL, client=client, retry_wait=wait_none(), **kwargs)


def test_split_socket_url_extracts_namespace() -> None:
    assert split_socket_url("https://api.example.com/socket") == (
        "https://api.example.com",
        "/socket",
    )
    assert split_socket_url("http://localhost:4000") == ("http://localhost:4000", "/")


@pytest.mark.asyncio
async def test_first_subscriber_connects_and_subscribes() -> None:
    client = FakeSocketClient()
    channel = _channel(client)

    await channel.subscribe("owner-1", lambda payload: None)

    assert client.connected is True
    url, kwargs = client.connect_calls[0]
    assert url == "http://testserver"
    assert kwargs["namespaces"] == ["/socket"]
    assert kwargs["transports"] == ["websocket"]
    assert client.emitted == [(OWNER_SUBSCRIBE_EVENT, {"ownerId": "owner-1"}, "/socket")]


@pytest.mark.asyncio
async def test_subscriptions_are_reference_counted() -> None:
    client = FakeSocketClient()
    channel = _channel(client)

    first = await channel.subscribe("owner-1", lambda payload: None)
    second = await channel.subscribe("owner-1", lambda payload: None)

    subscribe_events = [event for event in client.emitted if event[0] == OWNER_SUBSCRIBE_EVENT]
    assert len(subscribe_events) == 1
    assert channel.subscriber_count("owner-1") == 2

    await first.close()
    assert all(event[0] != OWNER_UNSUBSCRIBE_EVENT for event in client.emitted)
    assert client.connected is True

    await second.close()
    assert client.emitted[-1] == (OWNER_UNSUBSCRIBE_EVENT, {"ownerId": "owner-1"}, "/socket")
    assert client.connected is False
    assert client.disconnects == 1
    assert channel.subscriber_count() == 0


@pytest.mark.asyncio
async def test_closing_subscription_twice_is_harmless() -> None:
    client = FakeSocketClient()
    channel = _channel(client)
    subscription = await channel.subscribe("owner-1", lambda payload: None)

    await subscription.close()
    await subscription.close()

    unsubscribes = [event for event in client.emitted if event[0] == OWNER_UNSUBSCRIBE_EVENT]
    assert len(unsubscribes) == 1


@pytest.mark.asyncio
async def test_pushes_fan_out_to_handlers() -> None:
    client = FakeSocketClient()
    channel = _channel(client)
    received: list[tuple[str, Any]] = []

    await channel.subscribe("owner-1", lambda payload: received.append(("a", payload)))
    await channel.subscribe("owner-1", lambda payload: received.append(("b", payload)))

    client.push(OWNER_NOTIFICATION_EVENT, {"id": "n1"})

    assert received == [("a", {"id": "n1"}), ("b", {"id": "n1"})]


@pytest.mark.asyncio
async def test_failing_handler_does_not_block_others() -> None:
    client = FakeSocketClient()
    channel = _channel(client)
    received: list[Any] = []

    def broken(payload: Any) -> None:
        raise RuntimeError("boom")

    await channel.subscribe("owner-1", broken)
    await channel.subscribe("owner-1", received.append)

    client.push(OWNER_NOTIFICATION_EVENT, {"id": "n2"})

    assert received == [{"id": "n2"}]


@pytest.mark.asyncio
async def test_connect_is_retried() -> None:
    client = FakeSocketClient(failures_before_connect=2)
    channel = _channel(client, connect_attempts=3)

    await channel.subscribe("owner-1", lambda payload: None)

    assert len(client.connect_calls) == 3
    assert client.connected is True


@pytest.mark.asyncio
async def test_connect_gives_up_after_attempts() -> None:
    client = FakeSocketClient(failures_before_connect=5)
    channel = _channel(client, connect_attempts=2)

    with pytest.raises(SocketConnectionError):
        await channel.subscribe("owner-1", lambda payload: None)

    assert len(client.connect_calls) == 2
    assert channel.subscriber_count() == 0
