"""Unit tests for the broadcaster."""
import asyncio
import json

import pytest

from nanostatus.services.broadcaster import Broadcaster, encode_update


@pytest.mark.asyncio
async def test_publish_reaches_every_subscriber():
    broadcaster = Broadcaster(buffer_size=8)
    first = await broadcaster.subscribe("a")
    second = await broadcaster.subscribe("b")

    result = await broadcaster.publish("hello")

    assert (result.sent, result.dropped) == (2, 0)
    assert await first.get() == "hello"
    assert await second.get() == "hello"


@pytest.mark.asyncio
async def test_publish_without_subscribers_is_noop():
    broadcaster = Broadcaster()
    result = await broadcaster.publish("hello")
    assert (result.sent, result.dropped) == (0, 0)


@pytest.mark.asyncio
async def test_full_buffer_drops_only_for_that_subscriber():
    broadcaster = Broadcaster(buffer_size=1)
    slow = await broadcaster.subscribe("slow")
    await broadcaster.publish("first")

    fast = await broadcaster.subscribe("fast")
    # Must not block even though "slow" has no room
    result = await asyncio.wait_for(broadcaster.publish("second"), timeout=0.5)

    assert (result.sent, result.dropped) == (1, 1)
    assert await fast.get() == "second"
    assert await slow.get() == "first"
    assert slow.pending == 0


@pytest.mark.asyncio
async def test_messages_keep_publish_order():
    broadcaster = Broadcaster(buffer_size=10)
    subscription = await broadcaster.subscribe("a")
    for i in range(5):
        await broadcaster.publish(str(i))

    received = [await subscription.get() for _ in range(5)]

    assert received == ["0", "1", "2", "3", "4"]


@pytest.mark.asyncio
async def test_unsubscribe_is_idempotent_and_releases_buffer():
    broadcaster = Broadcaster(buffer_size=4)
    subscription = await broadcaster.subscribe("a")
    await broadcaster.publish("queued")

    await broadcaster.unsubscribe("a")
    await broadcaster.unsubscribe("a")

    assert broadcaster.subscriber_count == 0
    assert subscription.closed
    assert await subscription.get() is None
    result = await broadcaster.publish("after")
    assert result.sent == 0


@pytest.mark.asyncio
async def test_unsubscribe_ends_iteration_of_waiting_reader():
    broadcaster = Broadcaster()
    subscription = await broadcaster.subscribe("a")
    received = []

    async def reader():
        async for message in subscription:
            received.append(message)

    task = asyncio.create_task(reader())
    await broadcaster.publish("one")
    await asyncio.sleep(0.01)
    await broadcaster.unsubscribe("a")
    await asyncio.wait_for(task, timeout=1)

    assert received == ["one"]


@pytest.mark.asyncio
async def test_resubscribing_same_id_replaces_previous():
    broadcaster = Broadcaster()
    old = await broadcaster.subscribe("a")
    new = await broadcaster.subscribe("a")

    await broadcaster.publish("msg")

    assert old.closed
    assert broadcaster.subscriber_count == 1
    assert await new.get() == "msg"


@pytest.mark.asyncio
async def test_publish_update_wraps_envelope():
    broadcaster = Broadcaster()
    subscription = await broadcaster.subscribe("a")

    await broadcaster.publish_update("monitor_update", {"id": 1, "status": "up"})

    assert json.loads(await subscription.get()) == {
        "type": "monitor_update",
        "data": {"id": 1, "status": "up"},
    }


@pytest.mark.asyncio
async def test_close_disconnects_everyone():
    broadcaster = Broadcaster()
    subscriptions = [await broadcaster.subscribe(str(i)) for i in range(3)]

    await broadcaster.close()

    assert broadcaster.subscriber_count == 0
    assert all(s.closed for s in subscriptions)


def test_encode_update_handles_datetimes():
    from datetime import datetime

    payload = json.loads(encode_update("x", {"at": datetime(2024, 1, 2, 3, 4, 5)}))
    assert payload["data"]["at"] == "2024-01-02 03:04:05"
