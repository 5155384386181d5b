"""Tests for the connection hub fan-out."""
import asyncio

from broadcast import ConnectionHub
from events import NEW_POST, POST_UPDATED, ForumEvent


def test_publish_reaches_every_channel_in_order():
    async def scenario():
        hub = ConnectionHub()
        first, second = hub.connect(), hub.connect()
        hub.publish(ForumEvent(NEW_POST, {"id": 1}))
        hub.publish(ForumEvent(POST_UPDATED, {"id": 1, "votes": 1}))
        return [
            [ch.queue.get_nowait() for _ in range(ch.queue.qsize())]
            for ch in (first, second)
        ]

    frames_a, frames_b = asyncio.run(scenario())
    expected = [
        {"event": "newPost", "data": {"id": 1}},
        {"event": "postUpdated", "data": {"id": 1, "votes": 1}},
    ]
    assert frames_a == expected
    assert frames_b == expected


def test_disconnected_channel_misses_later_events():
    async def scenario():
        hub = ConnectionHub()
        gone = hub.connect()
        hub.disconnect(gone)
        delivered = hub.publish(ForumEvent(NEW_POST, {"id": 2}))
        late = hub.connect()
        return hub, gone, late, delivered

    hub, gone, late, delivered = asyncio.run(scenario())
    assert delivered == 0
    assert gone.queue.empty()
    assert late.queue.empty()
    assert len(hub) == 1


def test_lagging_channel_is_dropped():
    async def scenario():
        hub = ConnectionHub()
        slow = hub.connect()
        slow.queue = asyncio.Queue(maxsize=1)
        fast = hub.connect()
        hub.publish(ForumEvent(NEW_POST, {"id": 1}))
        hub.publish(ForumEvent(NEW_POST, {"id": 2}))
        return hub, slow, fast

    hub, slow, fast = asyncio.run(scenario())
    assert slow not in hub
    assert fast in hub
    assert fast.queue.qsize() == 2
