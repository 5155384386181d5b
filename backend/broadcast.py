"""Fan-out of forum events to every connected WebSocket.

Membership lasts for the connection only. ``publish`` never awaits: it puts
the frame on each channel's queue, and a per-channel sender task drains the
queue, so every channel sees events in emission order. There is no ack and no
replay; a channel that connects later, or is dropped, must refetch.
"""

from __future__ import annotations

import asyncio
import contextlib
import itertools
import logging
from typing import Set

from fastapi import WebSocket, WebSocketDisconnect

from events import ForumEvent

logger = logging.getLogger(__name__)

CHANNEL_QUEUE_SIZE = 1000

_channel_ids = itertools.count(1)


class Channel:
    def __init__(self, maxsize: int = CHANNEL_QUEUE_SIZE) -> None:
        self.id = next(_channel_ids)
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._sender: asyncio.Task | None = None

    async def _send_loop(self, websocket: WebSocket) -> None:
        while True:
            frame = await self.queue.get()
            await websocket.send_json(frame)

    async def _receive_loop(self, websocket: WebSocket) -> None:
        # inbound messages are not part of the protocol; drain until close
        while True:
            await websocket.receive_text()

    async def run(self, websocket: WebSocket) -> None:
        """Pump queued frames to ``websocket`` until either side fails or closes."""
        sender = self._sender = asyncio.create_task(self._send_loop(websocket))
        receiver = asyncio.create_task(self._receive_loop(websocket))
        try:
            done, _ = await asyncio.wait({sender, receiver}, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                if task.cancelled():
                    continue
                exc = task.exception()
                if exc is not None and not isinstance(exc, WebSocketDisconnect):
                    logger.warning("channel=%d closed on error: %s", self.id, exc)
        finally:
            for task in (sender, receiver):
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError, Exception):
                    await task

    def close(self) -> None:
        if self._sender is not None:
            self._sender.cancel()


class ConnectionHub:
    def __init__(self) -> None:
        self._channels: Set[Channel] = set()

    def connect(self) -> Channel:
        channel = Channel()
        self._channels.add(channel)
        logger.info("client connected channel=%d total=%d", channel.id, len(self._channels))
        return channel

    def disconnect(self, channel: Channel) -> None:
        if channel in self._channels:
            self._channels.discard(channel)
            logger.info("client disconnected channel=%d total=%d", channel.id, len(self._channels))

    def publish(self, event: ForumEvent) -> int:
        """Queue ``event`` on every channel; returns how many channels took it."""
        frame = event.to_frame()
        dead = []
        delivered = 0
        for channel in list(self._channels):
            try:
                channel.queue.put_nowait(frame)
                delivered += 1
            except asyncio.QueueFull:
                dead.append(channel)  # lagging client is dropped
        for channel in dead:
            logger.warning("dropping lagging channel=%d", channel.id)
            self._channels.discard(channel)
            channel.close()
        return delivered

    def __len__(self) -> int:
        return len(self._channels)

    def __contains__(self, channel: Channel) -> bool:
        return channel in self._channels
