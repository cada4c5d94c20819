"""Broadcaster - fans live updates out to connected observers.

Each observer owns a bounded queue. Publishing never waits: when an
observer's queue is full the message is dropped for that observer only.
Updates are full snapshots, so a dropped message is superseded by the next one.
"""
import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class PublishResult:
    """Delivery counts for one publish."""
    sent: int = 0
    dropped: int = 0


class Subscription:
    """Handle an observer uses to pull its queued messages."""

    def __init__(self, session_id: str, buffer_size: int):
        self.id = session_id
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=buffer_size)
        self.closed = False

    def offer(self, message: str) -> bool:
        """Queue a message without waiting. False if full or closed."""
        if self.closed:
            return False
        try:
            self._queue.put_nowait(message)
            return True
        except asyncio.QueueFull:
            return False

    async def get(self) -> Optional[str]:
        """Next message, or None once the subscription has been closed."""
        if self.closed and self._queue.empty():
            return None
        return await self._queue.get()

    def close(self):
        """Release buffered messages and wake a waiting reader."""
        if self.closed:
            return
        self.closed = True
        while not self._queue.empty():
            self._queue.get_nowait()
        # Queue is empty now, so the sentinel always fits
        self._queue.put_nowait(None)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def __aiter__(self) -> AsyncIterator[str]:
        return self

    async def __anext__(self) -> str:
        message = await self.get()
        if message is None:
            raise StopAsyncIteration
        return message


class Broadcaster:
    """Registry of observers and best-effort fan-out to them."""

    def __init__(self, buffer_size: int = 256):
        self.buffer_size = buffer_size
        self._subscribers: Dict[str, Subscription] = {}
        self._lock = asyncio.Lock()

    async def subscribe(self, session_id: str) -> Subscription:
        """Register an observer with an empty buffer."""
        subscription = Subscription(session_id, self.buffer_size)
        async with self._lock:
            previous = self._subscribers.pop(session_id, None)
            if previous is not None:
                previous.close()
            self._subscribers[session_id] = subscription
            total = len(self._subscribers)
        logger.info(f"Observer connected: {session_id} (total: {total})")
        return subscription

    async def unsubscribe(self, session_id: str):
        """Deregister an observer. Safe to call more than once."""
        async with self._lock:
            subscription = self._subscribers.pop(session_id, None)
            total = len(self._subscribers)
        if subscription is None:
            return
        subscription.close()
        logger.info(f"Observer disconnected: {session_id} (total: {total})")

    async def publish(self, message: str) -> PublishResult:
        """Offer an encoded message to every registered observer."""
        # Copy the registry so subscribe/unsubscribe are not held up by delivery
        async with self._lock:
            subscribers: List[Subscription] = list(self._subscribers.values())

        result = PublishResult()
        if not subscribers:
            logger.debug(f"No observers connected, dropping message ({len(message)} bytes)")
            return result

        for subscription in subscribers:
            if subscription.offer(message):
                result.sent += 1
            else:
                result.dropped += 1
                logger.warning(f"Observer {subscription.id} buffer full, dropping message")

        logger.debug(
            f"Broadcast: sent to {result.sent}/{len(subscribers)} observers "
            f"({len(message)} bytes, {result.dropped} dropped)"
        )
        return result

    async def publish_update(self, update_type: str, data: Any) -> PublishResult:
        """Wrap data in a {"type", "data"} envelope and publish it."""
        message = encode_update(update_type, data)
        logger.debug(f"Broadcasting {update_type} update ({len(message)} bytes)")
        return await self.publish(message)

    async def close(self):
        """Disconnect every observer."""
        async with self._lock:
            subscribers = list(self._subscribers.values())
            self._subscribers.clear()
        for subscription in subscribers:
            subscription.close()

    @property
    def subscriber_count(self) -> int:
        """Return the number of connected observers."""
        return len(self._subscribers)


def encode_update(update_type: str, data: Any) -> str:
    """JSON envelope shared by every live update."""
    return json.dumps({"type": update_type, "data": data}, default=str)
