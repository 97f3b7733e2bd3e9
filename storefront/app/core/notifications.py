from __future__ import annotations

import asyncio
import json
import logging
import time
from collections import deque
from dataclasses import asdict, dataclass, field
from typing import Any, AsyncGenerator, Deque, Dict, List, Optional, Set

from storefront.app.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class Notification:
    """User-visible signal (the toast the UI shows)."""
    kind: str                         # success|conflict|error
    title: str
    message: str = ""
    total: Optional[str] = None       # decimal rendered as text
    order_id: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    ts: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class NotificationBusBase:
    def __init__(self, history: int = 50) -> None:
        self._recent: Deque[Dict[str, Any]] = deque(maxlen=history)

    async def subscribe(self) -> AsyncGenerator[Dict[str, Any], None]:
        raise NotImplementedError

    async def publish(self, note: Notification) -> None:
        raise NotImplementedError

    def recent(self) -> List[Dict[str, Any]]:
        """Most recent notifications published from this process, oldest first."""
        return list(self._recent)


class MemoryNotificationBus(NotificationBusBase):
    def __init__(self, history: int = 50) -> None:
        super().__init__(history)
        self._subs: Set[asyncio.Queue] = set()

    async def subscribe(self) -> AsyncGenerator[Dict[str, Any], None]:
        q: asyncio.Queue = asyncio.Queue(maxsize=100)
        self._subs.add(q)
        try:
            while True:
                item = await q.get()
                yield item
        finally:
            self._subs.discard(q)

    async def publish(self, note: Notification) -> None:
        payload = note.to_dict()
        self._recent.append(payload)
        for q in list(self._subs):
            try:
                q.put_nowait(payload)
            except asyncio.QueueFull:
                logger.warning("notifications: subscriber queue full; dropping %r", note.title)


class RedisNotificationBus(NotificationBusBase):
    """
    Cross-process bus using Redis Pub/Sub.
    Channel: 'storefront:notifications'
    """
    CHANNEL = "storefront:notifications"

    async def subscribe(self) -> AsyncGenerator[Dict[str, Any], None]:
        from storefront.app.core.redis_conn import get_async_redis

        r = get_async_redis()
        pubsub = r.pubsub()
        await pubsub.subscribe(self.CHANNEL)
        try:
            async for message in pubsub.listen():
                if message is None or message.get("type") != "message":
                    continue
                try:
                    data = json.loads(message["data"])
                except ValueError:
                    logger.warning("notifications: malformed pub/sub payload ignored")
                    continue
                if isinstance(data, dict):
                    yield data
        finally:
            await pubsub.unsubscribe(self.CHANNEL)
            await pubsub.close()

    async def publish(self, note: Notification) -> None:
        from storefront.app.core.redis_conn import get_async_redis

        payload = note.to_dict()
        self._recent.append(payload)
        await get_async_redis().publish(self.CHANNEL, json.dumps(payload, ensure_ascii=False))


def new_notification_bus() -> NotificationBusBase:
    backend = (settings.notifications_backend or "memory").lower()
    if backend == "redis":
        return RedisNotificationBus()
    return MemoryNotificationBus()
