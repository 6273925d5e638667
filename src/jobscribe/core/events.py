from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import AsyncIterator

from jobscribe.core.messages import Message
from jobscribe.errors import DeliveryError

logger = logging.getLogger(__name__)


class SurfaceChannel:
    """Delivers coordinator messages to the UI surfaces that are currently open.

    A surface exists only while something iterates :meth:`subscribe` for its
    window. Messages published while no surface listens are not queued.
    """

    def __init__(self) -> None:
        self._queues: dict[int, list[asyncio.Queue[Message]]] = defaultdict(list)
        self._visible: set[int] = set()
        self._lock = asyncio.Lock()

    async def open(self, window_id: int) -> None:
        self._visible.add(window_id)
        logger.debug("Surface opened window_id=%s", window_id)

    def is_visible(self, window_id: int) -> bool:
        return window_id in self._visible

    def listener_count(self, window_id: int | None = None) -> int:
        if window_id is not None:
            return len(self._queues.get(window_id, []))
        return sum(len(queues) for queues in self._queues.values())

    async def publish(self, message: Message, *, window_id: int | None = None) -> int:
        async with self._lock:
            if window_id is None:
                targets = [queue for queues in self._queues.values() for queue in queues]
            else:
                targets = list(self._queues.get(window_id, []))
            for queue in targets:
                await queue.put(message)

        if not targets:
            raise DeliveryError(f"no surface is listening for {message.type}")
        return len(targets)

    async def subscribe(self, window_id: int) -> AsyncIterator[Message]:
        queue: asyncio.Queue[Message] = asyncio.Queue()
        async with self._lock:
            self._queues[window_id].append(queue)
            self._visible.add(window_id)

        try:
            while True:
                message = await queue.get()
                yield message
        finally:
            async with self._lock:
                if queue in self._queues.get(window_id, []):
                    self._queues[window_id].remove(queue)
                if not self._queues.get(window_id):
                    self._queues.pop(window_id, None)
                    self._visible.discard(window_id)
