"""Broadcasts catalog mutation events to connected websocket clients."""
import asyncio
import enum
import json
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class MutationAction(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(slots=True, frozen=True)
class MutationEvent:
    action: MutationAction
    product_id: int

    def to_message(self) -> dict:
        return {"action": self.action.value, "id": self.product_id}


class _Subscriber:
    def __init__(self, subscriber_id: str, websocket: WebSocket, queue_size: int) -> None:
        self.subscriber_id = subscriber_id
        self.websocket = websocket
        self.queue: asyncio.Queue[str] = asyncio.Queue(maxsize=queue_size)
        self.task: Optional[asyncio.Task] = None


class ChangeNotifier:
    """Fire-and-forget fan-out of mutation events.

    ``broadcast`` only enqueues; each subscriber has its own pump task doing
    the websocket writes, so a slow client never delays a request. Clients
    that are not connected when an event is published never see it.
    """

    def __init__(self, queue_size: int = 100) -> None:
        self.queue_size = queue_size
        self.subscribers: Dict[str, _Subscriber] = {}

    async def connect(self, subscriber_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        self.register(subscriber_id, websocket)

    def register(self, subscriber_id: str, websocket: WebSocket) -> None:
        previous = self.subscribers.pop(subscriber_id, None)
        if previous is not None and previous.task is not None:
            previous.task.cancel()
        subscriber = _Subscriber(subscriber_id, websocket, self.queue_size)
        subscriber.task = asyncio.create_task(self._pump(subscriber))
        self.subscribers[subscriber_id] = subscriber
        logger.info("Subscriber %s connected", subscriber_id)

    async def disconnect(self, subscriber_id: str) -> None:
        subscriber = self.subscribers.pop(subscriber_id, None)
        if subscriber is None:
            return
        current = asyncio.current_task()
        if subscriber.task is not None and subscriber.task is not current:
            subscriber.task.cancel()
        logger.info("Subscriber %s disconnected", subscriber_id)

    def broadcast(self, event: MutationEvent) -> int:
        """Queue ``event`` for every connected subscriber; returns how many got it."""
        payload = json.dumps(event.to_message())
        delivered = 0
        for subscriber in list(self.subscribers.values()):
            try:
                subscriber.queue.put_nowait(payload)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning(
                    "Subscriber %s is not keeping up, dropping %s event for %s",
                    subscriber.subscriber_id,
                    event.action.value,
                    event.product_id,
                )
        logger.debug("Broadcast %s/%s to %d subscriber(s)", event.action.value, event.product_id, delivered)
        return delivered

    def subscriber_count(self) -> int:
        return len(self.subscribers)

    def is_connected(self, subscriber_id: str) -> bool:
        return subscriber_id in self.subscribers

    async def close(self) -> None:
        for subscriber_id in list(self.subscribers):
            await self.disconnect(subscriber_id)

    async def _pump(self, subscriber: _Subscriber) -> None:
        try:
            while True:
                payload = await subscriber.queue.get()
                try:
                    await subscriber.websocket.send_text(payload)
                except Exception as exc:  # pylint: disable=broad-except
                    logger.error("Failed to push event to subscriber %s: %s", subscriber.subscriber_id, exc)
                    if self.subscribers.get(subscriber.subscriber_id) is subscriber:
                        await self.disconnect(subscriber.subscriber_id)
                    return
        except asyncio.CancelledError:
            logger.debug("Pump for subscriber %s cancelled", subscriber.subscriber_id)


__all__ = ["ChangeNotifier", "MutationAction", "MutationEvent"]
