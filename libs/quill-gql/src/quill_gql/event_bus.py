"""In-process topic bus for GraphQL subscriptions.

Publishers call :meth:`TopicBus.publish`; each subscriber holds a
:class:`Subscription` with its own bounded :class:`asyncio.Queue`, so
back-pressure is per client.  Topics are exact-match strings.

The bus is an ordinary object: construct one per process and hand it to
every request and connection context.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_SIZE = 64

_CLOSED = object()


class ChangeType(str, Enum):
    """Kind of state transition that produced an envelope."""

    CREATED = "CREATED"
    UPDATED = "UPDATED"
    DELETED = "DELETED"


@dataclass(frozen=True)
class Envelope:
    """Payload delivered to subscribers."""

    kind: ChangeType
    resource_type: str
    resource: dict[str, Any]


class Subscription:
    """A live registration on one topic.

    Iterating yields envelopes in publish order until :meth:`close` is
    called, either by the consumer or by the bus when the buffer
    overflows.  Envelopes still buffered at close time are discarded.
    """

    def __init__(self, bus: TopicBus, topic: str, buffer_size: int) -> None:
        self.topic = topic
        self._bus = bus
        self._queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=buffer_size)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        """Envelopes buffered and not yet consumed."""
        if self._closed:
            return 0
        return self._queue.qsize()

    def _offer(self, envelope: Envelope) -> None:
        self._queue.put_nowait(envelope)

    def close(self) -> None:
        """Deregister from the bus and wake a pending consumer. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._bus._discard(self)
        try:
            self._queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            # A full queue means nobody is blocked in get(); the closed flag suffices.
            pass

    async def aclose(self) -> None:
        self.close()

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> Envelope:
        if self._closed:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED or self._closed:
            raise StopAsyncIteration
        return item

    async def __aenter__(self) -> Subscription:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()


class TopicBus:
    """Exact-match topic fan-out with per-subscriber FIFO buffers."""

    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE) -> None:
        if buffer_size < 1:
            raise ValueError(f"buffer_size must be >= 1, got {buffer_size}")
        self._buffer_size = buffer_size
        self._topics: dict[str, list[Subscription]] = {}

    def subscribe(self, topic: str) -> Subscription:
        """Register a subscriber on *topic* now and return its handle.

        Only envelopes published after this call are delivered.
        """
        subscription = Subscription(self, topic, self._buffer_size)
        self._topics.setdefault(topic, []).append(subscription)
        logger.debug("Subscriber registered on %s", topic, extra={"event": "subscriber_registered"})
        return subscription

    async def publish(self, topic: str, envelope: Envelope) -> int:
        """Offer *envelope* to every subscriber on *topic* in registration order.

        Returns the number of subscribers that accepted it.  A subscriber
        whose buffer is full is disconnected; the others still receive
        the envelope.
        """
        delivered = 0
        for subscription in list(self._topics.get(topic, ())):
            if subscription.closed:
                continue
            try:
                subscription._offer(envelope)
            except asyncio.QueueFull:
                logger.warning(
                    "Subscriber on %s fell behind; disconnecting",
                    topic,
                    extra={"event": "subscriber_disconnected"},
                )
                subscription.close()
                continue
            delivered += 1
        return delivered

    def subscriber_count(self, topic: str) -> int:
        return len(self._topics.get(topic, ()))

    def _discard(self, subscription: Subscription) -> None:
        subscribers = self._topics.get(subscription.topic)
        if not subscribers:
            return
        try:
            subscribers.remove(subscription)
        except ValueError:
            return
        if not subscribers:
            del self._topics[subscription.topic]

    async def aclose(self) -> None:
        """Close every registration; their iterators finish."""
        subscriptions = [s for subs in self._topics.values() for s in subs]
        for subscription in subscriptions:
            subscription.close()
        logger.info(
            "Topic bus closed (%d subscriptions ended)",
            len(subscriptions),
            extra={"event": "bus_closed"},
        )
