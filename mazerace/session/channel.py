"""
Channel - Publish/subscribe transport used by online matches.

The real transport (an MQTT client, for instance) lives outside this
package and plugs in through PubSubChannel. Semantics expected from it:
- At-least-once delivery of pushes, possibly duplicated or reordered
- Retain-latest: a retained publish replaces the topic's stored value,
  and an empty retained payload clears it (a tombstone)
- New subscribers receive the retained value first, if any

InMemoryBroker implements those semantics inside one process for tests,
the CLI demo and hot-seat play. UnreliableChannel wraps any channel and
drops or duplicates pushes to exercise reconciliation.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
import asyncio
import logging
import random
from typing import Callable

logger = logging.getLogger(__name__)

_CLOSED = object()


class ChannelTimeout(Exception):
    """A user-initiated channel operation ran out of time."""


class Subscription:
    """
    Stream of payloads for one topic.

    Iterate with `async for`; iteration ends once close() is called.
    """

    def __init__(self, topic: str, on_close: Callable[[Subscription], None] | None = None):
        self.topic = topic
        self.closed = False
        self._queue: asyncio.Queue = asyncio.Queue()
        self._on_close = on_close

    def deliver(self, payload: str):
        """Push a payload to this subscriber (called by the broker)."""
        if not self.closed:
            self._queue.put_nowait(payload)

    async def get(self, timeout: float | None = None) -> str | None:
        """
        Next payload, or None once the subscription is closed.

        Raises asyncio.TimeoutError if nothing arrives in time.
        """
        if self.closed and self._queue.empty():
            return None
        item = await asyncio.wait_for(self._queue.get(), timeout)
        if item is _CLOSED:
            return None
        return item

    def close(self):
        if self.closed:
            return
        self.closed = True
        self._queue.put_nowait(_CLOSED)
        if self._on_close:
            self._on_close(self)

    def __aiter__(self):
        return self

    async def __anext__(self) -> str:
        payload = await self.get()
        if payload is None:
            raise StopAsyncIteration
        return payload


class PubSubChannel(ABC):
    """
    Abstract publish/subscribe client.

    Payloads are text (JSON documents, or "" for a tombstone).
    """

    @abstractmethod
    async def connect(self):
        pass

    @abstractmethod
    async def publish(self, topic: str, payload: str, retain: bool = False):
        pass

    @abstractmethod
    async def subscribe(self, topic: str) -> Subscription:
        pass

    @abstractmethod
    async def close(self):
        pass

    async def fetch_latest(self, topic: str, timeout: float) -> str | None:
        """
        Latest retained payload for a topic, or None.

        Subscribes, takes the first payload within the timeout and
        unsubscribes again. A tombstone reads as None.
        """
        subscription = await self.subscribe(topic)
        try:
            payload = await subscription.get(timeout)
        except asyncio.TimeoutError:
            logger.debug("No retained payload on %s within %.2fs", topic, timeout)
            return None
        finally:
            subscription.close()
        return payload or None


class InMemoryBroker:
    """
    Process-local broker with retain-latest and fan-out.

    Delivery is immediate and in order; wrap clients in UnreliableChannel
    to get a less friendly network.
    """

    def __init__(self):
        self.retained: dict[str, str] = {}
        self._subscribers: dict[str, list[Subscription]] = {}
        self.published: list[tuple[str, str]] = []

    def publish(self, topic: str, payload: str, retain: bool = False):
        self.published.append((topic, payload))
        if retain:
            if payload:
                self.retained[topic] = payload
            else:
                self.retained.pop(topic, None)
        for subscription in list(self._subscribers.get(topic, [])):
            subscription.deliver(payload)

    def subscribe(
        self,
        topic: str,
        on_close: Callable[[Subscription], None] | None = None,
    ) -> Subscription:
        def closed(subscription: Subscription):
            self._remove(subscription)
            if on_close:
                on_close(subscription)

        subscription = Subscription(topic, on_close=closed)
        self._subscribers.setdefault(topic, []).append(subscription)
        if topic in self.retained:
            subscription.deliver(self.retained[topic])
        return subscription

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic, []))

    def _remove(self, subscription: Subscription):
        subscribers = self._subscribers.get(subscription.topic, [])
        if subscription in subscribers:
            subscribers.remove(subscription)

    def client(self) -> InMemoryChannel:
        return InMemoryChannel(self)


class InMemoryChannel(PubSubChannel):
    """A client of an InMemoryBroker."""

    def __init__(self, broker: InMemoryBroker):
        self.broker = broker
        self.connected = False
        self._subscriptions: list[Subscription] = []

    async def connect(self):
        self.connected = True

    async def publish(self, topic: str, payload: str, retain: bool = False):
        if not self.connected:
            await self.connect()
        self.broker.publish(topic, payload, retain=retain)

    async def subscribe(self, topic: str) -> Subscription:
        if not self.connected:
            await self.connect()
        subscription = self.broker.subscribe(topic, on_close=self._forget)
        self._subscriptions.append(subscription)
        return subscription

    @property
    def open_subscriptions(self) -> int:
        return len(self._subscriptions)

    def _forget(self, subscription: Subscription):
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    async def close(self):
        for subscription in list(self._subscriptions):
            subscription.close()
        self._subscriptions.clear()
        self.connected = False


class _LossySubscription(Subscription):
    """Subscription view that loses and repeats pushes."""

    def __init__(self, inner: Subscription, channel: UnreliableChannel):
        super().__init__(inner.topic)
        self.inner = inner
        self.channel = channel
        self._pending: list[str] = []

    async def get(self, timeout: float | None = None) -> str | None:
        if self._pending:
            return self._pending.pop()
        while True:
            payload = await self.inner.get(timeout)
            if payload is None:
                return None
            if self.channel.rng.random() < self.channel.drop_rate:
                self.channel.dropped += 1
                continue
            if self.channel.rng.random() < self.channel.duplicate_rate:
                self.channel.duplicated += 1
                self._pending.append(payload)
            return payload

    def close(self):
        self.closed = True
        self.inner.close()


class UnreliableChannel(PubSubChannel):
    """
    Wraps a channel and makes pushes unreliable.

    Publishes and fetch_latest pass straight through, so the retained
    value is always correct and polling can recover what pushes lost.
    """

    def __init__(
        self,
        inner: PubSubChannel,
        drop_rate: float = 0.0,
        duplicate_rate: float = 0.0,
        seed: int | None = None,
    ):
        self.inner = inner
        self.drop_rate = drop_rate
        self.duplicate_rate = duplicate_rate
        self.rng = random.Random(seed)
        self.dropped = 0
        self.duplicated = 0

    async def connect(self):
        await self.inner.connect()

    async def publish(self, topic: str, payload: str, retain: bool = False):
        await self.inner.publish(topic, payload, retain=retain)

    async def subscribe(self, topic: str) -> Subscription:
        return _LossySubscription(await self.inner.subscribe(topic), self)

    async def fetch_latest(self, topic: str, timeout: float) -> str | None:
        return await self.inner.fetch_latest(topic, timeout)

    async def close(self):
        await self.inner.close()
