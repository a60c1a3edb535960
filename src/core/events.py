"""In-process publish/subscribe for change notifications.

Every subscription owns an unbounded asyncio queue, so ``publish`` only
enqueues and never waits for a consumer. Delivery is best effort: nothing is
stored, and a subscription only sees payloads published after it was created.

Membership changes are guarded by a lock; delivery runs outside it on a
snapshot of the listener list.
"""

import asyncio
import logging
import threading
from collections import defaultdict
from functools import lru_cache
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

_CLOSED = object()


def _topic_name(topic: Any) -> str:
    return str(getattr(topic, "value", topic))


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class Subscription:
    """Handle returned by :meth:`EventBus.subscribe`; iterate it to receive payloads."""

    def __init__(self, topic: str):
        self.topic = topic
        self._queue: asyncio.Queue = asyncio.Queue()
        self._loop = _running_loop()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def pending(self) -> int:
        return self._queue.qsize()

    def _call_in_loop(self, callback, *args) -> None:
        # asyncio.Queue is not thread-safe; hop onto the subscriber's loop.
        if self._loop is None or self._loop is _running_loop():
            callback(*args)
        elif not self._loop.is_closed():
            self._loop.call_soon_threadsafe(callback, *args)

    def _deliver(self, payload: Any) -> None:
        if not self._closed:
            self._call_in_loop(self._queue.put_nowait, payload)

    def _close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # wakes a consumer blocked in __anext__
        self._call_in_loop(self._queue.put_nowait, _CLOSED)

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> Any:
        if self._closed:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED or self._closed:
            raise StopAsyncIteration
        return item


class EventBus:
    def __init__(self) -> None:
        self._listeners: Dict[str, List[Subscription]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, topic: Any) -> Subscription:
        name = _topic_name(topic)
        subscription = Subscription(name)
        with self._lock:
            self._listeners[name].append(subscription)
        logger.debug("Subscribed to %s", name, extra={"topic": name})
        return subscription

    def unsubscribe(self, subscription: Subscription) -> bool:
        """Remove a listener. Payloads it has not consumed yet are dropped."""
        with self._lock:
            listeners = self._listeners.get(subscription.topic, [])
            try:
                listeners.remove(subscription)
                removed = True
            except ValueError:
                removed = False
            if not listeners:
                self._listeners.pop(subscription.topic, None)
        subscription._close()
        if removed:
            logger.debug(
                "Unsubscribed from %s", subscription.topic,
                extra={"topic": subscription.topic},
            )
        return removed

    def publish(self, topic: Any, payload: Any) -> int:
        """Hand ``payload`` to every current listener of ``topic``, in registration order.

        Returns the number of listeners the payload was handed to.
        """
        name = _topic_name(topic)
        with self._lock:
            listeners = list(self._listeners.get(name, ()))
        for subscription in listeners:
            subscription._deliver(payload)
        logger.debug(
            "Published %s to %d listener(s)", name, len(listeners),
            extra={"topic": name, "listeners": len(listeners)},
        )
        return len(listeners)

    def listener_count(self, topic: Any = None) -> int:
        with self._lock:
            if topic is None:
                return sum(len(items) for items in self._listeners.values())
            return len(self._listeners.get(_topic_name(topic), ()))

    def close(self) -> None:
        """End every subscription; called when the application shuts down."""
        with self._lock:
            subscriptions = [s for items in self._listeners.values() for s in items]
            self._listeners.clear()
        for subscription in subscriptions:
            subscription._close()


@lru_cache
def get_event_bus() -> EventBus:
    """Process-wide bus, also used as a FastAPI dependency."""
    return EventBus()
