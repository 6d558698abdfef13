# academy/services/change_feed.py
"""In-process change feed.

Services publish a small event dict per committed change on a topic
(``enrollments``, ``notifications``); subscribers register a predicate and a
callback and receive every event on that topic the predicate accepts until
they unsubscribe. Callbacks may be plain functions or coroutines.
"""
import asyncio
import inspect
import itertools
import logging
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

ENROLLMENTS_TOPIC = "enrollments"
NOTIFICATIONS_TOPIC = "notifications"

Event = Dict[str, Any]
Predicate = Callable[[Event], bool]


class Subscription:
    def __init__(self, feed: "ChangeFeed", topic: str, key: int):
        self._feed = feed
        self.topic = topic
        self.key = key
        self.active = True

    def unsubscribe(self):
        if self.active:
            self._feed._remove(self.topic, self.key)
            self.active = False


class ChangeFeed:
    def __init__(self):
        # {topic: {subscription key: (predicate, callback)}}
        self._subscribers: Dict[str, Dict[int, tuple]] = {}
        self._keys = itertools.count(1)

    def subscribe(
        self,
        topic: str,
        callback: Callable[[Event], Any],
        predicate: Optional[Predicate] = None
    ) -> Subscription:
        key = next(self._keys)
        self._subscribers.setdefault(topic, {})[key] = (predicate or (lambda event: True), callback)
        logger.debug(f"Subscription {key} registered on {topic}")
        return Subscription(self, topic, key)

    def _remove(self, topic: str, key: int):
        subscribers = self._subscribers.get(topic)
        if subscribers is None:
            return
        subscribers.pop(key, None)
        if not subscribers:
            del self._subscribers[topic]
        logger.debug(f"Subscription {key} removed from {topic}")

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic, {}))

    async def publish(self, topic: str, event: Event) -> int:
        """Deliver ``event`` to matching subscribers; returns deliveries made."""
        delivered = 0
        # Copy so callbacks may unsubscribe while we iterate
        for key, (predicate, callback) in list(self._subscribers.get(topic, {}).items()):
            try:
                if not predicate(event):
                    continue
                result = callback(event)
                if inspect.isawaitable(result):
                    await result
                delivered += 1
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception(f"Change feed subscriber {key} on {topic} failed")
        return delivered


# Global feed instance
change_feed = ChangeFeed()
