"""Topic based notification bus with an optional per-topic throttle."""

import logging
import time
from collections import defaultdict
from typing import Any, Callable

logger = logging.getLogger(__name__)

Callback = Callable[[Any], None]

LETTRAGE_CHANGED = "lettrage.changed"


class EventBus:
    """Deliver notifications to subscribers.

    A publish that arrives less than ``throttle_seconds`` after the last
    delivered publish on the same topic is dropped.
    """

    def __init__(self, throttle_seconds: float = 0.0, clock: Callable[[], float] = time.monotonic):
        if throttle_seconds < 0:
            raise ValueError("throttle_seconds must be non-negative")
        self.throttle_seconds = throttle_seconds
        self._clock = clock
        self._subscribers: dict[str, list[Callback]] = defaultdict(list)
        self._last_delivery: dict[str, float] = {}

    def subscribe(self, topic: str, callback: Callback) -> Callable[[], None]:
        """Register a callback and return a function that unregisters it."""
        self._subscribers[topic].append(callback)

        def dispose() -> None:
            callbacks = self._subscribers.get(topic, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return dispose

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic, []))

    def publish(self, topic: str, payload: Any = None) -> bool:
        """Notify every subscriber of ``topic``.

        Returns:
            False if the publish was throttled, True otherwise
        """
        now = self._clock()
        last = self._last_delivery.get(topic)
        if last is not None and now - last < self.throttle_seconds:
            logger.debug("Notification on %s throttled", topic)
            return False

        self._last_delivery[topic] = now
        for callback in list(self._subscribers.get(topic, [])):
            try:
                callback(payload)
            except Exception:
                logger.exception("Subscriber for %s failed", topic)
        return True
