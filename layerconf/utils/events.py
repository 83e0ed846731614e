"""Publish/subscribe channel for change and error notifications."""

import logging
import queue
import threading
import uuid
from typing import Any, Callable

logger = logging.getLogger(__name__)


class EventChannel:
    """Thread-safe list of subscribers receiving emitted events.

    Subscribers run synchronously on the emitting thread. A subscriber that
    raises is logged and skipped; the remaining subscribers still receive
    the event. Consumers that prefer to drain events on their own thread
    can use :meth:`subscribe_queue`.
    """

    def __init__(self, name: str = "events"):
        self.name = name
        self._lock = threading.Lock()
        self._subscribers: dict[str, Callable[[Any], None]] = {}

    def subscribe(self, callback: Callable[[Any], None]) -> str:
        """Register a callback.

        Args:
            callback: Function called with each emitted event

        Returns:
            Subscription ID for unsubscribing
        """
        subscription_id = str(uuid.uuid4())
        with self._lock:
            self._subscribers[subscription_id] = callback
        logger.debug(
            f"Subscribed {getattr(callback, '__name__', callback)!s} to {self.name}"
        )
        return subscription_id

    def subscribe_queue(self, maxsize: int = 0) -> queue.Queue:
        """Deliver every future event onto a new queue and return it."""
        events: queue.Queue = queue.Queue(maxsize=maxsize)
        self.subscribe(events.put)
        return events

    def unsubscribe(self, subscription_id: str) -> bool:
        with self._lock:
            return self._subscribers.pop(subscription_id, None) is not None

    def emit(self, event: Any) -> int:
        """Deliver ``event`` to every subscriber.

        Returns:
            Number of subscribers that handled the event without raising
        """
        with self._lock:
            callbacks = list(self._subscribers.values())

        delivered = 0
        for callback in callbacks:
            try:
                callback(event)
                delivered += 1
            except Exception as e:
                logger.error(
                    f"Subscriber {getattr(callback, '__name__', callback)!s} "
                    f"on {self.name} failed: {e}"
                )
        return delivered

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscribers)
