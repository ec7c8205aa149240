"""
Progress Publisher

Fan-out of run events to a changing set of subscribers. Each subscriber
owns a bounded queue; publishing never blocks, and events for a full
queue are dropped for that subscriber only.
"""

import logging
import queue
import threading
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 500


class Subscription:
    """One subscriber's event queue."""

    def __init__(self, publisher: "ProgressPublisher", maxsize: int):
        self._publisher = publisher
        self._queue: "queue.Queue[Dict[str, Any]]" = queue.Queue(maxsize=maxsize)
        self.dropped = 0

    def offer(self, event: Dict[str, Any]) -> bool:
        try:
            self._queue.put_nowait(event)
            return True
        except queue.Full:
            self.dropped += 1
            return False

    def get(self, timeout: Optional[float] = None) -> Optional[Dict[str, Any]]:
        """Next event, or None when nothing arrived within `timeout`."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def close(self) -> None:
        self._publisher.unsubscribe(self)

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


class ProgressPublisher:
    """
    Broadcasts `{"type": ..., "data": ...}` events.

    Usage:
        publisher = ProgressPublisher()
        with publisher.subscribe() as sub:
            event = sub.get(timeout=15)
    """

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE):
        self.queue_size = queue_size
        self._subscribers: List[Subscription] = []
        self._lock = threading.Lock()

    def subscribe(self, initial: Optional[Dict[str, Any]] = None) -> Subscription:
        """Register a subscriber, optionally seeding its queue with an initial event."""
        subscription = Subscription(self, self.queue_size)
        if initial is not None:
            subscription.offer(initial)
        with self._lock:
            self._subscribers.append(subscription)
            count = len(self._subscribers)
        logger.debug("Subscriber added. Total subscribers: %d", count)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscribers:
                self._subscribers.remove(subscription)
            count = len(self._subscribers)
        logger.debug("Subscriber removed. Total subscribers: %d", count)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, event_type: str, data: Any) -> int:
        """
        Offer an event to every current subscriber.

        Returns:
            Number of subscribers that accepted it
        """
        event = {"type": event_type, "data": data}
        with self._lock:
            subscribers = list(self._subscribers)

        delivered = 0
        for subscription in subscribers:
            if subscription.offer(event):
                delivered += 1
            else:
                logger.debug("Dropped %s event for a slow subscriber", event_type)
        return delivered
