"""
Per-automation publish/subscribe fan-out.

Subscribers register a callback for one automation id and receive every
event recorded for it afterwards, synchronously and in registration order.
A callback that raises is logged and skipped; the remaining subscribers
still receive the event and the ingestion path is unaffected.

Async consumers that must not slow down ingestion can subscribe a
QueueSubscriber instead of a plain callback. It hands events to a bounded
asyncio.Queue and reports, rather than waits on, a consumer that falls
behind.

Example:
    >>> bus = NotificationBus()
    >>> unsubscribe = bus.subscribe("calendar-sync", print)
    >>> bus.publish(event)
    >>> unsubscribe()
"""

import asyncio
import time
from collections.abc import Callable

import structlog

from automation_monitor.models.domain import AutomationEvent

log = structlog.get_logger(__name__)

Subscriber = Callable[[AutomationEvent], object]


class NotificationBus:
    """Fan events out to per-automation subscribers.

    Callbacks run synchronously on the recording thread and are not time
    bounded; a slow callback delays ingestion for every automation. Consumers
    that may fall behind should subscribe a QueueSubscriber instead.

    Attributes:
        slow_subscriber_ms: When set, callbacks taking longer than this many
            milliseconds are reported as slow, at error level
    """

    def __init__(self, slow_subscriber_ms: float | None = None) -> None:
        self.slow_subscriber_ms = slow_subscriber_ms
        self._subscribers: dict[str, list[Subscriber]] = {}

    def subscribe(self, automation_id: str, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback`` for events of ``automation_id``.

        Args:
            automation_id: Automation to follow
            callback: Called with each AutomationEvent

        Returns:
            A function that removes this subscription. Calling it more than
            once is harmless.
        """
        callbacks = self._subscribers.setdefault(automation_id, [])
        callbacks.append(callback)
        log.debug("subscriber_added", automation_id=automation_id, subscribers=len(callbacks))

        # Each subscribe() adds one registration; its unsubscribe removes exactly one.
        removed = False

        def unsubscribe() -> None:
            nonlocal removed
            if removed:
                return
            removed = True
            current = self._subscribers.get(automation_id, [])
            for index, registered in enumerate(current):
                if registered is callback:
                    del current[index]
                    break
            if not current:
                self._subscribers.pop(automation_id, None)
            log.debug("subscriber_removed", automation_id=automation_id, subscribers=len(current))

        return unsubscribe

    def subscriber_count(self, automation_id: str) -> int:
        return len(self._subscribers.get(automation_id, ()))

    def publish(self, event: AutomationEvent) -> int:
        """Deliver ``event`` to the automation's subscribers.

        Args:
            event: Event to deliver

        Returns:
            Number of subscribers that handled the event without raising
        """
        delivered = 0
        # Copy so callbacks may unsubscribe themselves mid-delivery.
        for callback in list(self._subscribers.get(event.automation_id, ())):
            started = time.monotonic()
            try:
                callback(event)
            except Exception as e:
                log.error(
                    "subscriber_failed",
                    automation_id=event.automation_id,
                    event_id=event.id,
                    error=str(e),
                    exc_info=True,
                )
                continue
            delivered += 1

            if self.slow_subscriber_ms is not None:
                elapsed_ms = (time.monotonic() - started) * 1000
                if elapsed_ms > self.slow_subscriber_ms:
                    log.error(
                        "subscriber_slow",
                        automation_id=event.automation_id,
                        elapsed_ms=round(elapsed_ms, 2),
                        limit_ms=self.slow_subscriber_ms,
                    )
        return delivered


class QueueSubscriber:
    """Subscriber that buffers events in a bounded asyncio.Queue.

    Must be invoked from the thread running the queue's event loop. When the
    queue is full the event is dropped and the drop is logged; the producer
    never waits on the consumer.

    Example:
        >>> feed = QueueSubscriber(maxsize=100)
        >>> unsubscribe = monitor.subscribe("calendar-sync", feed)
        >>> event = await feed.get()
    """

    def __init__(self, maxsize: int = 100) -> None:
        if maxsize < 1:
            raise ValueError("maxsize must be at least 1")
        self.queue: asyncio.Queue[AutomationEvent] = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0

    def __call__(self, event: AutomationEvent) -> None:
        try:
            self.queue.put_nowait(event)
        except asyncio.QueueFull:
            self.dropped += 1
            log.error(
                "subscriber_starved",
                automation_id=event.automation_id,
                event_id=event.id,
                dropped=self.dropped,
                maxsize=self.queue.maxsize,
            )

    async def get(self) -> AutomationEvent:
        return await self.queue.get()
