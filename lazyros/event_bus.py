"""
Event bus joining the input loop, graph watcher and subscription stream to the
dashboard controller.

Multi-producer, single-consumer, unbounded. Events from one producer arrive in
the order they were sent; events from different producers interleave in
arrival order only.

Closing the bus is the shutdown signal for everybody: the consumer's get()
raises BusClosed once the queue is drained, and producers get BusClosed on
their next put() or see wait_closed() return True.
"""

import logging
import queue
import threading
from typing import Callable, Optional

from lazyros.events import Event

logger = logging.getLogger(__name__)


class BusClosed(Exception):
    """The bus was closed; reason is set when a producer or consumer failed."""

    def __init__(self, reason: Optional[str] = None):
        super().__init__(reason or "event bus closed")
        self.reason = reason


# Placed on the queue by close() to wake a consumer blocked in get()
_CLOSED = object()


class EventBus:
    def __init__(self):
        self._queue: queue.Queue = queue.Queue()
        self._closed = threading.Event()
        self._close_lock = threading.Lock()
        self.close_reason: Optional[str] = None

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def put(self, event: Event):
        """Send an event. Raises BusClosed once the bus has been closed."""
        if self._closed.is_set():
            raise BusClosed(self.close_reason)
        self._queue.put(event)

    def get(self, timeout: Optional[float] = None) -> Event:
        """Block until an event is available.

        Events queued before close() are still returned; after them BusClosed
        is raised. With a timeout, queue.Empty is raised when nothing arrives.
        """
        item = self._queue.get(timeout=timeout)
        if item is _CLOSED:
            # Leave the marker for any further get() calls
            self._queue.put(_CLOSED)
            raise BusClosed(self.close_reason)
        return item

    def close(self, reason: Optional[str] = None):
        """Close the bus. Only the first call sets the reason."""
        with self._close_lock:
            if self._closed.is_set():
                return
            self.close_reason = reason
            self._closed.set()
        if reason:
            logger.error(f"Event bus closed: {reason}")
        else:
            logger.debug("Event bus closed")
        self._queue.put(_CLOSED)

    def wait_closed(self, timeout: Optional[float] = None) -> bool:
        """Sleep up to timeout seconds; returns True as soon as the bus is closed."""
        return self._closed.wait(timeout)


def spawn_producer(
    bus: EventBus, name: str, target: Callable[[], None]
) -> threading.Thread:
    """Run a producer loop on a daemon thread.

    BusClosed ends the loop quietly. Any other exception closes the bus with a
    reason, so the controller and the remaining producers shut down too.
    """

    def run():
        try:
            target()
        except BusClosed:
            logger.debug(f"Producer '{name}' stopped: bus closed")
        except Exception as e:
            logger.exception(f"Producer '{name}' failed")
            bus.close(f"{name} failed: {e}")

    thread = threading.Thread(target=run, name=name, daemon=True)
    thread.start()
    return thread
