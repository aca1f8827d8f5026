"""
Graph watcher: turns Graph Service polling and the topic subscription stream
into bus events.

Discovery keeps a set of known names per entity kind and emits one event per
newly seen name, in the order the Graph Service reported them. Names are never
forgotten, so nodes and topics that disappear stay on the dashboard.

The subscription side is stateless: every payload is forwarded as-is.

Graph Service failures are reported as GraphError events and retried with
exponential backoff instead of taking the dashboard down.
"""

import logging
import queue
import threading
from typing import Dict, List, Optional, Protocol, Set

from lazyros.errors import GraphServiceError
from lazyros.event_bus import EventBus, spawn_producer
from lazyros.events import (
    GraphError,
    GraphEvent,
    NewNode,
    NewTopic,
    SubscriberCountChanged,
    SubscriptionMessage,
)

logger = logging.getLogger(__name__)

POLL_INTERVAL = 1.0
MAX_BACKOFF = 30.0
STREAM_POLL_INTERVAL = 0.2


# =============================================================================
# Message stream
# =============================================================================


class MessageStream:
    """Thread-safe stream of payloads from one subscription.

    The Graph Service pushes payloads from its own callback thread; the watcher
    pulls them with get().
    """

    def __init__(self, topic: str):
        self.topic = topic
        self._queue: queue.Queue = queue.Queue()
        self._error: Optional[Exception] = None
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def push(self, payload: str):
        if not self._closed.is_set():
            self._queue.put(payload)

    def fail(self, exc: Exception):
        """Mark the stream broken; the reader gets GraphServiceError after pending payloads."""
        self._error = exc
        self._closed.set()

    def close(self):
        self._closed.set()

    def get(self, timeout: float = STREAM_POLL_INTERVAL) -> Optional[str]:
        """Return the next payload, or None if none arrived within timeout."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            pass
        if self._error is not None:
            raise GraphServiceError(
                f"stream for {self.topic} failed: {self._error}"
            ) from self._error
        if self._closed.is_set():
            raise GraphServiceError(f"stream for {self.topic} closed")
        return None


class GraphService(Protocol):
    """What the watcher and controller need from the pub/sub backend."""

    def discover_topics(self) -> Dict[str, List[str]]:
        ...

    def discover_nodes(self) -> List[str]:
        ...

    def count_subscribers(self, topic: str) -> int:
        ...

    def subscribe(self, topic: str) -> MessageStream:
        ...

    def publish(self, topic: str, payload: str):
        ...

    def shutdown(self):
        ...


# =============================================================================
# Watcher
# =============================================================================


class GraphWatcher:
    """Producer of discovery and subscription events."""

    def __init__(
        self,
        graph: GraphService,
        bus: EventBus,
        topic: Optional[str] = None,
        poll_interval: float = POLL_INTERVAL,
        max_backoff: float = MAX_BACKOFF,
        stream_poll_interval: float = STREAM_POLL_INTERVAL,
    ):
        self.graph = graph
        self.bus = bus
        self.topic = topic
        self.poll_interval = poll_interval
        self.max_backoff = max(max_backoff, poll_interval)
        self.stream_poll_interval = stream_poll_interval
        self.known_nodes: Set[str] = set()
        self.known_topics: Set[str] = set()
        self._subscriber_counts: Dict[str, int] = {}

    def start(self) -> List[threading.Thread]:
        """Spawn the discovery loop and, if a topic is set, the subscription loop."""
        threads = [spawn_producer(self.bus, "graph-discovery", self.run_discovery)]
        if self.topic:
            threads.append(
                spawn_producer(self.bus, "topic-subscription", self.run_subscription)
            )
        return threads

    def _next_backoff(self, backoff: float) -> float:
        return min(backoff * 2, self.max_backoff)

    # -------------------------------------------------------------------------
    # Discovery
    # -------------------------------------------------------------------------

    def poll_once(self) -> List[GraphEvent]:
        """Run one discovery pass, put the resulting events on the bus and return them.

        Raises GraphServiceError if the Graph Service cannot be queried. Nothing
        is emitted for a pass that fails part way.
        """
        nodes = self.graph.discover_nodes()
        topics = self.graph.discover_topics()
        counts = {name: self.graph.count_subscribers(name) for name in topics}

        events: List[GraphEvent] = []
        for name in nodes:
            if name not in self.known_nodes:
                self.known_nodes.add(name)
                events.append(NewNode(name=name))

        for name, types in topics.items():
            count = counts[name]
            if name not in self.known_topics:
                self.known_topics.add(name)
                events.append(
                    NewTopic(
                        name=name, msg_type=", ".join(types), subscriber_count=count
                    )
                )
            elif self._subscriber_counts.get(name) != count:
                events.append(SubscriberCountChanged(name=name, count=count))
            self._subscriber_counts[name] = count

        for event in events:
            self.bus.put(event)
        if events:
            logger.debug(f"Discovery pass emitted {len(events)} events")
        return events

    def run_discovery(self):
        """Poll every poll_interval seconds until the bus is closed."""
        backoff = self.poll_interval
        while not self.bus.closed:
            try:
                self.poll_once()
            except GraphServiceError as e:
                logger.warning(
                    f"Graph discovery failed, retrying in {backoff:.1f}s: {e}"
                )
                self.bus.put(GraphError(f"Discovery failed: {e}"))
                if self.bus.wait_closed(backoff):
                    return
                backoff = self._next_backoff(backoff)
                continue
            backoff = self.poll_interval
            if self.bus.wait_closed(self.poll_interval):
                return

    # -------------------------------------------------------------------------
    # Subscription
    # -------------------------------------------------------------------------

    def run_subscription(self):
        """Forward every payload from the subscribed topic until the bus is closed."""
        backoff = self.poll_interval
        while not self.bus.closed:
            try:
                stream = self.graph.subscribe(self.topic)
            except GraphServiceError as e:
                logger.warning(f"Subscribe to {self.topic} failed: {e}")
                self.bus.put(GraphError(f"Subscribe to {self.topic} failed: {e}"))
                if self.bus.wait_closed(backoff):
                    return
                backoff = self._next_backoff(backoff)
                continue

            backoff = self.poll_interval
            self.bus.put(SubscriptionMessage(f"Subscribing to {self.topic}"))
            try:
                self._forward(stream)
            except GraphServiceError as e:
                logger.warning(f"Subscription to {self.topic} lost: {e}")
                self.bus.put(GraphError(f"Subscription to {self.topic} lost: {e}"))
                if self.bus.wait_closed(backoff):
                    return
                backoff = self._next_backoff(backoff)
            finally:
                stream.close()

    def _forward(self, stream: MessageStream):
        while not self.bus.closed:
            payload = stream.get(timeout=self.stream_poll_interval)
            if payload is not None:
                self.bus.put(SubscriptionMessage(payload))
