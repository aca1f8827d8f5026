"""Shared fakes for the Graph Service and the curses screen."""

import pytest

from lazyros.errors import GraphServiceError
from lazyros.event_bus import EventBus
from lazyros.graph_watcher import MessageStream


class FakeGraphService:
    """In-memory Graph Service; tests edit nodes/topics/subscribers directly."""

    def __init__(self):
        self.nodes = []
        self.topics = {}
        self.subscribers = {}
        self.discovery_failures = 0
        self.subscribe_failures = 0
        self.publish_error = None
        self.streams = []
        self.published = []
        self.shut_down = False

    def discover_nodes(self):
        if self.discovery_failures > 0:
            self.discovery_failures -= 1
            raise GraphServiceError("graph unavailable")
        return list(self.nodes)

    def discover_topics(self):
        return dict(self.topics)

    def count_subscribers(self, topic):
        return self.subscribers.get(topic, 0)

    def subscribe(self, topic):
        if self.subscribe_failures > 0:
            self.subscribe_failures -= 1
            raise GraphServiceError("no such topic")
        stream = MessageStream(topic)
        self.streams.append(stream)
        return stream

    def publish(self, topic, payload):
        if self.publish_error is not None:
            raise self.publish_error
        self.published.append((topic, payload))

    def shutdown(self):
        self.shut_down = True


class FakeScreen:
    """Enough of a curses window for the renderer: a grid of characters."""

    def __init__(self, rows=24, cols=80):
        self.rows = rows
        self.cols = cols
        self.lines = [" " * cols for _ in range(rows)]
        self.calls = []

    def getmaxyx(self):
        return self.rows, self.cols

    def addstr(self, y, x, text, attr=0):
        line = self.lines[y]
        self.lines[y] = (line[:x] + text + line[x + len(text) :])[: self.cols]
        self.calls.append((y, x, text, attr))

    def text(self):
        return "\n".join(self.lines)


@pytest.fixture
def graph():
    return FakeGraphService()


@pytest.fixture
def bus():
    bus = EventBus()
    yield bus
    bus.close()


@pytest.fixture
def screen():
    return FakeScreen()


@pytest.fixture
def make_screen():
    return FakeScreen
