"""
Event types flowing through the event bus.

Every event is an immutable dataclass. Producers create them, the dashboard
controller consumes each one exactly once:

- KeyInput / Resize come from the terminal input loop
- GraphEvent subclasses come from the graph watcher
"""

from dataclasses import dataclass

# =============================================================================
# Key names
# =============================================================================

# Non-printable keys are normalised to these names by terminal.translate_key;
# printable keys are passed through as the character itself.
KEY_ENTER = "enter"
KEY_ESC = "esc"
KEY_UP = "up"
KEY_DOWN = "down"
KEY_LEFT = "left"
KEY_RIGHT = "right"


# =============================================================================
# Events
# =============================================================================


class Event:
    """Base class for everything that can be put on the bus."""


@dataclass(frozen=True)
class KeyInput(Event):
    """A key press, forwarded verbatim from the terminal."""

    key: str


@dataclass(frozen=True)
class Resize(Event):
    """Terminal was resized."""

    width: int
    height: int


class GraphEvent(Event):
    """Base class for events produced by the graph watcher."""


@dataclass(frozen=True)
class NewNode(GraphEvent):
    name: str


@dataclass(frozen=True)
class NewTopic(GraphEvent):
    name: str
    msg_type: str
    subscriber_count: int = 0


@dataclass(frozen=True)
class SubscriptionMessage(GraphEvent):
    """One payload (or informational line) from the subscribed topic."""

    text: str


@dataclass(frozen=True)
class SubscriberCountChanged(GraphEvent):
    """Subscriber count of an already known topic changed."""

    name: str
    count: int


@dataclass(frozen=True)
class GraphError(GraphEvent):
    """A Graph Service fault that should be shown to the user, not crash the app."""

    message: str
