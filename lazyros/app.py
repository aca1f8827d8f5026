"""
Dashboard state machine and the controller loop that drives it.

update() is the whole state machine: it takes the single Dashboard value and
one event, applies at most one state transition plus at most one model
mutation, and returns the dashboard. It never touches the terminal, so it can
be exercised without one.

DashboardController owns the Dashboard on the consumer thread: it pulls events
off the bus one at a time, runs update() and requests exactly one redraw per
event, until EXIT is reached.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from lazyros.errors import GraphServiceError
from lazyros.event_bus import BusClosed, EventBus
from lazyros.events import (
    KEY_DOWN,
    KEY_ENTER,
    KEY_ESC,
    KEY_LEFT,
    KEY_RIGHT,
    KEY_UP,
    Event,
    GraphError,
    GraphEvent,
    KeyInput,
    NewNode,
    NewTopic,
    Resize,
    SubscriberCountChanged,
    SubscriptionMessage,
)
from lazyros.list_model import NodeRecord, TopicRecord
from lazyros.panes import PaneManager

logger = logging.getLogger(__name__)

DEFAULT_PUBLISH_PAYLOAD = "Hello world!"


class AppState(Enum):
    NAVIGATION = "navigation"
    ACTIVE_PANE = "active_pane"
    SHOWING_INSTRUCTIONS = "showing_instructions"
    EXIT = "exit"


@dataclass
class Dashboard:
    """Everything the renderer shows. Owned and mutated by the controller only."""

    panes: PaneManager = field(default_factory=PaneManager)
    state: AppState = AppState.NAVIGATION
    subscribed_topic: str = ""
    last_error: str = ""


# =============================================================================
# State machine
# =============================================================================

ROW_KEYS = {
    KEY_UP: "previous_row",
    "k": "previous_row",
    KEY_DOWN: "next_row",
    "j": "next_row",
}
COLUMN_KEYS = {
    KEY_LEFT: "previous_column",
    "h": "previous_column",
    KEY_RIGHT: "next_column",
    "l": "next_column",
}


def normalize_key(key: str) -> str:
    """Single letters match regardless of case; named keys pass through."""
    return key.lower() if len(key) == 1 else key


def update(dashboard: Dashboard, event: Event) -> Dashboard:
    """Apply one event to the dashboard and return it."""
    if dashboard.state == AppState.EXIT:
        return dashboard
    if isinstance(event, GraphEvent):
        _apply_graph_event(dashboard, event)
    elif isinstance(event, KeyInput):
        _apply_key(dashboard, normalize_key(event.key))
    elif isinstance(event, Resize):
        pass  # Redraw only
    else:
        logger.warning(f"Ignoring unknown event {event!r}")
    return dashboard


def _apply_graph_event(dashboard: Dashboard, event: GraphEvent):
    """Discovery is applied in every state; it must never wait on the UI mode."""
    panes = dashboard.panes
    if isinstance(event, NewNode):
        panes.nodes.append(NodeRecord(name=event.name))
    elif isinstance(event, NewTopic):
        panes.topics.append(
            TopicRecord(
                name=event.name,
                msg_type=event.msg_type,
                subscriber_count=event.subscriber_count,
            )
        )
    elif isinstance(event, SubscriptionMessage):
        panes.details.append(event.text)
    elif isinstance(event, SubscriberCountChanged):
        panes.topics.update(event.name, subscriber_count=event.count)
    elif isinstance(event, GraphError):
        dashboard.last_error = event.message
        panes.details.append(f"[error] {event.message}")


def _apply_key(dashboard: Dashboard, key: str):
    state = dashboard.state
    panes = dashboard.panes

    if key == "q":
        dashboard.state = AppState.EXIT
        return

    if state == AppState.SHOWING_INSTRUCTIONS:
        if key in (KEY_ESC, "i"):
            dashboard.state = AppState.NAVIGATION
        return

    if key == "i":
        dashboard.state = AppState.SHOWING_INSTRUCTIONS
        return

    if state == AppState.NAVIGATION:
        if key == KEY_ENTER:
            dashboard.state = AppState.ACTIVE_PANE
        elif key in (KEY_LEFT, "h"):
            panes.focus_previous()
        elif key in (KEY_RIGHT, "l"):
            panes.focus_next()
        return

    if state == AppState.ACTIVE_PANE:
        if key == KEY_ESC:
            dashboard.state = AppState.NAVIGATION
            return
        model = panes.focused_list()
        if model is None:
            return  # Details pane has no list to move in
        action = ROW_KEYS.get(key) or COLUMN_KEYS.get(key)
        if action:
            getattr(model, action)()


# =============================================================================
# Controller
# =============================================================================


class DashboardController:
    """Single consumer of the event bus.

    redraw is called with the dashboard once at start and once after every
    processed event. graph, when given, is used for the publish key.
    """

    def __init__(
        self,
        bus: EventBus,
        redraw: Callable[[Dashboard], None],
        dashboard: Optional[Dashboard] = None,
        graph=None,
        publish_payload: str = DEFAULT_PUBLISH_PAYLOAD,
    ):
        self.bus = bus
        self.redraw = redraw
        self.dashboard = dashboard if dashboard is not None else Dashboard()
        self.graph = graph
        self.publish_payload = publish_payload
        self.processed = 0

    def run(self) -> int:
        """Consume events until EXIT. Returns the process exit code."""
        self.redraw(self.dashboard)
        try:
            while self.dashboard.state != AppState.EXIT:
                event = self.bus.get()
                self.process(event)
        except BusClosed as e:
            if e.reason:
                logger.error(f"Stopping dashboard: {e.reason}")
                return 1
            logger.info("Event bus closed, stopping dashboard")
        except KeyboardInterrupt:
            logger.info("Interrupted, stopping dashboard")
            self.dashboard.state = AppState.EXIT
        return 0

    def process(self, event: Event):
        """Handle one event: side effects, state update, one redraw."""
        self._side_effects(event)
        update(self.dashboard, event)
        self.processed += 1
        self.redraw(self.dashboard)

    def _side_effects(self, event: Event):
        if not isinstance(event, KeyInput) or normalize_key(event.key) != "p":
            return
        if self.dashboard.state not in (AppState.NAVIGATION, AppState.ACTIVE_PANE):
            return
        topic = self.dashboard.subscribed_topic
        if self.graph is None or not topic:
            return
        try:
            self.graph.publish(topic, self.publish_payload)
            logger.info(f"Published '{self.publish_payload}' to {topic}")
        except GraphServiceError as e:
            self.bus.put(GraphError(f"Publish to {topic} failed: {e}"))
