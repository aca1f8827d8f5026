"""Dashboard state machine and controller loop."""

import pytest

from lazyros.app import AppState, Dashboard, DashboardController, update
from lazyros.errors import GraphServiceError
from lazyros.events import (
    GraphError,
    KeyInput,
    NewNode,
    NewTopic,
    Resize,
    SubscriberCountChanged,
    SubscriptionMessage,
)
from lazyros.panes import Pane

TIMEOUT = 2.0


def press(dashboard, *keys):
    for key in keys:
        update(dashboard, KeyInput(key=key))
    return dashboard


def dashboard_in(state):
    dashboard = Dashboard()
    if state == AppState.ACTIVE_PANE:
        press(dashboard, "enter")
    elif state == AppState.SHOWING_INSTRUCTIONS:
        press(dashboard, "i")
    elif state == AppState.EXIT:
        press(dashboard, "q")
    assert dashboard.state == state
    return dashboard


def with_nodes(dashboard, *names):
    for name in names:
        update(dashboard, NewNode(name=name))
    return dashboard


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


def test_initial_state():
    dashboard = Dashboard()
    assert dashboard.state == AppState.NAVIGATION
    assert dashboard.panes.focused == Pane.NODES


def test_enter_then_esc_returns_to_navigation():
    dashboard = press(Dashboard(), "enter")
    assert dashboard.state == AppState.ACTIVE_PANE
    press(dashboard, "esc")
    assert dashboard.state == AppState.NAVIGATION


@pytest.mark.parametrize("state", list(AppState))
@pytest.mark.parametrize("key", ["q", "Q"])
def test_q_exits_from_any_state(state, key):
    dashboard = press(dashboard_in(state), key)
    assert dashboard.state == AppState.EXIT


def test_exit_is_terminal():
    dashboard = dashboard_in(AppState.EXIT)
    press(dashboard, "esc", "enter", "i", "l")
    update(dashboard, NewNode(name="/late"))
    update(dashboard, SubscriptionMessage(text="late"))
    assert dashboard.state == AppState.EXIT
    assert len(dashboard.panes.nodes) == 0
    assert len(dashboard.panes.details) == 0
    assert dashboard.panes.focused == Pane.NODES


@pytest.mark.parametrize("state", [AppState.NAVIGATION, AppState.ACTIVE_PANE])
@pytest.mark.parametrize("close_key", ["esc", "i"])
def test_instructions_always_return_to_navigation(state, close_key):
    dashboard = press(dashboard_in(state), "i")
    assert dashboard.state == AppState.SHOWING_INSTRUCTIONS
    press(dashboard, close_key)
    assert dashboard.state == AppState.NAVIGATION


def test_instructions_ignore_other_keys():
    dashboard = with_nodes(dashboard_in(AppState.SHOWING_INSTRUCTIONS), "/a")
    press(dashboard, "enter", "l", "down", "h")
    assert dashboard.state == AppState.SHOWING_INSTRUCTIONS
    assert dashboard.panes.focused == Pane.NODES
    assert dashboard.panes.nodes.selected is None


def test_esc_in_navigation_does_nothing():
    dashboard = press(Dashboard(), "esc")
    assert dashboard.state == AppState.NAVIGATION


@pytest.mark.parametrize("key", ["l", "right", "L"])
def test_focus_right_cycles(key):
    dashboard = Dashboard()
    press(dashboard, key)
    assert dashboard.panes.focused == Pane.TOPICS
    press(dashboard, key)
    assert dashboard.panes.focused == Pane.DETAILS
    press(dashboard, key)
    assert dashboard.panes.focused == Pane.NODES


@pytest.mark.parametrize("key", ["h", "left"])
def test_focus_left_cycles(key):
    dashboard = Dashboard()
    press(dashboard, key)
    assert dashboard.panes.focused == Pane.DETAILS
    press(dashboard, key)
    assert dashboard.panes.focused == Pane.TOPICS
    press(dashboard, key)
    assert dashboard.panes.focused == Pane.NODES


def test_enter_down_down_esc_selects_second_row():
    dashboard = with_nodes(Dashboard(), "/a", "/b", "/c")
    assert dashboard.panes.nodes.selected is None
    press(dashboard, "enter", "down", "down", "esc")
    assert dashboard.panes.nodes.selected == 1
    assert dashboard.state == AppState.NAVIGATION


def test_vi_keys_move_rows_when_active():
    dashboard = with_nodes(Dashboard(), "/a", "/b", "/c")
    press(dashboard, "enter", "j", "j", "j", "k")
    assert dashboard.panes.nodes.selected == 1


def test_up_wraps_to_last_row():
    dashboard = with_nodes(Dashboard(), "/a", "/b", "/c")
    press(dashboard, "enter", "up", "up")
    assert dashboard.panes.nodes.selected == 2


def test_left_right_move_columns_when_topics_active():
    dashboard = press(Dashboard(), "l", "enter")
    update(dashboard, NewTopic(name="/chatter", msg_type="std_msgs/msg/String"))
    topics = dashboard.panes.topics
    press(dashboard, "right")
    assert topics.column == 1
    assert dashboard.panes.focused == Pane.TOPICS
    press(dashboard, "l", "l")
    assert topics.column == 0
    press(dashboard, "h")
    assert topics.column == 2
    assert topics.selected is None


def test_row_keys_do_not_move_focus_in_navigation():
    dashboard = with_nodes(Dashboard(), "/a", "/b")
    press(dashboard, "down", "j")
    assert dashboard.panes.nodes.selected is None


def test_details_pane_ignores_movement():
    dashboard = with_nodes(Dashboard(), "/a")
    press(dashboard, "l", "l", "enter", "down", "right", "up", "left")
    assert dashboard.state == AppState.ACTIVE_PANE
    assert dashboard.panes.focused == Pane.DETAILS
    assert dashboard.panes.nodes.selected is None
    assert dashboard.panes.topics.column == 0


def test_resize_changes_nothing():
    dashboard = with_nodes(press(Dashboard(), "enter", "down"), "/a")
    update(dashboard, Resize(width=120, height=40))
    assert dashboard.state == AppState.ACTIVE_PANE
    assert dashboard.panes.focused == Pane.NODES


# ---------------------------------------------------------------------------
# Graph events
# ---------------------------------------------------------------------------


def test_new_topic_length_counts_distinct_names():
    dashboard = Dashboard()
    names = ["/a", "/b", "/a", "/c", "/b", "/a"]
    for name in names:
        update(dashboard, NewTopic(name=name, msg_type="std_msgs/msg/String"))
    assert len(dashboard.panes.topics) == len(set(names))
    assert [t.name for t in dashboard.panes.topics] == ["/a", "/b", "/c"]


def test_repeated_new_node_keeps_one_entry():
    dashboard = with_nodes(Dashboard(), "/node1", "/node1")
    assert len(dashboard.panes.nodes) == 1


@pytest.mark.parametrize(
    "state",
    [AppState.NAVIGATION, AppState.ACTIVE_PANE, AppState.SHOWING_INSTRUCTIONS],
)
def test_graph_events_apply_in_every_live_state(state):
    dashboard = dashboard_in(state)
    update(dashboard, NewNode(name="/talker"))
    update(dashboard, NewTopic(name="/chatter", msg_type="std_msgs/msg/String"))
    update(dashboard, SubscriptionMessage(text="hello"))
    assert [n.name for n in dashboard.panes.nodes] == ["/talker"]
    assert dashboard.panes.topics.get("/chatter").msg_type == "std_msgs/msg/String"
    assert list(dashboard.panes.details) == ["hello"]
    assert dashboard.state == state


def test_subscriber_count_change_updates_topic():
    dashboard = Dashboard()
    update(dashboard, NewTopic(name="/chatter", msg_type="String", subscriber_count=1))
    update(dashboard, SubscriberCountChanged(name="/chatter", count=3))
    assert dashboard.panes.topics.get("/chatter").subscriber_count == 3


def test_graph_error_is_shown_not_raised():
    dashboard = Dashboard()
    update(dashboard, GraphError(message="Discovery failed: graph unavailable"))
    assert dashboard.last_error == "Discovery failed: graph unavailable"
    assert list(dashboard.panes.details) == [
        "[error] Discovery failed: graph unavailable"
    ]
    assert dashboard.state == AppState.NAVIGATION


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------


class Recorder:
    def __init__(self):
        self.frames = []

    def __call__(self, dashboard):
        self.frames.append(dashboard.state)


def test_controller_stops_at_exit_and_redraws_once_per_event(bus):
    redraw = Recorder()
    for event in (
        NewNode(name="/a"),
        KeyInput(key="enter"),
        KeyInput(key="q"),
        NewNode(name="/late"),
    ):
        bus.put(event)
    controller = DashboardController(bus, redraw)

    assert controller.run() == 0
    assert controller.processed == 3
    # Initial frame plus one per processed event
    assert redraw.frames == [
        AppState.NAVIGATION,
        AppState.NAVIGATION,
        AppState.ACTIVE_PANE,
        AppState.EXIT,
    ]
    assert [n.name for n in controller.dashboard.panes.nodes] == ["/a"]
    assert bus.get(timeout=TIMEOUT) == NewNode(name="/late")


def test_controller_returns_error_when_bus_fails(bus):
    bus.put(NewNode(name="/a"))
    bus.close("graph-discovery failed: boom")
    controller = DashboardController(bus, Recorder())
    assert controller.run() == 1
    assert controller.processed == 1


def test_controller_returns_zero_when_bus_closed_cleanly(bus):
    bus.close()
    assert DashboardController(bus, Recorder()).run() == 0


def test_publish_key_publishes_to_subscribed_topic(bus, graph):
    dashboard = Dashboard(subscribed_topic="/topic")
    controller = DashboardController(bus, Recorder(), dashboard=dashboard, graph=graph)
    controller.process(KeyInput(key="p"))
    assert graph.published == [("/topic", "Hello world!")]
    assert dashboard.state == AppState.NAVIGATION


def test_publish_key_ignored_while_showing_instructions(bus, graph):
    dashboard = dashboard_in(AppState.SHOWING_INSTRUCTIONS)
    dashboard.subscribed_topic = "/topic"
    controller = DashboardController(bus, Recorder(), dashboard=dashboard, graph=graph)
    controller.process(KeyInput(key="p"))
    assert graph.published == []


def test_publish_failure_becomes_graph_error(bus, graph):
    graph.publish_error = GraphServiceError("publisher gone")
    dashboard = Dashboard(subscribed_topic="/topic")
    controller = DashboardController(bus, Recorder(), dashboard=dashboard, graph=graph)
    controller.process(KeyInput(key="p"))
    event = bus.get(timeout=TIMEOUT)
    assert event == GraphError(message="Publish to /topic failed: publisher gone")
