#!/usr/bin/env python3
"""
lazyros - a terminal dashboard for a running ROS2 graph.

Shows the active nodes and topics (with message type and subscriber count)
and streams messages from one std_msgs/String topic into a details log.

Three producers feed one event bus:
- the terminal input loop (keys and resizes)
- the graph discovery loop (polls the ROS graph every second)
- the subscription loop (forwards each message payload)

The dashboard controller consumes the bus on the main thread and redraws after
every event. Press q to quit.
"""

import argparse
import logging
import logging.handlers
import signal
import sys
from typing import Optional

from lazyros.app import Dashboard, DashboardController
from lazyros.config import load_config
from lazyros.errors import SetupError
from lazyros.event_bus import EventBus, spawn_producer
from lazyros.graph_watcher import GraphWatcher
from lazyros.panes import PaneManager
from lazyros.render import Renderer
from lazyros.ros_graph import RosGraphService
from lazyros.terminal import InputSource, TerminalSession

logger = logging.getLogger(__name__)

# Seconds to wait for each producer thread on shutdown
PRODUCER_JOIN_TIMEOUT = 1.0

# Most recent log records kept for stderr while curses owns the screen
DEFERRED_LOG_CAPACITY = 200


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="lazyros - ROS2 graph dashboard")
    parser.add_argument(
        "-t",
        "--topic",
        type=str,
        default=None,
        metavar="NAME",
        help="std_msgs/String topic to stream into the details pane. "
        "Defaults to subscription.topic from the config (/topic).",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=str,
        default=None,
        metavar="PATH",
        help="YAML settings file. Defaults to the config installed with the package.",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        metavar="PATH",
        help="Write log output to this file.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Log debug messages.",
    )
    # Parse only known args so ROS args (e.g. --ros-args) pass through
    known, _ = parser.parse_known_args()
    return known


class DeferredStderrHandler(logging.handlers.MemoryHandler):
    """Holds log records back while the curses screen is up.

    Only the newest `capacity` records are kept. release() writes them to the
    target and from then on every record is passed straight through.
    """

    def __init__(self, capacity: int, target: logging.Handler):
        super().__init__(capacity, flushLevel=logging.CRITICAL + 1, target=target)
        self.held = True

    def shouldFlush(self, record: logging.LogRecord) -> bool:
        if self.held:
            del self.buffer[: -self.capacity]
            return False
        return True

    def release(self):
        self.held = False
        self.flush()


def setup_logging(log_file, verbose: bool):
    """Log to a file when asked; otherwise only warnings, after the screen is restored."""
    level = logging.DEBUG if verbose else logging.INFO
    fmt = "%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s"
    if log_file:
        logging.basicConfig(filename=log_file, level=level, format=fmt)
        return
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(logging.Formatter(fmt))
    logging.basicConfig(
        level=logging.WARNING,
        handlers=[DeferredStderrHandler(DEFERRED_LOG_CAPACITY, stderr_handler)],
    )


def release_deferred_logs():
    """Write out log records held back while curses was running."""
    for handler in logging.getLogger().handlers:
        if isinstance(handler, DeferredStderrHandler):
            handler.release()


def run_dashboard(
    graph: RosGraphService,
    config: dict,
    topic: str,
    session: Optional[TerminalSession] = None,
) -> int:
    """Bring up the terminal and producers, run the controller, tear down.

    Returns the exit code. Raises SetupError if the terminal cannot be set up.
    """
    settings = config["settings"]
    bus = EventBus()
    dashboard = Dashboard(
        panes=PaneManager(
            page_rows=settings["page_rows"],
            details_max_lines=settings["details_max_lines"],
        ),
        subscribed_topic=topic,
    )
    watcher = GraphWatcher(
        graph,
        bus,
        topic=topic,
        poll_interval=settings["poll_interval"],
        max_backoff=settings["max_backoff"],
        stream_poll_interval=settings["stream_poll_interval"],
    )

    if session is None:
        session = TerminalSession()
    session.init()
    threads = []
    try:
        renderer = Renderer(use_color=session.has_colors)
        controller = DashboardController(
            bus,
            redraw=lambda d: session.draw(lambda scr: renderer.render(scr, d)),
            dashboard=dashboard,
            graph=graph,
            publish_payload=config["subscription"]["publish_payload"],
        )
        input_source = InputSource(session, bus, poll_ms=settings["input_poll_ms"])
        threads.append(spawn_producer(bus, "terminal-input", input_source.run))
        threads.extend(watcher.start())
        exit_code = controller.run()
    finally:
        bus.close()
        for thread in threads:
            thread.join(timeout=PRODUCER_JOIN_TIMEOUT)
        session.restore()
        release_deferred_logs()

    if bus.close_reason:
        print(f"Error: {bus.close_reason}", file=sys.stderr)
    return exit_code


def main(args=None):
    """Main entry point."""
    cli_args = parse_args()
    setup_logging(cli_args.log_file, cli_args.verbose)

    config = load_config(cli_args.config)
    topic = cli_args.topic or config["subscription"]["topic"]

    # SIGTERM stops the controller the same way Ctrl-C does
    def signal_handler(sig, frame):
        raise KeyboardInterrupt

    signal.signal(signal.SIGTERM, signal_handler)

    try:
        graph = RosGraphService(args=args)
    except SetupError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        exit_code = run_dashboard(graph, config, topic)
    except SetupError as e:
        print(f"Error: {e}", file=sys.stderr)
        exit_code = 1
    finally:
        graph.shutdown()

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
