"""rclpy-backed Graph Service: node/topic discovery, subscription and publishing."""

import threading
from typing import Dict, List

from std_msgs.msg import String

import rclpy
from rclpy.executors import ExternalShutdownException, MultiThreadedExecutor
from rclpy.node import Node
from rclpy.qos import QoSProfile

from lazyros.errors import GraphServiceError, SetupError
from lazyros.graph_watcher import MessageStream

NODE_NAME = "lazyros"
QOS_DEPTH = 10


class LazyrosNode(Node):
    """ROS2 node the dashboard uses to introspect the graph."""

    def __init__(self):
        super().__init__(NODE_NAME)

        # Lock guarding publishers and streams, touched from the controller,
        # watcher and executor threads
        self._lock = threading.Lock()
        self._publishers: Dict[str, object] = {}
        self._streams: Dict[str, MessageStream] = {}
        self._subscriptions: Dict[str, object] = {}

        self.get_logger().info("lazyros node started")

    def open_stream(self, topic: str) -> MessageStream:
        """Subscribe to a std_msgs/String topic, replacing any previous subscription."""
        stream = MessageStream(topic)
        with self._lock:
            self._close_stream_locked(topic)
            self._streams[topic] = stream
            self._subscriptions[topic] = self.create_subscription(
                String,
                topic,
                lambda msg, s=stream: s.push(msg.data),
                QoSProfile(depth=QOS_DEPTH),
            )
        self.get_logger().info(f"Subscribed to {topic}")
        return stream

    def _close_stream_locked(self, topic: str):
        stream = self._streams.pop(topic, None)
        if stream is not None:
            stream.close()
        subscription = self._subscriptions.pop(topic, None)
        if subscription is not None:
            self.destroy_subscription(subscription)

    def publish_text(self, topic: str, payload: str):
        with self._lock:
            publisher = self._publishers.get(topic)
            if publisher is None:
                publisher = self.create_publisher(String, topic, QOS_DEPTH)
                self._publishers[topic] = publisher
        msg = String()
        msg.data = payload
        publisher.publish(msg)

    def fail_streams(self, exc: Exception):
        """Break every open stream so its reader sees the failure."""
        with self._lock:
            for stream in self._streams.values():
                stream.fail(exc)

    def close_all(self):
        with self._lock:
            for topic in list(self._streams):
                self._close_stream_locked(topic)
            for publisher in self._publishers.values():
                self.destroy_publisher(publisher)
            self._publishers.clear()


class RosGraphService:
    """Graph Service over a LazyrosNode spun by a background executor thread.

    Raises SetupError if rclpy cannot be initialised or the node cannot be
    created. Query failures are raised as GraphServiceError.
    """

    def __init__(self, args=None):
        try:
            rclpy.init(args=args)
        except Exception as e:
            raise SetupError(f"Failed to initialise rclpy: {e}") from e
        try:
            self.node = LazyrosNode()
        except Exception as e:
            rclpy.try_shutdown()
            raise SetupError(f"Failed to create ROS node: {e}") from e

        self.executor = MultiThreadedExecutor()
        self.executor.add_node(self.node)
        self._spin_error = None
        self._spin_thread = threading.Thread(
            target=self._spin, name="ros-spin", daemon=True
        )
        self._spin_thread.start()

    def _spin(self):
        try:
            self.executor.spin()
        except ExternalShutdownException:
            pass  # rclpy was shut down under us
        except Exception as e:
            self.node.get_logger().error(f"Executor stopped: {e}")
            self._spin_error = e
            self.node.fail_streams(e)

    def discover_topics(self) -> Dict[str, List[str]]:
        try:
            return {
                name: list(types)
                for name, types in self.node.get_topic_names_and_types()
            }
        except Exception as e:
            raise GraphServiceError(f"topic discovery failed: {e}") from e

    def discover_nodes(self) -> List[str]:
        try:
            names = self.node.get_node_names_and_namespaces()
        except Exception as e:
            raise GraphServiceError(f"node discovery failed: {e}") from e
        return [f"{namespace.rstrip('/')}/{name}" for name, namespace in names]

    def count_subscribers(self, topic: str) -> int:
        try:
            return self.node.count_subscribers(topic)
        except Exception as e:
            raise GraphServiceError(
                f"counting subscribers of {topic} failed: {e}"
            ) from e

    def subscribe(self, topic: str) -> MessageStream:
        if self._spin_error is not None:
            raise GraphServiceError(
                f"subscribe to {topic} failed: executor stopped: {self._spin_error}"
            )
        try:
            return self.node.open_stream(topic)
        except Exception as e:
            raise GraphServiceError(f"subscribe to {topic} failed: {e}") from e

    def publish(self, topic: str, payload: str):
        try:
            self.node.publish_text(topic, payload)
        except Exception as e:
            raise GraphServiceError(f"publish to {topic} failed: {e}") from e

    def shutdown(self):
        self.node.close_all()
        self.executor.shutdown()
        self.node.destroy_node()
        rclpy.try_shutdown()
