"""RosGraphService against a live rclpy context; skipped without ROS."""

import pytest

pytest.importorskip("rclpy")
pytest.importorskip("std_msgs.msg")

from lazyros.errors import GraphServiceError  # noqa: E402
from lazyros.ros_graph import RosGraphService  # noqa: E402

TOPIC = "/lazyros_test_chatter"


class CrashingExecutor:
    def spin(self):
        raise RuntimeError("executor crashed")


@pytest.fixture
def service():
    service = RosGraphService()
    yield service
    service.shutdown()


def test_executor_failure_breaks_open_streams(service):
    stream = service.subscribe(TOPIC)
    running = service.executor
    service.executor = CrashingExecutor()
    service._spin()
    service.executor = running

    with pytest.raises(GraphServiceError, match="executor crashed"):
        stream.get(timeout=0.01)
    with pytest.raises(GraphServiceError, match="executor stopped"):
        service.subscribe(TOPIC)
