"""Launch file for the lazyros dashboard."""

from launch import LaunchDescription
from launch.actions import DeclareLaunchArgument
from launch.substitutions import LaunchConfiguration
from launch_ros.actions import Node


def generate_launch_description():
    """Generate launch description for the lazyros dashboard."""
    return LaunchDescription(
        [
            DeclareLaunchArgument(
                "topic",
                default_value="/topic",
                description="std_msgs/String topic streamed into the details pane",
            ),
            Node(
                package="lazyros",
                executable="lazyros",
                name="lazyros",
                output="screen",
                emulate_tty=True,
                arguments=["--topic", LaunchConfiguration("topic")],
            ),
        ]
    )
