"""lazyros - a keyboard-driven curses dashboard for a running ROS2 graph."""

import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"
