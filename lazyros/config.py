"""Settings loading from YAML, with built-in defaults for anything missing."""

import copy
import logging
import os
from typing import Any, Dict, Optional

import yaml

from lazyros.app import DEFAULT_PUBLISH_PAYLOAD
from lazyros.graph_watcher import MAX_BACKOFF, POLL_INTERVAL, STREAM_POLL_INTERVAL
from lazyros.list_model import DEFAULT_PAGE_ROWS
from lazyros.panes import DETAILS_MAX_LINES

logger = logging.getLogger(__name__)

PACKAGE_NAME = "lazyros"
CONFIG_FILENAME = "lazyros.yaml"

INPUT_POLL_MS = 50

DEFAULTS: Dict[str, Any] = {
    "settings": {
        "poll_interval": POLL_INTERVAL,
        "max_backoff": MAX_BACKOFF,
        "stream_poll_interval": STREAM_POLL_INTERVAL,
        "details_max_lines": DETAILS_MAX_LINES,
        "page_rows": DEFAULT_PAGE_ROWS,
        "input_poll_ms": INPUT_POLL_MS,
    },
    "subscription": {
        "topic": "/topic",
        "publish_payload": DEFAULT_PUBLISH_PAYLOAD,
    },
}


def default_config_path() -> Optional[str]:
    """Path of the config file installed in the package share directory, if any."""
    try:
        from ament_index_python.packages import get_package_share_directory

        path = os.path.join(
            get_package_share_directory(PACKAGE_NAME), "config", CONFIG_FILENAME
        )
    except Exception as e:
        logger.debug(f"No installed config for {PACKAGE_NAME}: {e}")
        return None
    return path if os.path.isfile(path) else None


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load settings from path (or the installed config file) merged over DEFAULTS.

    Missing sections and missing keys within a section fall back to the
    defaults. Any failure to read the file logs a warning and returns defaults.
    """
    config = copy.deepcopy(DEFAULTS)
    if path is None:
        path = default_config_path()
    if path is None:
        return config

    try:
        with open(path, "r") as f:
            loaded = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load config file '{path}', using defaults: {e}")
        return config

    if not loaded:
        return config
    if not isinstance(loaded, dict):
        logger.warning(f"Config file '{path}' is not a mapping, using defaults")
        return config

    for section, values in loaded.items():
        if not isinstance(config.get(section), dict):
            config[section] = values
        elif values is None:
            continue  # Section present but every key commented out
        elif isinstance(values, dict):
            config[section].update(values)
        else:
            logger.warning(
                f"Config section '{section}' in '{path}' is not a mapping, "
                "using defaults"
            )
    return config
