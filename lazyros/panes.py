"""The three dashboard panes and the focus that moves between them."""

from collections import deque
from enum import Enum
from typing import List

from lazyros.list_model import DEFAULT_PAGE_ROWS, ListModel, NodeRecord, TopicRecord

DETAILS_MAX_LINES = 1000

# Topic pane columns: name, message type, subscriber count
TOPIC_COLUMNS = ("Topic", "Type", "Subs")


class Pane(Enum):
    NODES = "nodes"
    TOPICS = "topics"
    DETAILS = "details"


# Focus order when moving right; moving left walks it backwards
PANE_ORDER = [Pane.NODES, Pane.TOPICS, Pane.DETAILS]


class DetailsLog:
    """Append-only text log, keeping only the most recent max_lines entries."""

    def __init__(self, max_lines: int = DETAILS_MAX_LINES):
        self._lines: deque = deque(maxlen=max_lines)

    @property
    def max_lines(self) -> int:
        return self._lines.maxlen

    def append(self, line: str):
        self._lines.append(line)

    def tail(self, count: int) -> List[str]:
        """Return the last count lines, oldest first."""
        if count <= 0:
            return []
        return list(self._lines)[-count:]

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self):
        return iter(list(self._lines))


class PaneManager:
    """Owns the node list, topic list, details log and the focused pane."""

    def __init__(
        self,
        page_rows: int = DEFAULT_PAGE_ROWS,
        details_max_lines: int = DETAILS_MAX_LINES,
    ):
        self.nodes: ListModel[NodeRecord] = ListModel(page_rows=page_rows)
        self.topics: ListModel[TopicRecord] = ListModel(
            column_count=len(TOPIC_COLUMNS), page_rows=page_rows
        )
        self.details = DetailsLog(max_lines=details_max_lines)
        self.focused = Pane.NODES

    def focus_next(self):
        idx = PANE_ORDER.index(self.focused)
        self.focused = PANE_ORDER[(idx + 1) % len(PANE_ORDER)]

    def focus_previous(self):
        idx = PANE_ORDER.index(self.focused)
        self.focused = PANE_ORDER[(idx - 1) % len(PANE_ORDER)]

    def focused_list(self):
        """ListModel behind the focused pane, or None for the details pane."""
        if self.focused == Pane.NODES:
            return self.nodes
        if self.focused == Pane.TOPICS:
            return self.topics
        return None
