"""Generic selectable, scrollable list used by the node and topic panes."""

import dataclasses
import logging
from dataclasses import dataclass
from typing import Callable, Generic, Iterator, List, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

DEFAULT_PAGE_ROWS = 10


# =============================================================================
# Records
# =============================================================================


@dataclass(frozen=True)
class NodeRecord:
    """A node seen on the graph."""

    name: str


@dataclass(frozen=True)
class TopicRecord:
    """A topic seen on the graph."""

    name: str
    msg_type: str = ""
    subscriber_count: int = 0


T = TypeVar("T", NodeRecord, TopicRecord)


# =============================================================================
# List Model
# =============================================================================


class ListModel(Generic[T]):
    """Ordered collection of named records with a row selection and column cursor.

    Items keep insertion order and names are unique: appending a name that is
    already present is ignored. The row selection is either None or a valid
    index; it is always None while the list is empty. A freshly populated list
    stays unselected until the first row movement.

    The scroll offset is recomputed from the selection on every change and
    pages in blocks of ``page_rows``.
    """

    def __init__(self, column_count: int = 1, page_rows: int = DEFAULT_PAGE_ROWS):
        if column_count < 1:
            raise ValueError(f"column_count must be >= 1, got {column_count}")
        if page_rows < 1:
            raise ValueError(f"page_rows must be >= 1, got {page_rows}")
        self._items: List[T] = []
        self.column_count = column_count
        self.page_rows = page_rows
        self.selected: Optional[int] = None
        self.column = 0
        self.scroll_offset = 0

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))

    def __contains__(self, item) -> bool:
        """Membership by name; a record is looked up by its name."""
        name = getattr(item, "name", item)
        return self._index_of(name) is not None

    @property
    def items(self) -> List[T]:
        return list(self._items)

    @property
    def selected_item(self) -> Optional[T]:
        if self.selected is None:
            return None
        return self._items[self.selected]

    def get(self, name: str) -> Optional[T]:
        idx = self._index_of(name)
        return None if idx is None else self._items[idx]

    def _index_of(self, name: str) -> Optional[int]:
        for idx, item in enumerate(self._items):
            if item.name == name:
                return idx
        return None

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def append(self, item: T) -> bool:
        """Add item at the end. Returns False (and changes nothing) on a duplicate name."""
        if item.name in self:
            logger.debug(f"Ignoring duplicate entry '{item.name}'")
            return False
        self._items.append(item)
        return True

    def remove(self, predicate: Callable[[T], bool]) -> int:
        """Delete every item matching predicate. Returns the number removed."""
        kept = [item for item in self._items if not predicate(item)]
        removed = len(self._items) - len(kept)
        if removed == 0:
            return 0
        self._items = kept
        if not self._items:
            self._select(None)
        elif self.selected is not None and self.selected >= len(self._items):
            self._select(len(self._items) - 1)
        return removed

    def update(self, name: str, **changes) -> bool:
        """Replace the named record with a copy carrying changes. Returns False if absent."""
        idx = self._index_of(name)
        if idx is None:
            return False
        self._items[idx] = dataclasses.replace(self._items[idx], **changes)
        return True

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def next_row(self):
        n = len(self._items)
        if n == 0:
            return
        if self.selected is None:
            self._select(0)
        else:
            self._select((self.selected + 1) % n)

    def previous_row(self):
        n = len(self._items)
        if n == 0:
            return
        if self.selected is None:
            self._select(0)
        else:
            self._select((self.selected - 1 + n) % n)

    def next_column(self):
        self.column = (self.column + 1) % self.column_count

    def previous_column(self):
        self.column = (self.column - 1 + self.column_count) % self.column_count

    def _select(self, idx: Optional[int]):
        self.selected = idx
        self.scroll_offset = self.scroll_offset_for(self.page_rows)

    # -------------------------------------------------------------------------
    # Scrolling
    # -------------------------------------------------------------------------

    def scroll_offset_for(self, rows: int) -> int:
        """Page-aligned first visible index for a viewport of the given height."""
        if self.selected is None or rows < 1:
            return 0
        return (self.selected // rows) * rows

    def window(self, rows: int) -> Tuple[int, List[T]]:
        """Return (offset, visible items) for a viewport of the given height."""
        offset = self.scroll_offset_for(rows)
        return offset, self._items[offset : offset + max(0, rows)]
