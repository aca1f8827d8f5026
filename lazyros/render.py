"""Curses drawing of the dashboard: node, topic and details panes plus overlays."""

import curses

from lazyros.app import AppState, Dashboard
from lazyros.panes import TOPIC_COLUMNS, Pane
from lazyros.terminal import COLOR_CRIT, COLOR_INFO, COLOR_OK, COLOR_WARN

TITLE = " lazyros - q:quit i:instructions Enter:activate Esc:back h/l:focus p:publish "

INSTRUCTIONS = [
    ("q", "Quit"),
    ("i", "Toggle these instructions"),
    ("h / Left", "Focus previous pane"),
    ("l / Right", "Focus next pane"),
    ("Enter", "Activate focused pane"),
    ("Esc", "Back to pane navigation"),
    ("j k / Up Down", "Select row (active pane)"),
    ("h l / Left Right", "Select column (active pane)"),
    ("p", "Publish test message to subscribed topic"),
]

STATE_LABELS = {
    AppState.NAVIGATION: "NAVIGATE",
    AppState.ACTIVE_PANE: "ACTIVE",
    AppState.SHOWING_INSTRUCTIONS: "HELP",
    AppState.EXIT: "EXIT",
}


class Renderer:
    """Paints a Dashboard onto a curses screen (anything with getmaxyx/addstr)."""

    def __init__(self, use_color: bool = True):
        self.use_color = use_color
        self.screen = None

    def color(self, pair: int) -> int:
        return curses.color_pair(pair) if self.use_color else 0

    def safe_addstr(self, y: int, x: int, text: str, attr=0):
        """Safely add string, handling screen boundaries."""
        max_y, max_x = self.screen.getmaxyx()
        if y < 0 or y >= max_y or x < 0:
            return
        available = max_x - x - 1
        if available <= 0:
            return
        try:
            self.screen.addstr(y, x, text[:available], attr)
        except curses.error:
            pass

    def draw_box(self, y: int, x: int, h: int, w: int, title: str = "", attr=0):
        """Draw a box with optional title using ASCII characters."""
        self.safe_addstr(y, x, "+" + "-" * (w - 2) + "+", attr)
        for i in range(1, h - 1):
            self.safe_addstr(y + i, x, "|", attr)
            self.safe_addstr(y + i, x + w - 1, "|", attr)
        self.safe_addstr(y + h - 1, x, "+" + "-" * (w - 2) + "+", attr)
        if title:
            self.safe_addstr(y, x + 2, f" {title} ", curses.A_BOLD | attr)

    def border_attr(self, dashboard: Dashboard, pane: Pane) -> int:
        if dashboard.panes.focused != pane:
            return 0
        if dashboard.state == AppState.ACTIVE_PANE:
            return self.color(COLOR_OK) | curses.A_BOLD
        return self.color(COLOR_INFO)

    # -------------------------------------------------------------------------
    # Frame
    # -------------------------------------------------------------------------

    def render(self, screen, dashboard: Dashboard):
        """Draw one complete frame."""
        self.screen = screen
        max_y, max_x = screen.getmaxyx()

        self.safe_addstr(0, 0, TITLE.center(max_x), curses.A_REVERSE | curses.A_BOLD)

        body_h = max_y - 2  # title bar + status bar
        top_h = max(4, body_h // 2)
        bottom_h = max(3, body_h - top_h)
        nodes_w = max(10, max_x // 3)

        self.draw_nodes_pane(1, 0, nodes_w, top_h, dashboard)
        self.draw_topics_pane(1, nodes_w, max_x - nodes_w, top_h, dashboard)
        self.draw_details_pane(1 + top_h, 0, max_x, bottom_h, dashboard)

        if dashboard.state == AppState.SHOWING_INSTRUCTIONS:
            self.draw_instructions()

        self.draw_status_bar(max_y - 1, max_x, dashboard)

    def draw_nodes_pane(self, y: int, x: int, w: int, h: int, dashboard: Dashboard):
        nodes = dashboard.panes.nodes
        self.draw_box(
            y, x, h, w, f"NODES ({len(nodes)})", self.border_attr(dashboard, Pane.NODES)
        )
        rows = h - 2
        offset, visible = nodes.window(rows)
        for i, record in enumerate(visible):
            idx = offset + i
            is_sel = idx == nodes.selected
            marker = ">" if is_sel else " "
            attr = curses.A_REVERSE if is_sel else 0
            self.safe_addstr(y + 1 + i, x + 1, f"{marker}{record.name}"[: w - 2], attr)

    def draw_topics_pane(self, y: int, x: int, w: int, h: int, dashboard: Dashboard):
        topics = dashboard.panes.topics
        self.draw_box(
            y,
            x,
            h,
            w,
            f"TOPICS ({len(topics)})",
            self.border_attr(dashboard, Pane.TOPICS),
        )
        inner_w = w - 3
        name_w = max(8, inner_w // 2)
        subs_w = 5
        type_w = max(4, inner_w - name_w - subs_w - 2)
        widths = (name_w, type_w, subs_w)

        # Header, with the column cursor highlighted while the pane is active
        active = (
            dashboard.state == AppState.ACTIVE_PANE
            and dashboard.panes.focused == Pane.TOPICS
        )
        col_x = x + 2
        for col, (label, width) in enumerate(zip(TOPIC_COLUMNS, widths)):
            attr = curses.A_BOLD
            if active and col == topics.column:
                attr |= curses.A_UNDERLINE | self.color(COLOR_INFO)
            self.safe_addstr(y + 1, col_x, f"{label:<{width}}"[:width], attr)
            col_x += width + 1

        rows = h - 3
        offset, visible = topics.window(rows)
        for i, record in enumerate(visible):
            idx = offset + i
            is_sel = idx == topics.selected
            attr = curses.A_REVERSE if is_sel else 0
            cells = (record.name, record.msg_type, str(record.subscriber_count))
            line = " ".join(
                f"{cell:<{width}}"[:width] for cell, width in zip(cells, widths)
            )
            marker = ">" if is_sel else " "
            self.safe_addstr(y + 2 + i, x + 1, f"{marker}{line}"[: w - 2], attr)

    def draw_details_pane(self, y: int, x: int, w: int, h: int, dashboard: Dashboard):
        title = "DETAILS"
        if dashboard.subscribed_topic:
            title = f"DETAILS [{dashboard.subscribed_topic}]"
        self.draw_box(y, x, h, w, title, self.border_attr(dashboard, Pane.DETAILS))
        lines = dashboard.panes.details.tail(h - 2)
        for i, line in enumerate(lines):
            attr = self.color(COLOR_CRIT) if line.startswith("[error]") else 0
            text = line.replace("\n", " ")
            self.safe_addstr(y + 1 + i, x + 2, text[: w - 4], attr)

    def draw_instructions(self):
        """Draw a centered dialog listing the keyboard shortcuts."""
        max_y, max_x = self.screen.getmaxyx()
        key_w = max(len(key) for key, _ in INSTRUCTIONS) + 2
        desc_w = max(len(desc) for _, desc in INSTRUCTIONS)
        box_w = min(max_x - 4, key_w + desc_w + 8)
        box_h = len(INSTRUCTIONS) + 5
        box_y = max(0, max_y // 2 - box_h // 2)
        box_x = max(0, max_x // 2 - box_w // 2)

        # Clear the area behind the dialog
        for i in range(box_h):
            self.safe_addstr(box_y + i, box_x, " " * box_w)
        self.draw_box(box_y, box_x, box_h, box_w, "INSTRUCTIONS")

        row = box_y + 2
        for key, desc in INSTRUCTIONS:
            self.safe_addstr(
                row, box_x + 3, key, self.color(COLOR_INFO) | curses.A_BOLD
            )
            self.safe_addstr(row, box_x + 3 + key_w, desc)
            row += 1
        self.safe_addstr(row + 1, box_x + 3, "Press i or Esc to close", curses.A_DIM)

    def draw_status_bar(self, y: int, max_x: int, dashboard: Dashboard):
        panes = dashboard.panes
        status = (
            f" {STATE_LABELS[dashboard.state]} | focus: {panes.focused.value}"
            f" | nodes: {len(panes.nodes)} topics: {len(panes.topics)}"
        )
        self.safe_addstr(y, 0, status.ljust(max_x), curses.A_REVERSE)
        if dashboard.last_error:
            err = f" ERROR: {dashboard.last_error} "
            self.safe_addstr(
                y,
                len(status) + 1,
                err,
                self.color(COLOR_WARN) | curses.A_REVERSE | curses.A_BOLD,
            )

