"""
Curses terminal session and the input loop that feeds key presses to the bus.

The input loop and the renderer share one curses screen from two threads, so
every curses call goes through TerminalSession under its lock. Reads are
non-blocking; the input loop sleeps between empty reads.
"""

import curses
import logging
import os
import sys
import threading
from typing import Callable, Optional

from lazyros.errors import SetupError
from lazyros.event_bus import EventBus
from lazyros.events import (
    KEY_DOWN,
    KEY_ENTER,
    KEY_ESC,
    KEY_LEFT,
    KEY_RIGHT,
    KEY_UP,
    Event,
    KeyInput,
    Resize,
)

logger = logging.getLogger(__name__)

# Curses waits this long (ms) after Esc for an escape sequence; default is 1s
ESC_DELAY_MS = 25

# Color pair indices
COLOR_OK = 1
COLOR_WARN = 2
COLOR_CRIT = 3
COLOR_INFO = 4

_NAMED_KEYS = {
    curses.KEY_UP: KEY_UP,
    curses.KEY_DOWN: KEY_DOWN,
    curses.KEY_LEFT: KEY_LEFT,
    curses.KEY_RIGHT: KEY_RIGHT,
    curses.KEY_ENTER: KEY_ENTER,
    10: KEY_ENTER,
    13: KEY_ENTER,
    27: KEY_ESC,
}


def translate_key(code: int) -> Optional[str]:
    """Map a curses key code to a key name. Returns None for keys we don't forward."""
    if code in _NAMED_KEYS:
        return _NAMED_KEYS[code]
    if 32 <= code < 127:
        return chr(code)
    return None


class TerminalSession:
    """Owns the curses screen between init() and restore()."""

    def __init__(self):
        self.stdscr = None
        self.has_colors = False
        self._lock = threading.Lock()

    def init(self):
        if not sys.stdout.isatty():
            raise SetupError("stdout is not a terminal")
        os.environ.setdefault("ESCDELAY", str(ESC_DELAY_MS))
        try:
            stdscr = curses.initscr()
        except curses.error as e:
            raise SetupError(f"Failed to initialise terminal: {e}") from e
        self.stdscr = stdscr
        try:
            curses.noecho()
            curses.cbreak()
            stdscr.keypad(True)
            stdscr.nodelay(True)  # Non-blocking input
            try:
                curses.curs_set(0)  # Hide cursor
            except curses.error:
                pass
            self._init_colors()
        except curses.error as e:
            self.restore()
            raise SetupError(f"Failed to configure terminal: {e}") from e

    def _init_colors(self):
        if not curses.has_colors():
            return
        curses.start_color()
        curses.use_default_colors()
        curses.init_pair(COLOR_OK, curses.COLOR_GREEN, -1)
        curses.init_pair(COLOR_WARN, curses.COLOR_YELLOW, -1)
        curses.init_pair(COLOR_CRIT, curses.COLOR_RED, -1)
        curses.init_pair(COLOR_INFO, curses.COLOR_CYAN, -1)
        self.has_colors = True

    def restore(self):
        if self.stdscr is None:
            return
        with self._lock:
            self.stdscr.keypad(False)
            curses.nocbreak()
            curses.echo()
            curses.endwin()
            self.stdscr = None

    def __enter__(self) -> "TerminalSession":
        self.init()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.restore()

    def draw(self, frame_callback: Callable[[object], None]):
        """Erase the screen, let frame_callback paint it, then refresh."""
        with self._lock:
            if self.stdscr is None:
                return
            # erase() instead of clear() to avoid flicker
            self.stdscr.erase()
            try:
                frame_callback(self.stdscr)
            except curses.error:
                pass
            self.stdscr.refresh()

    def read(self) -> Optional[Event]:
        """Return the pending key or resize event, or None if there is none."""
        with self._lock:
            if self.stdscr is None:
                return None
            code = self.stdscr.getch()
            if code == -1:
                return None
            if code == curses.KEY_RESIZE:
                curses.update_lines_cols()
                max_y, max_x = self.stdscr.getmaxyx()
                return Resize(width=max_x, height=max_y)
        key = translate_key(code)
        if key is None:
            logger.debug(f"Ignoring key code {code}")
            return None
        return KeyInput(key=key)


class InputSource:
    """Producer loop forwarding every terminal event to the bus verbatim."""

    def __init__(self, session: TerminalSession, bus: EventBus, poll_ms: int = 50):
        self.session = session
        self.bus = bus
        self.poll_interval = poll_ms / 1000.0

    def run(self):
        while not self.bus.closed:
            event = self.session.read()
            if event is None:
                if self.bus.wait_closed(self.poll_interval):
                    return
                continue
            self.bus.put(event)
