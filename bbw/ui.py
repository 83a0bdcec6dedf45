"""
Curses widgets for bbw.

The Screen keeps a scrolling transcript of messages and boxes under a
fixed banner, and draws blocking prompts (text input, selection list,
confirmation) at the bottom of the terminal.
"""

import curses
import logging
from collections import deque
from typing import List, Optional, Sequence, Tuple


ENTER_KEYS = ('\n', '\r', curses.KEY_ENTER)
BACKSPACE_KEYS = ('\x7f', '\b', curses.KEY_BACKSPACE)
ESC = '\x1b'

# Transcript lines kept for redraws, several screens worth
HISTORY_LIMIT = 500

# Message prefixes, shown before status lines in the transcript
PREFIXES = {
    "info": " INFO ",
    "success": " SUCCESS ",
    "warning": " WARNING ",
    "error": " ERROR ",
}


def truncate(text: str, width: int) -> str:
    """Cut text to width columns, ending with '...' when shortened."""
    if width <= 0:
        return ""
    if len(text) <= width:
        return text
    if width <= 3:
        return text[:width]
    return text[:width - 3] + "..."


def frame_lines(text: str, title: str = "", padding: int = 1) -> List[str]:
    """Draw a box around text.

    Args:
        text: Box content, may span several lines
        title: Optional title centered in the top border
        padding: Blank columns left and right of the content

    Returns:
        The box as a list of lines of equal length
    """
    body = text.split("\n")
    inner = max([len(line) for line in body] + [len(title) + 2]) + 2 * padding
    if title:
        label = f" {title} "
        left = (inner - len(label)) // 2
        top = "┌" + "─" * left + label + "─" * (inner - left - len(label)) + "┐"
    else:
        top = "┌" + "─" * inner + "┐"
    lines = [top]
    for line in body:
        lines.append("│" + " " * padding + line.ljust(inner - 2 * padding) + " " * padding + "│")
    lines.append("└" + "─" * inner + "┘")
    return lines


def visible_range(selected: int, count: int, height: int) -> Tuple[int, int]:
    """Return the [start, end) slice of a list that keeps `selected` in view."""
    if count <= height:
        return 0, count
    start = max(0, selected - height // 2)
    start = min(start, count - height)
    return start, start + height


class Screen:
    """Transcript-style terminal screen built on a curses window."""

    HEADER_HEIGHT = 5

    def __init__(self, stdscr):
        """Initialize the screen.

        Args:
            stdscr: The main curses screen object
        """
        self.stdscr = stdscr
        self.logger = logging.getLogger(__name__)
        self.history = deque(maxlen=HISTORY_LIMIT)
        self.title = ""
        self.hint = ""
        self.height, self.width = stdscr.getmaxyx()
        self._init_curses()

    def _init_curses(self):
        """Initialize curses settings."""
        try:
            curses.curs_set(0)
        except curses.error:
            pass
        curses.cbreak()
        curses.noecho()
        self.stdscr.keypad(True)
        self.stdscr.nodelay(False)
        self.stdscr.timeout(-1)  # Every widget blocks for input

        curses.start_color()
        try:
            curses.use_default_colors()
            background = -1
        except curses.error:
            background = curses.COLOR_BLACK
        curses.init_pair(1, curses.COLOR_BLACK, curses.COLOR_WHITE)   # Selected
        curses.init_pair(2, curses.COLOR_GREEN, background)          # Success
        curses.init_pair(3, curses.COLOR_RED, background)            # Error
        curses.init_pair(4, curses.COLOR_BLUE, background)           # Info
        curses.init_pair(5, curses.COLOR_YELLOW, background)         # Warning
        curses.init_pair(6, curses.COLOR_CYAN, background)           # Boxes
        curses.init_pair(7, curses.COLOR_MAGENTA, background)        # Prompt

    def _attr(self, kind: str) -> int:
        return {
            "plain": curses.A_NORMAL,
            "dim": curses.A_DIM,
            "selected": curses.color_pair(1),
            "success": curses.color_pair(2),
            "error": curses.color_pair(3) | curses.A_BOLD,
            "info": curses.color_pair(4),
            "warning": curses.color_pair(5),
            "box": curses.color_pair(6),
            "prompt": curses.color_pair(7) | curses.A_BOLD,
        }.get(kind, curses.A_NORMAL)

    # Transcript

    def banner(self, title: str, hint: str = ""):
        """Set the title box and command hint drawn at the top."""
        self.title = title
        self.hint = hint

    def print(self, text: str = "", kind: str = "plain"):
        for line in text.split("\n"):
            self.history.append((line, kind))

    def info(self, message: str):
        self.print(PREFIXES["info"] + " " + message, "info")

    def success(self, message: str):
        self.print(PREFIXES["success"] + " " + message, "success")

    def warning(self, message: str):
        self.print(PREFIXES["warning"] + " " + message, "warning")

    def error(self, message: str):
        self.print(PREFIXES["error"] + " " + message, "error")

    def box(self, text: str, title: str = ""):
        """Append a framed box to the transcript."""
        for line in frame_lines(text, title, padding=3 if title else 1):
            self.history.append((line, "box"))

    # Drawing

    def _addstr(self, y: int, x: int, text: str, attr: int = 0):
        if y < 0 or y >= self.height or x >= self.width:
            return
        try:
            self.stdscr.addstr(y, max(0, x), truncate(text, self.width - max(0, x) - 1), attr)
        except curses.error:
            # Writing into the bottom-right cell fails on most terminals
            pass

    def _center_x(self, text: str) -> int:
        return max(0, (self.width - len(text)) // 2)

    def _draw_header(self):
        if not self.title:
            return
        for y, line in enumerate(frame_lines(self.title, padding=10)):
            self._addstr(y, self._center_x(line), line, self._attr("box") | curses.A_BOLD)
        if self.hint:
            self._addstr(3, self._center_x(self.hint), self.hint, self._attr("dim"))

    def _render(self, footer: Sequence[Tuple[str, str]]):
        """Redraw header, transcript tail and the given footer lines."""
        self.height, self.width = self.stdscr.getmaxyx()
        self.stdscr.erase()
        self._draw_header()

        top = self.HEADER_HEIGHT if self.title else 0
        footer_top = max(top, self.height - len(footer))
        rows = footer_top - top
        tail = list(self.history)[-rows:] if rows > 0 else []
        for i, (line, kind) in enumerate(tail):
            x = self._center_x(line) if kind == "box" else 0
            self._addstr(top + i, x, line, self._attr(kind))

        for i, (line, kind) in enumerate(footer):
            self._addstr(footer_top + i, 0, line, self._attr(kind))
        self.stdscr.refresh()

    def _read_key(self):
        key = self.stdscr.get_wch()
        if key == curses.KEY_RESIZE:
            self.height, self.width = self.stdscr.getmaxyx()
        return key

    # Widgets

    def text_input(self, prompt: str, mask: Optional[str] = None) -> Optional[str]:
        """Read a line of text.

        Args:
            prompt: Label shown before the input
            mask: Character echoed instead of the typed text, e.g. '*'

        Returns:
            The entered text, or None if ESC was pressed
        """
        value = ""
        try:
            curses.curs_set(1)
        except curses.error:
            pass
        try:
            while True:
                shown = mask * len(value) if mask else value
                line = f"{prompt}: {shown}"
                self._render([("", "plain"), (line, "prompt")])
                self.stdscr.move(self.height - 1, min(len(line), self.width - 1))

                key = self._read_key()
                if key in ENTER_KEYS:
                    break
                if key == ESC:
                    return None
                if key in BACKSPACE_KEYS:
                    value = value[:-1]
                elif isinstance(key, str) and key.isprintable():
                    value += key
        finally:
            try:
                curses.curs_set(0)
            except curses.error:
                pass

        if not mask:
            self.print(f"{prompt}: {value}", "dim")
        return value

    def select(self, options: Sequence[str], title: str, max_height: int = 15) -> Optional[int]:
        """Let the user pick one option with the arrow keys.

        Returns:
            Index of the chosen option, or None if ESC was pressed
        """
        if not options:
            return None
        selected = 0
        while True:
            # Title row plus list rows must fit below the banner
            room = self.height - (self.HEADER_HEIGHT if self.title else 0) - 1
            height = max(1, min(max_height, len(options), room))
            start, end = visible_range(selected, len(options), height)
            footer = [(title, "prompt")]
            for idx in range(start, end):
                marker = "> " if idx == selected else "  "
                footer.append((marker + options[idx], "selected" if idx == selected else "plain"))
            self._render(footer)

            key = self._read_key()
            if key == curses.KEY_UP:
                selected = (selected - 1) % len(options)
            elif key == curses.KEY_DOWN:
                selected = (selected + 1) % len(options)
            elif key == curses.KEY_PPAGE:
                selected = max(0, selected - height)
            elif key == curses.KEY_NPAGE:
                selected = min(len(options) - 1, selected + height)
            elif key in ENTER_KEYS:
                self.logger.debug("Selected option %d of %d", selected + 1, len(options))
                return selected
            elif key == ESC:
                return None

    def confirm(self, question: str, default: bool = False) -> bool:
        """Ask a yes/no question; ENTER takes the default, ESC answers no."""
        choices = "[Y/n]" if default else "[y/N]"
        while True:
            self._render([("", "plain"), (f"{question} {choices}", "prompt")])
            key = self._read_key()
            if key in ('y', 'Y'):
                return True
            if key in ('n', 'N', ESC):
                return False
            if key in ENTER_KEYS:
                return default
