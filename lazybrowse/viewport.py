"""Viewport and paging engine.

Row 1 holds the header; rows ``2..height`` form the scroll region where
lines ``first_row..last_row-1`` are drawn. Scrolling by less than a quarter
page uses terminal scrolling and redraws only the exposed lines.
"""

from __future__ import annotations

import os
import time
from collections.abc import Callable

from .ansi import (
    CLEAR_LINE,
    CLEAR_SCREEN,
    ENTER_GRAPHICS,
    EXIT_GRAPHICS,
    HORIZ_LINE,
    INDEX,
    INSERT_LINE,
    LEFT_TEE,
    LINE_WRAP_OFF,
    RIGHT_TEE,
    sanitize_terminal_text,
    scroll_region,
)
from .line_index import MAX_LINE_BYTES, TAB_WIDTH, LineIndex
from .screen import Screen
from .search import NUMBER_COLUMN_WIDTH, SearchEngine
from .state import FileSession
from .ui_theme import DEFAULT_THEME, MessageLevel, UITheme, message_style

SHIFT_INCREMENT = TAB_WIDTH
MAX_SHIFT = MAX_LINE_BYTES - 2 * SHIFT_INCREMENT
MAX_MARKS = 10
MIN_HEADER_WIDTH = 12
TIMED_MESSAGE_SECONDS = 1.5


class Viewport:
    """Visible window over one file plus its horizontal shift and marks."""

    def __init__(
        self,
        index: LineIndex,
        search: SearchEngine,
        screen: Screen,
        session: FileSession,
        *,
        height: int,
        width: int,
        theme: UITheme = DEFAULT_THEME,
        numbers: bool = False,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.index = index
        self.search = search
        self.screen = screen
        self.session = session
        self.height = height
        self.width = width
        self.theme = theme
        self.numbers = numbers
        self.sleep = sleep
        self.first_row = 0
        self.last_row = 0
        self.shift_width = 0
        self.marks = [0] * MAX_MARKS
        self.painted = False
        self._tail_count = -1

    @property
    def rows(self) -> int:
        return max(1, self.height - 1)

    @property
    def line_count(self) -> int:
        return self.index.line_count

    def resize(self, height: int, width: int) -> None:
        self.height = height
        self.width = width
        self.painted = False

    def clamp_top(self, top: int) -> int:
        return max(0, min(top, max(0, self.line_count - self.rows + 1)))

    def _row_of(self, lineno: int) -> int:
        return lineno - self.first_row + 2

    def _page_full(self) -> bool:
        return self.last_row - self.first_row == self.rows

    def _draw(self, lineno: int, row: int) -> None:
        count = self.line_count
        self.screen.move(row, 1)
        if lineno >= count:
            self.screen.write(" ", self.theme.blink, "EOF", self.theme.reset, CLEAR_SCREEN)
            return
        if lineno == 0:
            self.screen.write(" ", self.theme.blink, "SOF", self.theme.reset, CLEAR_LINE)
            return
        text = sanitize_terminal_text(self.index.read_line(lineno) or "")
        body = self.search.replace_match(
            lineno,
            text,
            shift=self.shift_width,
            width=self.width,
            numbers=self.numbers,
        )
        self.screen.write(body, self.theme.reset, CLEAR_LINE)

    def _mark_eof(self, visible: bool) -> None:
        self.session.hit_eof = visible
        self.session.shown_eof = visible

    def print_page(self, top: int, *, repaint: bool = False) -> None:
        """Show the page starting at ``top`` after clamping it into range."""
        top = self.clamp_top(top)
        if not repaint and self.painted and self._page_full():
            delta = top - self.first_row
            limit = self.rows >> 2
            if 0 < delta < limit:
                self.scroll_down(delta)
                return
            if 0 < -delta < limit:
                self.scroll_up(-delta)
                return
        self._paint(top)

    def _paint(self, top: int) -> None:
        count = self.line_count
        bottom = min(top + self.rows, count + 1)
        self.first_row = top
        for lineno in range(top, bottom):
            self._draw(lineno, self._row_of(lineno))
        self.last_row = bottom
        self.painted = True
        self.session.shown_msg = False
        self._mark_eof(bottom > count)
        self.screen.move(2, 1)

    def page_current(self) -> None:
        self.print_page(self.first_row, repaint=True)

    def page_down(self) -> None:
        self.print_page(self.first_row + self.rows)

    def page_up(self) -> None:
        self.print_page(self.first_row - self.rows)

    def page_last(self) -> None:
        self.print_page(self.line_count)

    def page_marked(self, mark: int) -> bool:
        if not 1 <= mark < MAX_MARKS:
            return False
        self.print_page(self.marks[mark])
        return True

    def set_mark(self, mark: int) -> bool:
        if not 1 <= mark < MAX_MARKS:
            return False
        self.marks[mark] = self.first_row
        return True

    def scroll_down(self, count: int) -> int:
        """Move the view ``count`` lines toward EOF; return lines actually moved."""
        if self.session.shown_msg:
            self.restore_last()
        moved = 0
        for _ in range(count):
            total = self.line_count
            if self.session.shown_eof and self.last_row - 1 < total:
                # the file grew under the EOF marker
                self._draw(self.last_row - 1, self._row_of(self.last_row - 1))
                self._mark_eof(False)
            if self.last_row > total:
                self.session.hit_eof = True
                break
            if self.last_row - self.first_row >= self.rows:
                self.screen.move(self.height, 1)
                self.screen.write(INDEX)
                self.first_row += 1
            self._draw(self.last_row, self._row_of(self.last_row))
            self._mark_eof(self.last_row >= total)
            self.last_row += 1
            moved += 1
        self.screen.move(2, 1)
        return moved

    def scroll_up(self, count: int) -> int:
        """Move the view ``count`` lines toward SOF; return lines actually moved."""
        moved = 0
        for _ in range(count):
            if self.first_row <= 0:
                break
            self.first_row -= 1
            self.screen.move(2, 1)
            self.screen.write(INSERT_LINE)
            self._draw(self.first_row, 2)
            if self.last_row - self.first_row > self.rows:
                self.last_row -= 1
            moved += 1
        if moved:
            self.session.shown_msg = False
            self._mark_eof(self.last_row > self.line_count)
        self.screen.move(2, 1)
        return moved

    def tail_refresh(self) -> bool:
        """Repaint the last page when the line count changed since the last call."""
        count = self.line_count
        if count == self._tail_count and self.session.shown_eof:
            return False
        self._tail_count = count
        self.print_page(count, repaint=True)
        return True

    def shift_left(self) -> bool:
        if self.shift_width < SHIFT_INCREMENT:
            return False
        self.shift_width -= SHIFT_INCREMENT
        self.page_current()
        return True

    def shift_right(self) -> bool:
        if self.shift_width >= MAX_SHIFT:
            return False
        self.shift_width += SHIFT_INCREMENT
        self.page_current()
        return True

    def shift_zero(self) -> bool:
        if self.shift_width == 0:
            return False
        self.shift_width = 0
        self.page_current()
        return True

    def shift_longest(self) -> int:
        """Smallest shift that shows the end of the longest visible line.

        Returns 0 when every visible line already fits.
        """
        longest = 0
        stop = min(self.first_row + self.rows, self.line_count)
        for lineno in range(max(1, self.first_row), stop):
            text = self.index.read_line(lineno)
            if text is not None:
                longest = max(longest, len(text))
        if self.numbers:
            longest += NUMBER_COLUMN_WIDTH
        if longest <= self.width:
            return 0
        excess = longest - self.width
        return min(MAX_SHIFT, -(-excess // SHIFT_INCREMENT) * SHIFT_INCREMENT)

    def toggle_numbers(self) -> bool:
        self.numbers = not self.numbers
        self.page_current()
        return self.numbers

    def prepare_screen(self) -> None:
        """Clear the display, disable line wrap and set the scroll region."""
        self.screen.move(1, 1)
        self.screen.write(CLEAR_SCREEN, LINE_WRAP_OFF, scroll_region(2, self.height))
        self.painted = False

    def header_text(self) -> str:
        available = self.width - 4
        title = self.session.title
        if len(title) > available:
            title = "..." + title[len(title) - max(0, available - 7) :]
        padding = max(0, available - len(title)) >> 1
        trailing = max(0, available - padding - len(title))
        return "".join(
            (
                ENTER_GRAPHICS,
                HORIZ_LINE * padding,
                LEFT_TEE,
                EXIT_GRAPHICS,
                self.theme.header_title,
                " ",
                title,
                " ",
                self.theme.reset,
                ENTER_GRAPHICS,
                RIGHT_TEE,
                HORIZ_LINE * trailing,
                EXIT_GRAPHICS,
            )
        )

    def render_header(self) -> None:
        self.prepare_screen()
        if self.width < MIN_HEADER_WIDTH:
            return
        self.screen.move(1, 1)
        self.screen.write(self.header_text())
        self.screen.move(2, 1)

    def print_message(self, message: str, level: MessageLevel = MessageLevel.INFO) -> None:
        """Write ``message`` on the last row; the next scroll restores that row."""
        text = message[: max(0, self.width - 2)]
        self.screen.move(self.height, 1, clear=True)
        self.screen.write(message_style(self.theme, level), " ", text, " ", self.theme.reset)
        self.session.shown_msg = True

    def restore_last(self) -> None:
        """Redraw the content line hidden by a status message."""
        if not self.session.shown_msg:
            return
        lineno = self.first_row + self.rows - 1
        if lineno < self.last_row:
            self._draw(lineno, self.height)
        else:
            self.screen.move(self.height, 1, clear=True)
        self.session.shown_msg = False

    def timed_message(
        self,
        message: str,
        level: MessageLevel = MessageLevel.INFO,
        seconds: float = TIMED_MESSAGE_SECONDS,
    ) -> None:
        self.print_message(message, level)
        self.screen.flush()
        self.sleep(seconds)
        self.restore_last()

    def position_report(self) -> str:
        count = self.line_count
        percent = 0.0 if count <= 1 else self.first_row / (count - 1) * 100.0
        name = os.path.basename(self.session.name)
        return f'"{name}" {count - 1} lines --{percent:.1f}%--'
