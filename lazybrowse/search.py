"""Regex search over the line index with page-wise wraparound.

Searches scan whole pages. A repeat search starts one page past the current
view; the scan wraps across the file boundary at most once before giving up.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from .errors import PatternError
from .line_index import LineIndex
from .ui_theme import DEFAULT_THEME, MessageLevel, UITheme

logger = logging.getLogger(__name__)

CASE_PREFIX = "(?i)"
NUMBER_COLUMN_WIDTH = 7


class PagedView(Protocol):
    """Viewport surface the search engine positions."""

    first_row: int
    rows: int

    @property
    def line_count(self) -> int: ...

    def print_page(self, top: int) -> None: ...


@dataclass
class SearchResult:
    """Outcome of one search: the landing line or a message for the status line."""

    line: int | None = None
    notices: list[str] = field(default_factory=list)
    message: str | None = None
    level: MessageLevel = MessageLevel.WARNING

    @property
    def found(self) -> bool:
        return self.line is not None


def split_case_prefix(pattern: str) -> tuple[str, bool]:
    """Strip a leading ``(?i)`` and report whether it was present."""
    if pattern.startswith(CASE_PREFIX):
        return pattern[len(CASE_PREFIX) :], True
    return pattern, False


def format_line_number(lineno: int) -> str:
    return f"{lineno:6d} "


class SearchEngine:
    """Active pattern, match bookkeeping and match highlighting."""

    def __init__(
        self,
        index: LineIndex | None = None,
        *,
        theme: UITheme = DEFAULT_THEME,
        ignore_case: bool = False,
    ) -> None:
        self.index = index
        self.theme = theme
        self.ignore_case = ignore_case
        self.pattern = ""
        self.forward = True
        self.last_match: int | None = None
        self._regex: re.Pattern[str] | None = None
        self._highlight = ""

    @property
    def active(self) -> bool:
        return self._regex is not None

    @property
    def display_pattern(self) -> str:
        """Pattern as stored in the session file, with ``(?i)`` when folding case."""
        if not self.pattern:
            return ""
        return f"{CASE_PREFIX}{self.pattern}" if self.ignore_case else self.pattern

    def attach(self, index: LineIndex) -> None:
        """Point the engine at a freshly opened file."""
        self.index = index
        self.last_match = None

    def reset_last_match(self) -> None:
        self.last_match = None

    def compile(self, pattern: str) -> bool:
        """Compile ``pattern`` and make it active.

        Empty input keeps the active pattern and returns whether one exists.
        Raises ``PatternError`` without touching state on a bad pattern.
        """
        if not pattern:
            return self.active
        text, forced = split_case_prefix(pattern)
        ignore_case = self.ignore_case or forced
        flags = re.IGNORECASE if ignore_case else 0
        try:
            regex = re.compile(text, flags)
        except re.error as exc:
            logger.info("pattern %r rejected: %s", pattern, exc)
            raise PatternError(pattern, str(exc)) from exc
        self.pattern = text
        self.ignore_case = ignore_case
        self._regex = regex
        self._highlight = self.theme.match
        return True

    def recompile(self) -> None:
        """Re-apply the case flag to the active pattern."""
        if not self.pattern:
            return
        flags = re.IGNORECASE if self.ignore_case else 0
        self._regex = re.compile(self.pattern, flags)

    def toggle_case(self) -> bool:
        self.ignore_case = not self.ignore_case
        self.recompile()
        return self.ignore_case

    def clear(self) -> None:
        self.pattern = ""
        self._regex = None
        self.last_match = None

    def line_matches(self, lineno: int) -> bool:
        if self._regex is None or self.index is None:
            return False
        text = self.index.read_line(lineno)
        return text is not None and self._regex.search(text) is not None

    def page_match_range(self, start: int, end: int) -> tuple[int, int]:
        """First and last matching line in ``[start, end)``; ``(0, 0)`` when none.

        The start-of-file sentinel never matches.
        """
        first = last = 0
        if self.index is None:
            return first, last
        stop = min(end, self.index.line_count)
        for lineno in range(max(1, start), stop):
            if self.line_matches(lineno):
                if not first:
                    first = lineno
                last = lineno
        return first, last

    def _next_page(self, forward: bool, start: int, rows: int, count: int) -> tuple[int, bool]:
        if forward:
            start += rows
            if start >= count:
                return 0, True
            return start, False
        start -= rows
        if start < 0:
            return max(0, count - rows + 1), True
        return start, False

    def search_file(
        self,
        pattern: str,
        forward: bool,
        is_repeat: bool,
        view: PagedView,
    ) -> SearchResult:
        """Find the next page containing a match and position ``view`` on it."""
        if pattern and pattern != self.pattern and pattern != self.display_pattern:
            try:
                self.compile(pattern)
            except PatternError as exc:
                return SearchResult(message=f"Bad pattern: {exc.message}", level=MessageLevel.ERROR)
            self.last_match = None
            is_repeat = False
        if self._regex is None:
            return SearchResult(message="No search pattern", level=MessageLevel.INFO)

        rows = view.rows
        count = view.line_count
        fresh = self.last_match is None or not is_repeat
        if fresh:
            start, wrapped = view.first_row, False
        else:
            start, wrapped = self._next_page(forward, view.first_row, rows, count)

        notices: list[str] = []
        warned = False
        while True:
            if wrapped:
                if warned:
                    return SearchResult(
                        notices=notices,
                        message=f"Pattern not found: {self.pattern}",
                    )
                notices.append("Resuming search from SOF" if forward else "Resuming search from EOF")
                warned = True
            first, last = self.page_match_range(start, start + rows)
            if first:
                target = first if forward else last
                if fresh:
                    top = target - rows // 2
                elif forward:
                    top = first - rows // 8
                else:
                    top = last - (rows - 1 - rows // 8)
                view.print_page(top)
                self.last_match = target
                return SearchResult(line=target, notices=notices)
            start, wrapped = self._next_page(forward, start, rows, count)

    def do_search(
        self,
        requested_forward: bool,
        view: PagedView,
        ask: Callable[[str], tuple[str, bool]],
    ) -> SearchResult | None:
        """Prompt for a pattern and search; ``None`` when the prompt was cancelled."""
        text, cancelled = ask("/" if requested_forward else "?")
        if cancelled:
            return None
        if not text:
            if not self.pattern:
                return SearchResult(message="No search pattern", level=MessageLevel.INFO)
            self.forward = requested_forward
            return self.search_file(self.pattern, requested_forward, True, view)
        try:
            self.compile(text)
        except PatternError as exc:
            return SearchResult(message=f"Bad pattern: {exc.message}", level=MessageLevel.ERROR)
        self.forward = requested_forward
        self.last_match = None
        return self.search_file(text, requested_forward, False, view)

    def replace_match(
        self,
        lineno: int,
        text: str,
        *,
        shift: int = 0,
        width: int = 80,
        numbers: bool = False,
    ) -> str:
        """Return the visible slice of ``text`` with matches highlighted."""
        text_width = width - NUMBER_COLUMN_WIDTH if numbers else width
        window = text[shift : shift + max(0, text_width)]
        prefix = format_line_number(lineno) if numbers else ""
        if self._regex is None or not self._highlight:
            return prefix + window

        window_end = shift + len(window)
        spans: list[tuple[int, int]] = []
        off_screen = False
        for match in self._regex.finditer(text):
            begin, end = match.span()
            if begin == end:
                continue
            if end <= shift or begin >= window_end:
                off_screen = True
                continue
            spans.append((max(begin, shift), min(end, window_end)))
        if not spans and not off_screen:
            return prefix + window

        tint = self.theme.off_screen_match if off_screen else ""
        resume = self.theme.reset + tint
        pieces = [prefix, tint]
        cursor = shift
        for begin, end in spans:
            pieces.extend((text[cursor:begin], self._highlight, text[begin:end], resume))
            cursor = end
        pieces.append(text[cursor:window_end])
        if tint:
            pieces.append(self.theme.reset)
        return "".join(pieces)
