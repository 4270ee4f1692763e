"""Buffered output sink for ANSI rendering.

Renderers append escape sequences and text; the dispatcher flushes once per
command so each keystroke produces a single write to the terminal.
"""

from __future__ import annotations

from collections.abc import Callable

from .ansi import CLEAR_LINE, cursor_position


class Screen:
    """Collect output fragments and hand them to ``sink`` on ``flush``."""

    def __init__(self, sink: Callable[[str], None]) -> None:
        self._sink = sink
        self._pending: list[str] = []

    def write(self, *parts: str) -> None:
        self._pending.extend(parts)

    def move(self, row: int, col: int, *, clear: bool = False) -> None:
        """Position the cursor, optionally clearing to end of line."""
        self._pending.append(cursor_position(row, col))
        if clear:
            self._pending.append(CLEAR_LINE)

    def flush(self) -> None:
        if not self._pending:
            return
        payload = "".join(self._pending)
        self._pending.clear()
        self._sink(payload)
