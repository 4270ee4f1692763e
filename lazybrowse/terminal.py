"""Terminal control for the pager session.

Owns the controlling terminal's line discipline: browser mode (no echo, no
canonical input, no signal keys) while paging and fully raw mode while an
external command runs in a pseudo-terminal.
"""

from __future__ import annotations

import contextlib
import os
import shutil
import termios
import tty

from .ansi import LINE_WRAP_ON, RESET_REGION, cursor_position

DEFAULT_SIZE = (80, 24)


class TerminalController:
    """Manage terminal mode transitions and raw output."""

    def __init__(self, tty_fd: int, stdout_fd: int) -> None:
        """Capture tty state and bind the terminal and output descriptors."""
        self.tty_fd = tty_fd
        self.stdout_fd = stdout_fd
        self._saved_tty_state = termios.tcgetattr(tty_fd)

    def write(self, text: str) -> None:
        data = text.encode("utf-8", errors="replace")
        while data:
            written = os.write(self.stdout_fd, data)
            data = data[written:]

    def size(self) -> tuple[int, int]:
        """Return ``(rows, columns)`` of the controlling terminal."""
        try:
            columns, lines = os.get_terminal_size(self.tty_fd)
        except OSError:
            columns, lines = shutil.get_terminal_size(DEFAULT_SIZE)
        return lines, columns

    def enable_browser_mode(self) -> None:
        """Single-byte reads without echo; Enter arrives as CR."""
        attrs = termios.tcgetattr(self.tty_fd)
        attrs[0] &= ~(termios.ICRNL | termios.INLCR)
        attrs[3] &= ~(termios.ICANON | termios.ECHO | termios.ISIG | termios.IEXTEN)
        attrs[6][termios.VMIN] = 1
        attrs[6][termios.VTIME] = 0
        termios.tcsetattr(self.tty_fd, termios.TCSAFLUSH, attrs)

    def enable_raw_mode(self) -> None:
        tty.setraw(self.tty_fd, termios.TCSAFLUSH)

    def restore_mode(self) -> None:
        termios.tcsetattr(self.tty_fd, termios.TCSAFLUSH, self._saved_tty_state)

    def reset_display(self) -> None:
        """Drop the scroll region, re-enable line wrap and park the cursor on the last row."""
        rows, _ = self.size()
        self.write(f"{RESET_REGION}{LINE_WRAP_ON}{cursor_position(rows, 1)}\n")

    def disable_browser_mode(self) -> None:
        self.reset_display()
        self.restore_mode()

    @contextlib.contextmanager
    def browser_mode(self):
        try:
            self.enable_browser_mode()
            yield
        finally:
            self.disable_browser_mode()

    @contextlib.contextmanager
    def raw_mode(self):
        """Pass every byte through untouched, then return to browser mode."""
        try:
            self.enable_raw_mode()
            yield
        finally:
            self.enable_browser_mode()
