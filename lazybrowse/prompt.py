"""Status-row line editor and key waits."""

from __future__ import annotations

import codecs
from collections.abc import Callable

from .input import read_chunk
from .screen import Screen
from .state import BrowseContext
from .ui_theme import DEFAULT_THEME, MessageLevel, UITheme, message_style

_CANCEL_CHARS = frozenset({"\x03", "\x07"})
_ERASE_CHARS = frozenset({"\x08", "\x7f"})


def erase_word(text: str) -> str:
    """Drop the last whitespace-delimited word and any spaces after it."""
    stripped = text.rstrip(" ")
    cut = stripped.rfind(" ")
    return stripped[: cut + 1]


class Prompter:
    """Read a line of text on the last display row.

    Enter accepts; ESC, ^C and ^G cancel; backspace, ^U and ^W edit.
    """

    def __init__(
        self,
        context: BrowseContext,
        screen: Screen,
        tty_fd: int,
        *,
        theme: UITheme = DEFAULT_THEME,
        read: Callable[[int, int | None], bytes] = read_chunk,
    ) -> None:
        self.context = context
        self.screen = screen
        self.tty_fd = tty_fd
        self.theme = theme
        self._read = read

    def _show(self, prompt: str, text: str) -> None:
        line = prompt + text
        limit = max(1, self.context.width - 1)
        if len(line) > limit:
            line = line[-limit:]
        self.screen.move(self.context.height, 1, clear=True)
        self.screen.write(line)
        self.screen.flush()

    def ask(self, prompt: str) -> tuple[str, bool]:
        """Return ``(text, cancelled)``."""
        decoder = codecs.getincrementaldecoder("utf-8")(errors="ignore")
        text = ""
        self._show(prompt, text)
        while True:
            chunk = self._read(self.tty_fd, None)
            if not chunk:
                return "", True
            if chunk.startswith(b"\x1b"):
                if chunk == b"\x1b":
                    return "", True
                continue
            for char in decoder.decode(chunk):
                if char in ("\r", "\n"):
                    return text, False
                if char in _CANCEL_CHARS:
                    return "", True
                if char in _ERASE_CHARS:
                    text = text[:-1]
                elif char == "\x15":
                    text = ""
                elif char == "\x17":
                    text = erase_word(text)
                elif char.isprintable():
                    text += char
            self._show(prompt, text)

    def any_key(self, message: str | None = None, level: MessageLevel = MessageLevel.ERROR) -> bytes:
        """Optionally show ``message`` then block for one keystroke."""
        if message is not None:
            self.screen.move(self.context.height, 1, clear=True)
            self.screen.write(
                message_style(self.theme, level),
                f" {message} ",
                self.theme.reset,
            )
        self.screen.flush()
        return self._read(self.tty_fd, None)
