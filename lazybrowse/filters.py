"""External filters run through a pseudo-terminal.

``&`` pipes ``grep -nP`` output into a nested pager, ``w`` reflows the file
with ``fmt``, ``!`` runs an arbitrary shell command.
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import sys
from collections.abc import Callable

from .ansi import LINE_WRAP_ON, RESET_REGION, cursor_position
from .paths import substitute_marker
from .prompt import Prompter
from .screen import Screen
from .search import NUMBER_COLUMN_WIDTH
from .pty_runner import run_in_pty
from .terminal import TerminalController
from .ui_theme import MessageLevel

logger = logging.getLogger(__name__)

MIN_FORMAT_WIDTH = 10
MAX_COMMAND_LENGTH = 1024


def self_command() -> str:
    """Shell words that start a nested pager with the running interpreter."""
    return f"{shlex.quote(sys.executable)} -m lazybrowse"


def grep_command(pattern: str, path: str, *, ignore_case: bool = False) -> str:
    flags = "-niP" if ignore_case else "-nP"
    title = f"grep {flags} {pattern}"
    nested_pattern = f"(?i){pattern}" if ignore_case else pattern
    return (
        f"grep {flags} -e {shlex.quote(pattern)} {shlex.quote(path)}"
        f" | {self_command()} -p {shlex.quote(nested_pattern)} -t {shlex.quote(title)}"
    )


def format_command(path: str, width: int, *, from_stdin: bool = False) -> str:
    wrap = max(MIN_FORMAT_WIDTH, width - NUMBER_COLUMN_WIDTH - 1)
    title = "fmt -s" if from_stdin else f"fmt -s {os.path.basename(path)}"
    return f"fmt -s -w {wrap} {shlex.quote(path)} | {self_command()} -t {shlex.quote(title)}"


def expand_shell_command(text: str, *, filename: str, pattern: str, previous: str) -> tuple[str, str]:
    """Apply ``!``, ``%`` and ``&`` substitutions.

    Returns ``(command, remembered)`` where ``remembered`` is what a later
    ``!`` expands to.
    """
    command = substitute_marker(text, "!", previous) if "!" in text else text
    remembered = command
    if "%" in command:
        command = substitute_marker(command, "%", shlex.quote(filename))
    if pattern and "&" in command:
        command = substitute_marker(command, "&", shlex.quote(pattern))
    return command, remembered


class FilterRunner:
    """Hand the terminal to a child command, then wait for a key."""

    def __init__(
        self,
        terminal: TerminalController,
        screen: Screen,
        prompter: Prompter,
        *,
        run: Callable[..., int] = run_in_pty,
        which: Callable[[str], str | None] = shutil.which,
    ) -> None:
        self.terminal = terminal
        self.screen = screen
        self.prompter = prompter
        self._run = run
        self._which = which

    def missing_tool(self, *names: str) -> str | None:
        for name in names:
            if self._which(name) is None:
                return f"Cannot find '{name}' in $PATH"
        return None

    def run(self, command: str, height: int) -> int | None:
        """Run ``command`` full screen; ``None`` when it could not be started."""
        self.screen.move(height, 1, clear=True)
        self.screen.write(LINE_WRAP_ON, RESET_REGION, cursor_position(height, 1), f"\n---\n$ {command}\n")
        self.screen.flush()
        try:
            with self.terminal.raw_mode():
                status = self._run(command, tty_fd=self.terminal.tty_fd, out_fd=self.terminal.stdout_fd)
        except OSError as exc:
            logger.warning("cannot run %r: %s", command, exc)
            self.prompter.any_key(f"Cannot run command: {exc.strerror or exc} ... [press any key]")
            return None
        self.prompter.any_key("Press any key to continue...", MessageLevel.INFO)
        return status
