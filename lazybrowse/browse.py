"""File-list iteration.

Each file is opened, tailed by a background thread and handed to a
dispatcher. Quit commands decide whether the session is saved and whether
the rest of the list is skipped.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
import time
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import BinaryIO

from .config import SESSION_MARKS, SavedSession, save_session
from .dispatcher import Dispatcher, DispatcherServices, never_ended
from .errors import OpenFailure
from .filters import FilterRunner
from .input import read_chunk
from .line_index import LineIndex
from .modes import ScrollMode
from .prompt import Prompter
from .screen import Screen
from .search import SearchEngine
from .state import BrowseContext
from .tailer import Tailer, wait_for_lines
from .terminal import TerminalController
from .ui_theme import DEFAULT_THEME, MessageLevel, UITheme, message_style
from .viewport import TIMED_MESSAGE_SECONDS, Viewport

logger = logging.getLogger(__name__)

BINARY_SAMPLE_BYTES = 8192
STDIN_TITLE = "stdin"


def open_target(path: Path) -> BinaryIO:
    """Open ``path`` for positional reads or raise ``OpenFailure``."""
    if path.is_dir():
        raise OpenFailure(path, "is a directory")
    try:
        return open(path, "rb")
    except OSError as exc:
        raise OpenFailure(path, exc.strerror or str(exc)) from exc


def is_binary(fp: BinaryIO) -> bool:
    try:
        sample = os.pread(fp.fileno(), BINARY_SAMPLE_BYTES, 0)
    except OSError:
        return False
    return b"\x00" in sample


class StdinSpool:
    """Copy a pipe into a private temporary file so it can be tailed."""

    def __init__(self, source: BinaryIO) -> None:
        fd, name = tempfile.mkstemp(prefix="lazybrowse-", suffix=".stdin")
        self.path = Path(name)
        self.empty = True
        self._source = source
        self._out = os.fdopen(fd, "wb")
        self._ready = threading.Event()
        self._done = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        self._thread = threading.Thread(target=self._copy, name="lazybrowse-stdin", daemon=True)
        self._thread.start()

    def _copy(self) -> None:
        try:
            for line in iter(self._source.readline, b""):
                self._out.write(line)
                self._out.flush()
                self.empty = False
                self._ready.set()
        except (OSError, ValueError) as exc:
            logger.warning("stdin copy stopped: %s", exc)
        finally:
            self._out.close()
            self._done.set()
            self._ready.set()

    def ended_empty(self) -> bool:
        return self._done.is_set() and self.empty

    def wait_for_data(self, timeout: float | None = None) -> bool:
        """Wait for the first line or end of input; ``False`` once stdin ended empty.

        A pipe that stays open and silent returns ``True`` after ``timeout``.
        """
        self._ready.wait(timeout)
        return not self.ended_empty()

    def remove(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass


class FileBrowser:
    """Browse files one after another inside one terminal session."""

    def __init__(
        self,
        context: BrowseContext,
        terminal: TerminalController,
        screen: Screen,
        search: SearchEngine,
        *,
        theme: UITheme = DEFAULT_THEME,
        version: str = "",
        sleep: Callable[[float], None] = time.sleep,
        input_ended: Callable[[], bool] = never_ended,
    ) -> None:
        self.context = context
        self.terminal = terminal
        self.screen = screen
        self.search = search
        self.theme = theme
        self.version = version
        self.sleep = sleep
        self.input_ended = input_ended
        self.prompter = Prompter(context, screen, terminal.tty_fd, theme=theme)
        self.filters = FilterRunner(terminal, screen, self.prompter)

    def _services(self) -> DispatcherServices:
        return DispatcherServices(
            read=lambda: read_chunk(self.terminal.tty_fd),
            ask=self.prompter.ask,
            any_key=self.prompter.any_key,
            run_filter=self.filters.run,
            missing_tool=self.filters.missing_tool,
            terminal_size=self.terminal.size,
            version=self.version,
            input_ended=self.input_ended,
        )

    def _notice(self, message: str, level: MessageLevel = MessageLevel.WARNING) -> None:
        self.screen.move(self.context.height, 1, clear=True)
        self.screen.write(message_style(self.theme, level), f" {message} ", self.theme.reset)
        self.screen.flush()
        self.sleep(TIMED_MESSAGE_SECONDS)

    def browse_list(self, names: Sequence[str], *, toplevel: bool) -> None:
        """Browse ``names`` in order until the list ends or an exit command."""
        if toplevel:
            self.context.file_list = list(names)
        for name in names:
            if not self.browse_path(name, name):
                continue
            if self.context.exit_list:
                if not toplevel:
                    self.context.exit_list = False
                return

    def browse_path(
        self,
        name: str,
        title: str,
        *,
        from_stdin: bool = False,
        top: int = 0,
        marks: Sequence[int] = (),
    ) -> bool:
        """Browse one file; ``False`` when it could not be opened."""
        path = Path(name.rstrip("/") or name)
        try:
            fp = open_target(path)
        except OpenFailure as exc:
            logger.info("cannot open %s: %s", exc.path, exc.reason)
            self.prompter.any_key(f"{exc} ... [press any key]")
            return False
        logger.info("browsing %s", path)
        with fp:
            if not from_stdin and is_binary(fp):
                self._notice(f"{path.name} is a binary file")
            self._browse_open_file(path, fp, title, from_stdin=from_stdin, top=top, marks=marks)
        return True

    def _browse_open_file(
        self,
        path: Path,
        fp: BinaryIO,
        title: str,
        *,
        from_stdin: bool,
        top: int,
        marks: Sequence[int],
    ) -> None:
        context = self.context
        session = context.begin_file(path, fp, title, from_stdin=from_stdin)
        index = LineIndex(fp.fileno())
        self.search.attach(index)
        viewport = Viewport(
            index,
            self.search,
            self.screen,
            session,
            height=context.height,
            width=context.width,
            theme=self.theme,
            numbers=context.numbers,
            sleep=self.sleep,
        )
        viewport.first_row = max(0, top)
        for mark, line in enumerate(marks[:SESSION_MARKS], start=1):
            viewport.marks[mark] = line

        generation = session.generation
        target = viewport.first_row + context.height
        tailer = Tailer(
            index,
            path,
            fp.fileno(),
            is_current=lambda: context.is_current(generation),
            want_lines=target,
            poll_seconds=context.poll_seconds,
        )
        tailer.start()
        try:
            if not tailer.wait_ready():
                notices = tailer.drain_notices()
                reason = notices[-1].message if notices else f"{path}: no data"
                self.prompter.any_key(f"{reason} ... [press any key]")
                return
            count = wait_for_lines(index, path, target, sleep=self.sleep)
            if count < target:
                viewport.first_row = max(0, count - context.height + 2)
            mode = context.start_mode
            context.start_mode = ScrollMode.NONE
            Dispatcher(
                context,
                session,
                viewport,
                self.search,
                tailer,
                self.screen,
                self._services(),
                mode=mode,
            ).run()
        finally:
            tailer.stop()
            context.end_file(session)
            tailer.join(1.0)

        if context.save_session and not from_stdin:
            save_session(
                SavedSession(
                    path=str(path.resolve()),
                    top=viewport.first_row,
                    pattern=self.search.display_pattern,
                    marks=tuple(viewport.marks[1:]),
                    title=title,
                )
            )
        pending = context.take_pending_files()
        if pending:
            self.browse_list(pending, toplevel=False)
