"""Command dispatcher: keystrokes in, viewport and search operations out.

The loop reads the terminal with a short timeout. A key runs one command;
a timeout drains tailer notices and advances the active scroll mode.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from . import commands as cmd
from .filters import MAX_COMMAND_LENGTH, expand_shell_command, format_command, grep_command
from .help import render_help
from .input import decode_keys
from .modes import ScrollMode, in_motion, next_mode, tick
from .paths import expand_directory_argument, expand_file_arguments
from .screen import Screen
from .search import SearchEngine, SearchResult
from .state import BrowseContext, FileSession
from .tailer import Tailer
from .ui_theme import MessageLevel
from .viewport import Viewport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandBinding:
    """One or more keys bound to a command handler."""

    keys: tuple[str, ...]
    handler: Callable[[], bool | None]


class CommandTable:
    """Key-to-handler table. A handler returning ``True`` leaves the loop."""

    def __init__(self) -> None:
        self._handlers: dict[str, Callable[[], bool | None]] = {}

    def register(self, *bindings: CommandBinding) -> CommandTable:
        for binding in bindings:
            for key in binding.keys:
                self._handlers[key] = binding.handler
        return self

    def __contains__(self, key: str) -> bool:
        return key in self._handlers

    def dispatch(self, key: str) -> bool | None:
        """Run the handler bound to ``key``; ``None`` when nothing is bound."""
        handler = self._handlers.get(key)
        if handler is None:
            return None
        return bool(handler())


def never_ended() -> bool:
    return False


@dataclass(frozen=True)
class DispatcherServices:
    """Terminal-facing operations injected into the dispatcher.

    ``input_ended`` reports that piped stdin closed without sending a line.
    """

    read: Callable[[], bytes]
    ask: Callable[[str], tuple[str, bool]]
    any_key: Callable[..., bytes]
    run_filter: Callable[[str, int], int | None]
    missing_tool: Callable[..., str | None]
    terminal_size: Callable[[], tuple[int, int]]
    version: str = ""
    input_ended: Callable[[], bool] = never_ended


class Dispatcher:
    """Drive one file session until a quit or open-file command."""

    def __init__(
        self,
        context: BrowseContext,
        session: FileSession,
        viewport: Viewport,
        search: SearchEngine,
        tailer: Tailer,
        screen: Screen,
        services: DispatcherServices,
        *,
        mode: ScrollMode = ScrollMode.NONE,
    ) -> None:
        self.context = context
        self.session = session
        self.viewport = viewport
        self.search = search
        self.tailer = tailer
        self.screen = screen
        self.services = services
        self.mode = mode
        self.table = self._build_table()

    def _build_table(self) -> CommandTable:
        return CommandTable().register(
            CommandBinding((cmd.CMD_PAGE_DN, cmd.CMD_PAGE_DN_1), self.viewport.page_down),
            CommandBinding((cmd.CMD_PAGE_UP,), self._page_up),
            CommandBinding(
                (cmd.CMD_HALF_PAGE_DN, cmd.CMD_HALF_PAGE_DN_1, cmd.CMD_HALF_PAGE_DN_2),
                self._half_page_down,
            ),
            CommandBinding(
                (cmd.CMD_HALF_PAGE_UP, cmd.CMD_HALF_PAGE_UP_1, cmd.CMD_HALF_PAGE_UP_2),
                self._half_page_up,
            ),
            CommandBinding((cmd.CMD_SCROLL_DN, cmd.CMD_SCROLL_DN_1, cmd.CMD_SCROLL_DN_2), self._scroll_down),
            CommandBinding((cmd.CMD_SCROLL_UP,), self._scroll_up),
            CommandBinding((cmd.CMD_SHIFT_LEFT, cmd.CMD_SHIFT_LEFT_1, cmd.CMD_SHIFT_LEFT_2), self._shift_left),
            CommandBinding((cmd.CMD_SHIFT_RIGHT, cmd.CMD_SHIFT_RIGHT_1), self._shift_right),
            CommandBinding((cmd.CMD_SHIFT_ZERO,), self._shift_zero),
            CommandBinding((cmd.CMD_SHIFT_LONGEST,), self._shift_longest),
            CommandBinding((cmd.CMD_SOF,), self._start_of_file),
            CommandBinding((cmd.CMD_EOF,), self.viewport.page_last),
            CommandBinding((cmd.CMD_JUMP,), self._jump),
            CommandBinding((cmd.CMD_NUMBERS,), self._toggle_numbers),
            CommandBinding((cmd.CMD_MODE_UP, cmd.CMD_MODE_DN), self._home_cursor),
            CommandBinding((cmd.CMD_MODE_TAIL, cmd.CMD_MODE_FOLLOW), self.viewport.page_last),
            CommandBinding((cmd.CMD_MARK,), self._set_mark),
            CommandBinding((cmd.CMD_SEARCH_FWD,), lambda: self._search_prompt(True)),
            CommandBinding((cmd.CMD_SEARCH_REV,), lambda: self._search_prompt(False)),
            CommandBinding((cmd.CMD_SEARCH_NEXT,), lambda: self._search_again(self.search.forward)),
            CommandBinding((cmd.CMD_SEARCH_NEXT_REV,), lambda: self._search_again(not self.search.forward)),
            CommandBinding((cmd.CMD_SEARCH_IGN_CASE,), self._toggle_case),
            CommandBinding((cmd.CMD_SEARCH_PRINT,), self._print_pattern),
            CommandBinding((cmd.CMD_SEARCH_CLEAR,), self._clear_pattern),
            CommandBinding((cmd.CMD_GREP,), self._grep),
            CommandBinding((cmd.CMD_FORMAT,), self._format),
            CommandBinding((cmd.CMD_BASH,), self._bash),
            CommandBinding((cmd.CMD_NEWFILE,), self._open_files),
            CommandBinding((cmd.CMD_PRINTDIR,), lambda: self._info(os.getcwd())),
            CommandBinding((cmd.CMD_NEWDIR,), self._change_directory),
            CommandBinding((cmd.CMD_ARGLIST,), self._argument_list),
            CommandBinding((cmd.CMD_PERCENT, cmd.CMD_PERCENT_1), lambda: self._info(self.viewport.position_report())),
            CommandBinding((cmd.CMD_HELP,), self._help),
            CommandBinding((cmd.CMD_QUIT,), lambda: self._quit(save=True, exit_list=False)),
            CommandBinding((cmd.CMD_QUIT_NO_SAVE,), lambda: self._quit(save=False, exit_list=False)),
            CommandBinding((cmd.CMD_EXIT,), lambda: self._quit(save=True, exit_list=True)),
            CommandBinding((cmd.CMD_EXIT_NO_SAVE,), lambda: self._quit(save=False, exit_list=True)),
        )

    def start(self) -> None:
        self.viewport.render_header()
        if in_motion(self.mode):
            self.viewport.page_last()
        else:
            self.viewport.page_current()
        self.screen.flush()

    def run(self) -> None:
        self.start()
        while True:
            if self.context.take_resize():
                self.resize()
            chunk = self.services.read()
            if not chunk:
                if self.session.from_stdin and self.services.input_ended():
                    logger.info("stdin closed without data")
                    self._quit(save=False, exit_list=True)
                    return
                self.tick()
                self.screen.flush()
                continue
            leave = False
            for key in decode_keys(chunk):
                if self.handle_key(key):
                    leave = True
                    break
            self.screen.flush()
            if leave:
                return

    def tick(self) -> None:
        """Handle one input timeout."""
        notices = self.tailer.drain_notices()
        for notice in notices:
            if notice.resets_view:
                self.mode = ScrollMode.NONE
                self.search.reset_last_match()
                self.viewport.page_current()
            self.viewport.print_message(notice.message, notice.level)
        if notices:
            return
        tick(self.mode, self.viewport)

    def handle_key(self, key: str) -> bool:
        """Run the command for ``key``; ``True`` ends this file's session."""
        was_moving = in_motion(self.mode)
        self.mode = next_mode(self.mode, key)
        if was_moving and key == cmd.CMD_PAGE_DN_1 and not in_motion(self.mode):
            self._home_cursor()
            return False
        result = self.table.dispatch(key)
        if result is not None:
            return result
        if key.isdigit():
            self.viewport.page_marked(int(key))
        else:
            self._home_cursor()
        return False

    def resize(self) -> None:
        height, width = self.services.terminal_size()
        self.context.height = height
        self.context.width = width
        self.viewport.resize(height, width)
        self.search.reset_last_match()
        self.viewport.render_header()
        if self.mode in (ScrollMode.TAIL, ScrollMode.FOLLOW):
            self.viewport.page_last()
        else:
            self.viewport.page_current()

    def _home_cursor(self) -> None:
        self.screen.move(2, 1)

    def _info(self, message: str, level: MessageLevel = MessageLevel.INFO) -> None:
        self.viewport.print_message(message, level)

    def _prompt(self, label: str) -> tuple[str, bool]:
        text, cancelled = self.services.ask(label)
        self.session.shown_msg = True
        self.viewport.restore_last()
        return text, cancelled

    def _page_up(self) -> None:
        if self.viewport.first_row > 0:
            self.viewport.page_up()
        else:
            self._home_cursor()

    def _half_page_down(self) -> None:
        self.viewport.scroll_down(self.viewport.rows >> 1)

    def _half_page_up(self) -> None:
        self.viewport.scroll_up(self.viewport.rows >> 1)

    def _scroll_down(self) -> None:
        self.viewport.scroll_down(1)

    def _scroll_up(self) -> None:
        self.viewport.scroll_up(1)

    def _shift_left(self) -> None:
        self.viewport.shift_left()

    def _shift_right(self) -> None:
        self.viewport.shift_right()

    def _shift_zero(self) -> None:
        self.viewport.shift_zero()

    def _shift_longest(self) -> None:
        self.viewport.shift_width = self.viewport.shift_longest()
        self.viewport.page_current()

    def _start_of_file(self) -> None:
        self.viewport.shift_width = 0
        self.viewport.print_page(0)

    def _toggle_numbers(self) -> None:
        self.context.numbers = self.viewport.toggle_numbers()

    def _jump(self) -> None:
        text, cancelled = self._prompt("Jump: ")
        if cancelled or not text.strip():
            return
        try:
            lineno = int(text.strip())
        except ValueError:
            self._info("Invalid line number", MessageLevel.WARNING)
            return
        if lineno < 0:
            self._info("Line number must be positive", MessageLevel.WARNING)
            return
        self.viewport.print_page(lineno)

    def _set_mark(self) -> None:
        text, cancelled = self._prompt("Mark: ")
        if cancelled or not text.strip():
            return
        value = text.strip()
        if not (len(value) == 1 and value.isdigit() and self.viewport.set_mark(int(value))):
            self._info("Invalid mark (use 1-9)", MessageLevel.WARNING)
            return
        mark = int(value)
        self._info(f"Mark {mark} at line {self.viewport.marks[mark]}")

    def _report(self, result: SearchResult | None) -> None:
        if result is None:
            return
        if result.message is not None:
            self._info(result.message, result.level)
        elif result.notices:
            self._info(result.notices[-1], MessageLevel.WARNING)

    def _search_prompt(self, forward: bool) -> None:
        self._report(self.search.do_search(forward, self.viewport, self._prompt))

    def _search_again(self, forward: bool) -> None:
        self._report(self.search.search_file(self.search.pattern, forward, True, self.viewport))

    def _toggle_case(self) -> None:
        ignore_case = self.search.toggle_case()
        self.context.ignore_case = ignore_case
        self.viewport.page_current()
        self._info("Search ignores case" if ignore_case else "Search considers case")

    def _print_pattern(self) -> None:
        self._info(self.search.display_pattern or "No search pattern")

    def _clear_pattern(self) -> None:
        self.search.clear()
        self.viewport.page_current()
        self._info("Search pattern cleared")

    def _run_external(self, command: str) -> None:
        logger.info("external command: %s", command)
        self.services.run_filter(command, self.context.height)
        self.resize()

    def _grep(self) -> None:
        if not self.search.pattern:
            self._info("No search pattern")
            return
        missing = self.services.missing_tool("grep", "bash")
        if missing is not None:
            self._info(missing, MessageLevel.WARNING)
            return
        self._run_external(
            grep_command(self.search.pattern, self.session.name, ignore_case=self.search.ignore_case)
        )

    def _format(self) -> None:
        missing = self.services.missing_tool("fmt", "bash")
        if missing is not None:
            self._info(missing, MessageLevel.WARNING)
            return
        self._run_external(
            format_command(self.session.name, self.context.width, from_stdin=self.session.from_stdin)
        )

    def _bash(self) -> None:
        text, cancelled = self._prompt("!")
        text = text.strip()
        if cancelled or not text:
            return
        if len(text) > MAX_COMMAND_LENGTH:
            self._info("Command too long", MessageLevel.ERROR)
            return
        missing = self.services.missing_tool("bash")
        if missing is not None:
            self._info(missing, MessageLevel.WARNING)
            return
        command, self.context.previous_command = expand_shell_command(
            text,
            filename=self.session.name,
            pattern=self.search.pattern,
            previous=self.context.previous_command,
        )
        self._run_external(command)

    def _open_files(self) -> bool:
        text, cancelled = self._prompt("File: ")
        if cancelled or not text.strip():
            return False
        files, warnings = expand_file_arguments(text, self.session.name)
        for warning in warnings:
            self.viewport.timed_message(warning, MessageLevel.WARNING)
        if not files:
            return False
        self.context.pending_files = files
        self.context.save_session = False
        self.context.exit_list = False
        return True

    def _change_directory(self) -> None:
        text, cancelled = self._prompt("Directory: ")
        if cancelled or not text.strip():
            return
        target = expand_directory_argument(text)
        try:
            os.chdir(target)
        except OSError as exc:
            logger.info("chdir to %s failed: %s", target, exc)
            self.services.any_key(f"Cannot chdir to {target} ... [press any key]")
            self.viewport.page_current()
            return
        self._info(os.getcwd())

    def _argument_list(self) -> None:
        names = self.context.file_list or [self.session.name]
        shown = [f"[{name}]" if str(Path(name)) == self.session.name else name for name in names]
        self._info(" ".join(shown))

    def _help(self) -> None:
        drawn = render_help(
            self.screen,
            self.viewport.theme,
            height=self.context.height,
            width=self.context.width,
            version=self.services.version,
        )
        if not drawn:
            self._info("Screen is too small", MessageLevel.WARNING)
            return
        self.services.any_key()
        self.viewport.page_current()

    def _quit(self, *, save: bool, exit_list: bool) -> bool:
        self.context.save_session = save
        self.context.exit_list = exit_list
        return True
