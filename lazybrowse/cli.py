"""Command-line front door for lazybrowse.

Parses options, restores the saved session when no file is named, and runs
the pager on the controlling terminal. ``main`` is the one place where
unexpected errors are caught and the terminal is put back in order.
"""

from __future__ import annotations

import argparse
import logging
import os
import signal
import sys
from collections.abc import Sequence

from . import __version__
from .browse import STDIN_TITLE, FileBrowser, StdinSpool
from .config import load_ignore_case, load_numbers, load_poll_seconds, load_session, load_theme_name
from .dispatcher import never_ended
from .errors import PatternError
from .modes import ScrollMode
from .screen import Screen
from .search import SearchEngine
from .state import BrowseContext
from .terminal import TerminalController
from .ui_theme import available_theme_names, resolve_theme

logger = logging.getLogger(__name__)

LOG_ENV_VAR = "LAZYBROWSE_LOG"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
TTY_PATH = "/dev/tty"
EXIT_SIGNALS = (signal.SIGTERM, signal.SIGHUP, signal.SIGQUIT)
STDIN_WAIT_SECONDS = 1.0


def _positive_float(value: str) -> float:
    """argparse type for positive numbers."""
    try:
        parsed = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be > 0")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lazybrowse",
        description="Page through growing text files with live tailing and regex search.",
    )
    parser.add_argument("files", nargs="*", help="Files to browse. Reads stdin when it is not a terminal.")
    parser.add_argument("-f", "--follow", action="store_true", help="Start in follow mode.")
    parser.add_argument("-F", "--tail", action="store_true", help="Start in tail mode (wins over --follow).")
    parser.add_argument("-i", "--ignore-case", action="store_true", help="Case-insensitive search.")
    parser.add_argument("-n", "--numbers", action="store_true", help="Show line numbers.")
    parser.add_argument("-p", "--pattern", default=None, help="Initial search pattern.")
    parser.add_argument("-t", "--title", default=None, help="Header title.")
    parser.add_argument("-v", "--version", action="store_true", help="Print version and exit.")
    parser.add_argument(
        "--theme",
        default=None,
        help=f"UI theme name ({', '.join(available_theme_names())}).",
    )
    parser.add_argument("--no-color", action="store_true", help="Disable color output.")
    parser.add_argument(
        "--poll-seconds",
        type=_positive_float,
        default=None,
        help="Seconds between checks for new data (default: 1).",
    )
    parser.add_argument("--log-file", default=None, help=f"Write debug log to this file (or set ${LOG_ENV_VAR}).")
    return parser


def configure_logging(log_file: str | None) -> logging.Handler:
    """Send package logs to a file, or nowhere; never to the terminal."""
    target = log_file or os.environ.get(LOG_ENV_VAR)
    package_logger = logging.getLogger("lazybrowse")
    for existing in list(package_logger.handlers):
        package_logger.removeHandler(existing)
    handler: logging.Handler
    if target:
        handler = logging.FileHandler(target, encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.setLevel(logging.DEBUG)
    else:
        handler = logging.NullHandler()
    package_logger.addHandler(handler)
    package_logger.propagate = False
    return handler


def _exit_on_signal(signum: int, _frame: object) -> None:
    raise SystemExit(128 + signum)


def install_signal_handlers(context: BrowseContext) -> dict[int, object]:
    """Route resizes to ``context`` and turn termination signals into ``SystemExit``."""
    previous: dict[int, object] = {}
    previous[signal.SIGWINCH] = signal.signal(signal.SIGWINCH, lambda _signum, _frame: context.request_resize())
    for signum in EXIT_SIGNALS:
        previous[signum] = signal.signal(signum, _exit_on_signal)
    return previous


def restore_signal_handlers(previous: dict[int, object]) -> None:
    for signum, handler in previous.items():
        signal.signal(signum, handler if handler is not None else signal.SIG_DFL)


def _start_mode(args: argparse.Namespace) -> ScrollMode:
    if args.tail:
        return ScrollMode.TAIL
    if args.follow:
        return ScrollMode.FOLLOW
    return ScrollMode.NONE


def main(argv: Sequence[str] | None = None) -> int:
    """Parse CLI arguments and browse the named files, stdin or the saved session."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.version:
        print(f"lazybrowse: version {__version__}")
        return 0
    configure_logging(args.log_file)

    from_stdin = not sys.stdin.isatty()
    saved = None
    if not from_stdin and not args.files:
        saved = load_session()
        if saved is None:
            parser.print_usage(sys.stderr)
            return 1

    theme = resolve_theme(args.theme or load_theme_name(), no_color=args.no_color)
    context = BrowseContext(
        title=args.title or "",
        pattern=args.pattern or (saved.pattern if saved is not None else ""),
        ignore_case=args.ignore_case or load_ignore_case(),
        numbers=args.numbers or load_numbers(),
        start_mode=_start_mode(args),
        poll_seconds=args.poll_seconds or load_poll_seconds(),
    )
    search = SearchEngine(theme=theme, ignore_case=context.ignore_case)
    if context.pattern:
        try:
            search.compile(context.pattern)
        except PatternError as exc:
            if args.pattern:
                parser.error(f"bad pattern: {exc}")
            logger.info("ignoring saved pattern: %s", exc)

    os.umask(0o077)
    try:
        tty_fd = os.open(TTY_PATH, os.O_RDWR)
    except OSError as exc:
        print(f"lazybrowse: cannot open {TTY_PATH}: {exc.strerror}", file=sys.stderr)
        return 1

    spool: StdinSpool | None = None
    previous_handlers: dict[int, object] = {}
    status = 0
    try:
        terminal = TerminalController(tty_fd, tty_fd)
        context.height, context.width = terminal.size()
        screen = Screen(terminal.write)
        if from_stdin:
            spool = StdinSpool(sys.stdin.buffer)
            spool.start()
            if not spool.wait_for_data(STDIN_WAIT_SECONDS):
                return 0
        browser = FileBrowser(
            context,
            terminal,
            screen,
            search,
            theme=theme,
            version=__version__,
            input_ended=spool.ended_empty if spool is not None else never_ended,
        )
        previous_handlers = install_signal_handlers(context)
        with terminal.browser_mode():
            if spool is not None:
                browser.browse_path(str(spool.path), context.title or STDIN_TITLE, from_stdin=True)
            elif saved is not None:
                browser.browse_path(
                    saved.path,
                    saved.title or saved.path,
                    top=saved.top,
                    marks=saved.marks,
                )
            else:
                browser.browse_list(args.files, toplevel=True)
    except KeyboardInterrupt:
        status = 130
    except Exception:
        logger.exception("fatal error")
        print("lazybrowse: fatal error (set LAZYBROWSE_LOG for details)", file=sys.stderr)
        status = 1
    finally:
        restore_signal_handlers(previous_handlers)
        if spool is not None:
            spool.remove()
        os.close(tty_fd)
    return status


if __name__ == "__main__":
    sys.exit(main())
