"""Background tailer that grows a line index while the file is browsed."""

from __future__ import annotations

import logging
import os
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from queue import Empty, Queue

from .line_index import LineIndex
from .ui_theme import MessageLevel

logger = logging.getLogger(__name__)

POLL_SECONDS = 1.0
READY_TIMEOUT_SECONDS = 5.0
WAIT_ATTEMPTS = 20
WAIT_INTERVAL_SECONDS = 0.1
WAIT_STABLE_POLLS = 10
WAIT_IDLE_SECONDS = 4.0


@dataclass(frozen=True)
class TailNotice:
    """Status message produced by the tailer thread."""

    message: str
    level: MessageLevel = MessageLevel.WARNING
    resets_view: bool = False


class Tailer:
    """Poll one file and append newly completed lines to its index.

    The thread exits when ``is_current`` turns false (the browsing context
    moved on to another file), when ``stop`` is called, or after the first
    stat/read failure.
    """

    def __init__(
        self,
        index: LineIndex,
        path: Path,
        fd: int,
        *,
        is_current: Callable[[], bool],
        want_lines: int,
        poll_seconds: float = POLL_SECONDS,
    ) -> None:
        self.index = index
        self.path = path
        self.want_lines = want_lines
        self.poll_seconds = poll_seconds
        self.ok = True
        self._fd = fd
        self._reader_fd = fd
        self._stat_path = str(path)
        self._is_current = is_current
        self._ready = threading.Event()
        self._stopped = threading.Event()
        self._notices: Queue[TailNotice] = Queue()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        self._thread = threading.Thread(target=self._run, name="lazybrowse-tailer", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stopped.set()

    @property
    def alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def wait_ready(self, timeout: float = READY_TIMEOUT_SECONDS) -> bool:
        """Block until the first readiness signal; return whether it was positive."""
        if not self._ready.wait(timeout):
            return False
        return self.ok

    def drain_notices(self) -> list[TailNotice]:
        """Return queued notices without blocking."""
        notices: list[TailNotice] = []
        while True:
            try:
                notices.append(self._notices.get_nowait())
            except Empty:
                return notices

    def _should_run(self) -> bool:
        return not self._stopped.is_set() and self._is_current()

    def _signal(self, ok: bool) -> None:
        if self._ready.is_set():
            return
        self.ok = ok
        self._ready.set()

    def _notify(self, notice: TailNotice) -> None:
        self._notices.put(notice)

    def _fail(self, message: str) -> None:
        logger.warning("tailer stopped: %s", message)
        self._notify(TailNotice(message, MessageLevel.ERROR))
        self._signal(False)

    def _on_commit(self, count: int) -> bool:
        if count >= self.want_lines:
            self._signal(True)
        return self._should_run()

    def _rescue(self) -> bool:
        link = f"/proc/self/fd/{self._reader_fd}"
        if self._stat_path == link or not os.path.exists(link):
            self._fail(f"{self.path}: file removed")
            return False
        self._stat_path = link
        logger.info("%s removed, following %s", self.path, link)
        self._notify(TailNotice(f"File removed: reading from {link}"))
        return True

    def poll_once(self) -> bool:
        """Run one stat/read pass; return ``False`` when the tailer should exit."""
        try:
            info = os.stat(self._stat_path)
        except FileNotFoundError:
            return self._rescue()
        except OSError as exc:
            self._fail(f"{self.path}: {exc.strerror}")
            return False

        reason = self.index.detect_truncation(info.st_size, info.st_ino)
        if reason is not None:
            self._notify(TailNotice(reason, resets_view=True))

        if self.index.needs_read(info.st_size):
            try:
                self.index.append_new_data(
                    self._reader_fd,
                    size=info.st_size,
                    inode=info.st_ino,
                    on_commit=self._on_commit,
                )
            except OSError as exc:
                self._fail(f"{self.path}: {exc.strerror}")
                return False
        self._signal(True)
        return True

    def _run(self) -> None:
        logger.debug("tailer started for %s", self.path)
        try:
            self._reader_fd = os.dup(self._fd)
        except OSError as exc:
            self._fail(f"{self.path}: {exc.strerror}")
            return
        try:
            while self._should_run() and self.poll_once():
                self._stopped.wait(self.poll_seconds)
        finally:
            os.close(self._reader_fd)
            self._signal(False)
            logger.debug("tailer exited for %s", self.path)


def wait_for_lines(
    index: LineIndex,
    path: Path,
    target: int,
    *,
    attempts: int = WAIT_ATTEMPTS,
    interval: float = WAIT_INTERVAL_SECONDS,
    stable_polls: int = WAIT_STABLE_POLLS,
    idle_seconds: float = WAIT_IDLE_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.time,
) -> int:
    """Give a slow producer a moment to fill the first page.

    Returns early once ``target`` lines exist, when the file has not been
    modified for ``idle_seconds``, or when the count stays unchanged for
    ``stable_polls`` consecutive polls. Returns the line count seen last.
    """
    previous = -1
    stable = 0
    for _ in range(attempts):
        count = index.line_count
        if count >= target:
            return count
        try:
            modified = os.stat(path).st_mtime
        except OSError:
            return count
        if clock() - modified > idle_seconds:
            return count
        if count == previous:
            stable += 1
            if stable >= stable_polls:
                return count
        else:
            previous = count
            stable = 0
        sleep(interval)
    return index.line_count
