"""Process-wide browsing context and per-file session state."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO

from .modes import ScrollMode


@dataclass
class FileSession:
    """One open file and its display flags."""

    path: Path
    fp: BinaryIO
    title: str
    from_stdin: bool = False
    generation: int = 0
    hit_eof: bool = False
    shown_eof: bool = False
    shown_msg: bool = False

    @property
    def name(self) -> str:
        return str(self.path)


@dataclass
class BrowseContext:
    """State shared by every file browsed in one run.

    ``generation`` increases on each file switch; background tailers compare
    it against the value captured at start-up and exit once it moves on.
    """

    file_list: list[str] = field(default_factory=list)
    height: int = 24
    width: int = 80
    generation: int = 0
    title: str = ""
    pattern: str = ""
    ignore_case: bool = False
    numbers: bool = False
    start_mode: ScrollMode = ScrollMode.NONE
    poll_seconds: float = 1.0
    save_session: bool = False
    exit_list: bool = False
    resize_pending: bool = False
    pending_files: list[str] = field(default_factory=list)
    previous_command: str = ""
    current: FileSession | None = None

    def begin_file(self, path: Path, fp: BinaryIO, title: str, *, from_stdin: bool = False) -> FileSession:
        self.generation += 1
        self.save_session = False
        session = FileSession(
            path=path,
            fp=fp,
            title=title,
            from_stdin=from_stdin,
            generation=self.generation,
        )
        self.current = session
        return session

    def end_file(self, session: FileSession) -> None:
        if self.current is session:
            self.generation += 1
            self.current = None

    def is_current(self, generation: int) -> bool:
        return self.generation == generation

    def request_resize(self) -> None:
        self.resize_pending = True

    def take_resize(self) -> bool:
        pending = self.resize_pending
        self.resize_pending = False
        return pending

    def take_pending_files(self) -> list[str]:
        files = self.pending_files
        self.pending_files = []
        return files
