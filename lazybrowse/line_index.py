"""Append-only line index over a growing file.

Line 0 is the start-of-file sentinel. ``line_count`` counts it, so a file
with three complete lines has ``line_count == 4`` and the end-of-file
sentinel row sits at index ``line_count``.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)

MAX_LINE_BYTES = 1024
TAB_WIDTH = 4
EXPANDED_LINE_CAP = 2 * MAX_LINE_BYTES
READ_CHUNK_BYTES = 1 << 16


def expand_line(data: bytes) -> str:
    """Map CR to a space, expand tabs to 4-column stops and decode as UTF-8."""
    if b"\r" in data:
        data = data.replace(b"\r", b" ")
    if b"\t" in data:
        data = data.expandtabs(TAB_WIDTH)
    return data[:EXPANDED_LINE_CAP].decode("utf-8", errors="replace")


class LineIndex:
    """Offsets and capped lengths of every complete line seen so far.

    All table access goes through ``_lock``; file reads happen outside it.
    """

    def __init__(self, fd: int, *, max_line_bytes: int = MAX_LINE_BYTES) -> None:
        self._fd = fd
        self.max_line_bytes = max_line_bytes
        self._lock = threading.Lock()
        self._offsets: list[int] = [0]
        self._lengths: list[int] = [0]
        self._bytes_read = 0
        self._saved_size = 0
        self._saved_inode = 0
        self._scanned = False

    @property
    def line_count(self) -> int:
        with self._lock:
            return len(self._offsets)

    def lookup(self, lineno: int) -> tuple[int, int] | None:
        """Return ``(offset, length)`` for ``lineno`` or ``None`` when not indexed."""
        with self._lock:
            if lineno < 0 or lineno >= len(self._offsets):
                return None
            return self._offsets[lineno], self._lengths[lineno]

    def read_line(self, lineno: int) -> str | None:
        """Return expanded text of ``lineno``; ``None`` when unavailable."""
        entry = self.lookup(lineno)
        if entry is None:
            return None
        offset, length = entry
        if length == 0:
            return ""
        try:
            data = os.pread(self._fd, length, offset)
        except OSError as exc:
            logger.debug("read of line %d failed: %s", lineno, exc)
            return None
        return expand_line(data)

    def detect_truncation(self, size: int, inode: int) -> str | None:
        """Reset the index when the file shrank or was replaced.

        Returns the notice to show, or ``None`` when nothing changed.
        """
        with self._lock:
            if self._saved_inode and inode and inode != self._saved_inode:
                reason = "File replaced"
            elif size < self._saved_size or size < self._bytes_read:
                reason = "File truncated"
            else:
                return None
            self._reset_locked()
            self._saved_inode = inode
        logger.info("%s: index reset", reason)
        return reason

    def needs_read(self, size: int) -> bool:
        with self._lock:
            return not self._scanned or size > self._saved_size

    def _reset_locked(self) -> None:
        self._offsets = [0]
        self._lengths = [0]
        self._bytes_read = 0
        self._saved_size = 0
        self._scanned = False

    def append_new_data(
        self,
        fd: int | None = None,
        *,
        size: int | None = None,
        inode: int | None = None,
        on_commit: Callable[[int], bool] | None = None,
    ) -> int:
        """Index complete lines written since the last pass.

        A trailing partial line is left for the next pass. ``on_commit`` is
        called with the new line count after each chunk and may return
        ``False`` to stop early. Returns the number of lines added.
        """
        read_fd = self._fd if fd is None else fd
        with self._lock:
            line_start = self._bytes_read
        position = line_start
        cap = self.max_line_bytes
        added = 0
        exhausted = False
        while True:
            chunk = os.pread(read_fd, READ_CHUNK_BYTES, position)
            if not chunk:
                exhausted = True
                break
            offsets: list[int] = []
            lengths: list[int] = []
            newline = chunk.find(b"\n")
            while newline >= 0:
                end = position + newline
                offsets.append(line_start)
                lengths.append(min(end - line_start, cap))
                line_start = end + 1
                newline = chunk.find(b"\n", newline + 1)
            position += len(chunk)
            if not offsets:
                continue
            with self._lock:
                self._offsets.extend(offsets)
                self._lengths.extend(lengths)
                self._bytes_read = line_start
                count = len(self._offsets)
            added += len(offsets)
            if on_commit is not None and not on_commit(count):
                break
        if not exhausted:
            return added
        with self._lock:
            self._scanned = True
            if size is not None:
                self._saved_size = size
            if inode:
                self._saved_inode = inode
        return added
