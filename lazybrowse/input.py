"""Keyboard input for the dispatcher.

The terminal is read in chunks of up to four bytes. Escape sequences for
arrows, Home/End and PgUp/PgDn become single command keys before anything
else looks at them.
"""

from __future__ import annotations

import os
import select

from .commands import (
    CMD_MODE_DN,
    CMD_MODE_FOLLOW,
    CMD_MODE_UP,
    CMD_PAGE_DN,
    CMD_PAGE_UP,
    CMD_SCROLL_DN,
    CMD_SCROLL_UP,
    CMD_SOF,
)

KEY_TIMEOUT_MS = 100
CHUNK_BYTES = 4

VIRTUAL_KEYS: dict[bytes, str] = {
    b"\x1b[A": CMD_MODE_UP,
    b"\x1bOA": CMD_MODE_UP,
    b"\x1b[B": CMD_MODE_DN,
    b"\x1bOB": CMD_MODE_DN,
    b"\x1b[C": CMD_SCROLL_DN,
    b"\x1bOC": CMD_SCROLL_DN,
    b"\x1b[D": CMD_SCROLL_UP,
    b"\x1bOD": CMD_SCROLL_UP,
    b"\x1b[H": CMD_SOF,
    b"\x1bOH": CMD_SOF,
    b"\x1b[1~": CMD_SOF,
    b"\x1b[F": CMD_MODE_FOLLOW,
    b"\x1bOF": CMD_MODE_FOLLOW,
    b"\x1b[4~": CMD_MODE_FOLLOW,
    b"\x1b[5~": CMD_PAGE_UP,
    b"\x1b[6~": CMD_PAGE_DN,
}


def read_chunk(fd: int, timeout_ms: int | None = KEY_TIMEOUT_MS) -> bytes:
    """Return up to four bytes from ``fd``; empty on timeout.

    ``timeout_ms=None`` blocks until input arrives.
    """
    if timeout_ms is not None:
        ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
        if not ready:
            return b""
    return os.read(fd, CHUNK_BYTES)


def decode_keys(chunk: bytes) -> list[str]:
    """Translate one chunk into command keys.

    An escape sequence yields at most one key; unknown sequences yield none.
    Plain bytes typed ahead in the same chunk are each their own key.
    """
    if not chunk:
        return []
    if chunk.startswith(b"\x1b"):
        key = VIRTUAL_KEYS.get(chunk)
        if key is not None:
            return [key]
        return ["\x1b"] if chunk == b"\x1b" else []
    return [chr(byte) for byte in chunk]
