"""Run a shell command attached to a fresh pseudo-terminal.

The user's terminal is relayed to the child by a background thread while the
caller copies the child's output to the display. Resizes during the run are
forwarded to the child's pty.
"""

from __future__ import annotations

import fcntl
import logging
import os
import pty
import select
import signal
import struct
import subprocess
import termios
import threading

logger = logging.getLogger(__name__)

SHELL = "bash"
RELAY_BYTES = 4096
INPUT_POLL_SECONDS = 0.1
DEFAULT_WINDOW = (24, 80)


def window_size(fd: int) -> tuple[int, int]:
    """Return ``(rows, columns)`` of the terminal behind ``fd``."""
    packed = fcntl.ioctl(fd, termios.TIOCGWINSZ, b"\0" * 8)
    rows, cols, _, _ = struct.unpack("HHHH", packed)
    return rows, cols


def set_window_size(fd: int, rows: int, cols: int) -> None:
    fcntl.ioctl(fd, termios.TIOCSWINSZ, struct.pack("HHHH", rows, cols, 0, 0))


def inherit_window_size(source_fd: int, master_fd: int) -> None:
    try:
        rows, cols = window_size(source_fd)
    except OSError:
        rows, cols = DEFAULT_WINDOW
    set_window_size(master_fd, rows or DEFAULT_WINDOW[0], cols or DEFAULT_WINDOW[1])


def _become_controlling_tty() -> None:
    # runs in the child after setsid(); stdin is the pty slave
    fcntl.ioctl(0, termios.TIOCSCTTY, 0)


def _write_all(fd: int, data: bytes) -> None:
    while data:
        written = os.write(fd, data)
        data = data[written:]


def _relay_input(source_fd: int, master_fd: int, done: threading.Event) -> None:
    while not done.is_set():
        ready, _, _ = select.select([source_fd], [], [], INPUT_POLL_SECONDS)
        if not ready:
            continue
        try:
            data = os.read(source_fd, RELAY_BYTES)
            if not data:
                return
            _write_all(master_fd, data)
        except OSError:
            return


def _relay_output(master_fd: int, out_fd: int) -> None:
    while True:
        try:
            data = os.read(master_fd, RELAY_BYTES)
        except OSError:
            # EIO once every slave descriptor is closed
            return
        if not data:
            return
        _write_all(out_fd, data)


def run_in_pty(command: str, *, tty_fd: int, out_fd: int, shell: str = SHELL) -> int:
    """Run ``command`` with ``shell -c`` in a pty and return its exit status.

    Blocks until the child and everything holding its pty have exited.
    Raises ``OSError`` when the pty or the child cannot be created.
    """
    master_fd, slave_fd = pty.openpty()
    try:
        inherit_window_size(tty_fd, master_fd)
        try:
            process = subprocess.Popen(
                [shell, "-c", command],
                stdin=slave_fd,
                stdout=slave_fd,
                stderr=slave_fd,
                start_new_session=True,
                preexec_fn=_become_controlling_tty,
            )
        finally:
            os.close(slave_fd)
        logger.info("running %r in pty (pid %d)", command, process.pid)

        done = threading.Event()
        relay = threading.Thread(
            target=_relay_input,
            args=(tty_fd, master_fd, done),
            name="lazybrowse-pty-input",
            daemon=True,
        )
        relay.start()
        previous = signal.signal(
            signal.SIGWINCH,
            lambda _signum, _frame: inherit_window_size(tty_fd, master_fd),
        )
        try:
            _relay_output(master_fd, out_fd)
        finally:
            signal.signal(signal.SIGWINCH, previous if previous is not None else signal.SIG_DFL)
            done.set()
            relay.join(INPUT_POLL_SECONDS * 5)
        status = process.wait()
    finally:
        os.close(master_fd)
    logger.info("%r exited with status %d", command, status)
    return status
