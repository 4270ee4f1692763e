"""Persistent preferences and the saved browsing session.

Preferences live in ``config.json``; the session file holds five
newline-delimited fields: path, top line, pattern, nine mark line numbers
and title. Missing or malformed files fall back to defaults.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_config_dir

logger = logging.getLogger(__name__)

APP_NAME = "lazybrowse"
CONFIG_FILENAME = "config.json"
SESSION_FILENAME = "session"
CONFIG_DIR = Path(user_config_dir(APP_NAME, appauthor=False))
CONFIG_PATH = CONFIG_DIR / CONFIG_FILENAME
SESSION_PATH = CONFIG_DIR / SESSION_FILENAME
SESSION_MARKS = 9
DEFAULT_POLL_SECONDS = 1.0


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except Exception:
        return {}
    return data if isinstance(data, dict) else {}


def _load_bool(key: str) -> bool:
    value = load_config().get(key)
    return value if isinstance(value, bool) else False


def load_ignore_case() -> bool:
    return _load_bool("ignore_case")


def load_numbers() -> bool:
    return _load_bool("numbers")


def load_poll_seconds() -> float:
    """Return the tailer poll interval; only positive numbers are accepted."""
    value = load_config().get("poll_seconds")
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        return DEFAULT_POLL_SECONDS
    return float(value)


def load_theme_name() -> str | None:
    value = load_config().get("theme")
    return value if isinstance(value, str) else None


@dataclass(frozen=True)
class SavedSession:
    """Where browsing stopped last time."""

    path: str
    top: int = 0
    pattern: str = ""
    marks: tuple[int, ...] = ()
    title: str = ""


def _parse_int(text: str) -> int:
    try:
        return max(0, int(text.strip()))
    except ValueError:
        return 0


def parse_session(text: str) -> SavedSession | None:
    """Parse session file contents; fewer than five lines is fine."""
    lines = text.splitlines()
    if not lines or not lines[0].strip():
        return None
    fields = lines + [""] * (5 - len(lines))
    marks = tuple(_parse_int(value) for value in fields[3].split()[:SESSION_MARKS])
    return SavedSession(
        path=fields[0].strip(),
        top=_parse_int(fields[1]),
        pattern=fields[2],
        marks=marks,
        title=fields[4],
    )


def format_session(session: SavedSession) -> str:
    marks = list(session.marks[:SESSION_MARKS])
    marks.extend([0] * (SESSION_MARKS - len(marks)))
    return "\n".join(
        (
            session.path,
            str(session.top),
            session.pattern,
            " ".join(str(mark) for mark in marks),
            session.title,
        )
    ) + "\n"


def load_session() -> SavedSession | None:
    try:
        text = SESSION_PATH.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError as exc:
        logger.warning("cannot read session %s: %s", SESSION_PATH, exc)
        return None
    return parse_session(text)


def save_session(session: SavedSession) -> bool:
    """Write the session file with owner-only permissions."""
    try:
        SESSION_PATH.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(SESSION_PATH, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(format_session(session))
    except OSError as exc:
        logger.warning("cannot write session %s: %s", SESSION_PATH, exc)
        return False
    return True
