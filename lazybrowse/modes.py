"""Autonomous scroll modes driven by input timeouts."""

from __future__ import annotations

from enum import Enum
from typing import Protocol

from .commands import (
    CMD_MODE_DN,
    CMD_MODE_FOLLOW,
    CMD_MODE_TAIL,
    CMD_MODE_UP,
    CMD_PERCENT,
    CMD_PERCENT_1,
)

CONTINUOUS_SCROLL_LINES = 2


class ScrollMode(Enum):
    NONE = "none"
    CONTINUOUS_UP = "continuous-up"
    CONTINUOUS_DOWN = "continuous-down"
    TAIL = "tail"
    FOLLOW = "follow"


MODE_KEYS: dict[str, ScrollMode] = {
    CMD_MODE_UP: ScrollMode.CONTINUOUS_UP,
    CMD_MODE_DN: ScrollMode.CONTINUOUS_DOWN,
    CMD_MODE_TAIL: ScrollMode.TAIL,
    CMD_MODE_FOLLOW: ScrollMode.FOLLOW,
}

# Position reports leave the active mode running.
CONTINUE_MODE_KEYS = frozenset({CMD_PERCENT, CMD_PERCENT_1})


class ScrollTarget(Protocol):
    def scroll_up(self, count: int) -> int: ...

    def scroll_down(self, count: int) -> int: ...

    def tail_refresh(self) -> bool: ...


def next_mode(mode: ScrollMode, key: str) -> ScrollMode:
    """Return the mode in effect after ``key`` is pressed in ``mode``."""
    target = MODE_KEYS.get(key)
    if target is not None:
        return ScrollMode.NONE if mode is target else target
    if key in CONTINUE_MODE_KEYS:
        return mode
    return ScrollMode.NONE


def in_motion(mode: ScrollMode) -> bool:
    return mode is not ScrollMode.NONE


def tick(mode: ScrollMode, view: ScrollTarget) -> None:
    """Advance ``view`` by one timeout step of ``mode``."""
    if mode is ScrollMode.CONTINUOUS_UP:
        view.scroll_up(CONTINUOUS_SCROLL_LINES)
    elif mode is ScrollMode.CONTINUOUS_DOWN or mode is ScrollMode.FOLLOW:
        view.scroll_down(CONTINUOUS_SCROLL_LINES)
    elif mode is ScrollMode.TAIL:
        view.tail_refresh()
