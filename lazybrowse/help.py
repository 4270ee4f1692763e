"""Boxed help screen."""

from __future__ import annotations

from .ansi import (
    ENTER_GRAPHICS,
    EXIT_GRAPHICS,
    HORIZ_LINE,
    LOWER_LEFT,
    LOWER_RIGHT,
    UPPER_LEFT,
    UPPER_RIGHT,
    VERT_LINE,
)
from .screen import Screen
from .ui_theme import UITheme

HELP_ROWS: tuple[tuple[str, str], ...] = (
    ("f b [PGUP] [PGDN] [SPACE]", "Page forward/back"),
    ("^F ^D z  ^B ^U Z", "Half page forward/back"),
    ("+ - [LEFT] [RIGHT] [ENTER]", "Scroll one line"),
    ("u d [UP] [DOWN]", "Continuous scroll mode"),
    ("t  e [END]", "Tail / follow mode"),
    ("< > ^ $", "Horizontal scroll"),
    ("0 [HOME]  G  j", "SOF, EOF, jump to line"),
    ("#", "Line numbers"),
    ("m  1-9", "Set mark, jump to mark"),
    ("/ ?  n N", "Regex search, repeat"),
    ("i  p  P", "Case, show, clear pattern"),
    ("&  w  !", "grep, fmt, bash command"),
    ("B  a", "Open file(s), file list"),
    ("c  C", "Show, change directory"),
    ("% ^G", "Position in file"),
    ("q Q  x X", "Quit / exit list (caps: no save)"),
)

KEY_COLUMN = 30


def help_lines(version: str) -> list[str]:
    lines = ["", f"   lazybrowse {version}", "", f"   {'Command':<{KEY_COLUMN}}Function"]
    lines.extend(f"   {keys:<{KEY_COLUMN}}{action}" for keys, action in HELP_ROWS)
    lines.extend(("", "   Press any key to continue browsing...", ""))
    width = max(len(line) for line in lines) + 3
    return [line.ljust(width) for line in lines]


def render_help(screen: Screen, theme: UITheme, *, height: int, width: int, version: str) -> bool:
    """Draw the help box centered on the display; ``False`` when it does not fit."""
    lines = help_lines(version)
    box_height = len(lines)
    box_width = len(lines[0])
    if height < box_height + 4 or width < box_width + 2:
        return False

    col = max(1, (width - box_width) // 2)
    screen.write(theme.help_box)
    screen.move(3, col)
    screen.write(ENTER_GRAPHICS, UPPER_LEFT, HORIZ_LINE * box_width, UPPER_RIGHT, EXIT_GRAPHICS)
    for offset, line in enumerate(lines):
        screen.move(offset + 4, col)
        screen.write(ENTER_GRAPHICS, VERT_LINE, EXIT_GRAPHICS, line, ENTER_GRAPHICS, VERT_LINE, EXIT_GRAPHICS)
    screen.move(box_height + 4, col)
    screen.write(ENTER_GRAPHICS, LOWER_LEFT, HORIZ_LINE * box_width, LOWER_RIGHT, EXIT_GRAPHICS, theme.reset)
    return True
