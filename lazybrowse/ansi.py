"""ANSI control sequences and text shaping helpers for the pager display.

The display is a header row plus a scroll region covering rows 2..height.
Line drawing uses the DEC special graphics character set.
"""

from __future__ import annotations

import re

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b-\x1f\x7f-\x9f]")

CLEAR_SCREEN = "\x1b[0J"
CLEAR_LINE = "\x1b[0K"
RESET_REGION = "\x1b[r"
INSERT_LINE = "\x1b[1L"
INDEX = "\x1bD"
LINE_WRAP_OFF = "\x1b[?7l"
LINE_WRAP_ON = "\x1b[?7h"

ENTER_GRAPHICS = "\x1b(0"
EXIT_GRAPHICS = "\x1b(B"
HORIZ_LINE = "q"
VERT_LINE = "x"
LEFT_TEE = "u"
RIGHT_TEE = "t"
UPPER_LEFT = "l"
UPPER_RIGHT = "k"
LOWER_LEFT = "m"
LOWER_RIGHT = "j"


def cursor_position(row: int, col: int) -> str:
    """Return the CUP sequence for 1-based ``row``/``col``."""
    return f"\x1b[{max(1, row)};{max(1, col)}H"


def scroll_region(top: int, bottom: int) -> str:
    """Return the DECSTBM sequence limiting scrolling to ``top..bottom``."""
    return f"\x1b[{top};{bottom}r"


def sanitize_terminal_text(text: str) -> str:
    """Escape control bytes so file content cannot move the cursor or ring the bell.

    Tabs and carriage returns are already mapped by the line index; anything
    else in C0, DEL or C1 is shown as ``\\xNN``.
    """
    if _CONTROL_RE.search(text) is None:
        return text
    return _CONTROL_RE.sub(lambda match: f"\\x{ord(match.group(0)):02x}", text)
