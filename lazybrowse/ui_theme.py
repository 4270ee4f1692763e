"""UI theme definitions and selection helpers.

Themes are ANSI palettes for the header, search highlights, status messages
and the help box. ``plain`` disables color entirely.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class UITheme:
    """Semantic ANSI palette used by renderers."""

    name: str
    reset: str
    blink: str
    header_title: str
    match: str
    off_screen_match: str
    message_info: str
    message_warning: str
    message_error: str
    help_box: str


DEFAULT_THEME = UITheme(
    name="default",
    reset="\033[0m",
    blink="\033[5m",
    header_title="\033[1m\033[7m",
    match="\033[1m\033[38;5;46m",
    off_screen_match="\033[48;5;236m",
    message_info="\033[1m\033[38;5;16m\033[48;5;46m",
    message_warning="\033[1m\033[38;5;16m\033[48;5;208m",
    message_error="\033[1m\033[38;5;15m\033[48;5;160m",
    help_box="\033[38;5;15m\033[48;5;21m",
)

OCEAN_THEME = UITheme(
    name="ocean",
    reset="\033[0m",
    blink="\033[5m",
    header_title="\033[1m\033[38;5;16m\033[48;5;45m",
    match="\033[1m\033[38;5;81m",
    off_screen_match="\033[48;5;17m",
    message_info="\033[1m\033[38;5;16m\033[48;5;39m",
    message_warning="\033[1m\033[38;5;16m\033[48;5;215m",
    message_error="\033[1m\033[38;5;15m\033[48;5;124m",
    help_box="\033[38;5;153m\033[48;5;24m",
)

PLAIN_THEME = UITheme(
    name="plain",
    reset="",
    blink="",
    header_title="",
    match="",
    off_screen_match="",
    message_info="",
    message_warning="",
    message_error="",
    help_box="",
)

_THEMES: dict[str, UITheme] = {
    DEFAULT_THEME.name: DEFAULT_THEME,
    OCEAN_THEME.name: OCEAN_THEME,
}


def available_theme_names() -> tuple[str, ...]:
    """Return selectable non-plain theme names."""
    return tuple(sorted(_THEMES.keys()))


def resolve_theme(name: str | None, *, no_color: bool = False) -> UITheme:
    """Return concrete theme for requested name and color mode.

    Unknown or empty names fall back to the default palette.
    """
    if no_color:
        return PLAIN_THEME
    candidate = (name or "").strip().lower()
    return _THEMES.get(candidate, DEFAULT_THEME)


class MessageLevel(Enum):
    """Severity of a status-line message."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


def message_style(theme: UITheme, level: MessageLevel) -> str:
    """Return the status-line color for ``level``."""
    if level is MessageLevel.ERROR:
        return theme.message_error
    if level is MessageLevel.WARNING:
        return theme.message_warning
    return theme.message_info


__all__ = [
    "MessageLevel",
    "message_style",
    "UITheme",
    "DEFAULT_THEME",
    "OCEAN_THEME",
    "PLAIN_THEME",
    "available_theme_names",
    "resolve_theme",
]
