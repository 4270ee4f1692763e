"""File-name handling for browsing lists.

Supports ``%`` for the current file (``\\%`` is a literal percent), home
directory expansion, quoted fields and glob expansion.
"""

from __future__ import annotations

import glob
import os
import shlex

GLOB_CHARS = frozenset("*?[")


def substitute_marker(text: str, marker: str, value: str) -> str:
    """Replace every unescaped ``marker`` in ``text`` with ``value``.

    A backslash before the marker keeps the marker itself.
    """
    pieces: list[str] = []
    index = 0
    while index < len(text):
        char = text[index]
        if char == "\\" and text[index + 1 : index + 2] == marker:
            pieces.append(marker)
            index += 2
            continue
        pieces.append(value if char == marker else char)
        index += 1
    return "".join(pieces)


def expand_home(text: str) -> str:
    """Expand a leading ``~`` or ``~user``."""
    return os.path.expanduser(text)


def split_fields(text: str) -> list[str]:
    """Split on whitespace honoring single and double quotes."""
    lexer = shlex.shlex(text, posix=True)
    lexer.whitespace_split = True
    lexer.commenters = ""
    lexer.escape = ""
    try:
        return list(lexer)
    except ValueError:
        return text.split()


def has_glob(token: str) -> bool:
    return any(char in GLOB_CHARS for char in token)


def expand_file_arguments(text: str, current: str) -> tuple[list[str], list[str]]:
    """Turn typed input into file names.

    Returns ``(files, warnings)``; warnings name glob tokens that matched
    nothing.
    """
    files: list[str] = []
    warnings: list[str] = []
    for token in split_fields(substitute_marker(text.strip(), "%", current)):
        token = expand_home(token)
        if has_glob(token):
            matches = sorted(glob.glob(token))
            if not matches:
                warnings.append(f"No files match pattern: {token}")
                continue
            files.extend(matches)
        else:
            files.append(token)
    return files, warnings


def expand_directory_argument(text: str) -> str:
    """Unquote and home-expand a directory name typed at a prompt."""
    return expand_home(" ".join(split_fields(text.strip())))
