"""Single-character command keys understood by the dispatcher."""

from __future__ import annotations

CMD_PAGE_DN = "f"
CMD_PAGE_DN_1 = " "
CMD_PAGE_UP = "b"
CMD_HALF_PAGE_DN = "\x06"
CMD_HALF_PAGE_DN_1 = "\x04"
CMD_HALF_PAGE_DN_2 = "z"
CMD_HALF_PAGE_UP = "\x02"
CMD_HALF_PAGE_UP_1 = "\x15"
CMD_HALF_PAGE_UP_2 = "Z"
CMD_SCROLL_DN = "+"
CMD_SCROLL_DN_1 = "\r"
CMD_SCROLL_DN_2 = "\n"
CMD_SCROLL_UP = "-"
CMD_SHIFT_LEFT = "<"
CMD_SHIFT_LEFT_1 = "\x08"
CMD_SHIFT_LEFT_2 = "\x7f"
CMD_SHIFT_RIGHT = ">"
CMD_SHIFT_RIGHT_1 = "\t"
CMD_SHIFT_ZERO = "^"
CMD_SHIFT_LONGEST = "$"
CMD_SOF = "0"
CMD_EOF = "G"
CMD_JUMP = "j"
CMD_NUMBERS = "#"
CMD_MODE_UP = "u"
CMD_MODE_DN = "d"
CMD_MODE_TAIL = "t"
CMD_MODE_FOLLOW = "e"
CMD_MARK = "m"
CMD_SEARCH_FWD = "/"
CMD_SEARCH_REV = "?"
CMD_SEARCH_NEXT = "n"
CMD_SEARCH_NEXT_REV = "N"
CMD_SEARCH_IGN_CASE = "i"
CMD_SEARCH_PRINT = "p"
CMD_SEARCH_CLEAR = "P"
CMD_GREP = "&"
CMD_FORMAT = "w"
CMD_BASH = "!"
CMD_NEWFILE = "B"
CMD_PRINTDIR = "c"
CMD_NEWDIR = "C"
CMD_ARGLIST = "a"
CMD_PERCENT = "%"
CMD_PERCENT_1 = "\x07"
CMD_HELP = "h"
CMD_QUIT = "q"
CMD_QUIT_NO_SAVE = "Q"
CMD_EXIT = "x"
CMD_EXIT_NO_SAVE = "X"
