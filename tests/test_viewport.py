"""Tests for viewport paging, incremental scrolling and status messages."""

from __future__ import annotations

import io
import unittest
from pathlib import Path

from lazybrowse.ansi import INDEX, INSERT_LINE, LEFT_TEE, RIGHT_TEE
from lazybrowse.screen import Screen
from lazybrowse.search import SearchEngine
from lazybrowse.state import FileSession
from lazybrowse.ui_theme import DEFAULT_THEME, MessageLevel
from lazybrowse.viewport import MAX_SHIFT, Viewport


class _Index:
    def __init__(self, lines: list[str]) -> None:
        self.lines = ["", *lines]

    @property
    def line_count(self) -> int:
        return len(self.lines)

    def read_line(self, lineno: int) -> str | None:
        if 0 <= lineno < len(self.lines):
            return self.lines[lineno]
        return None

    def append(self, *lines: str) -> None:
        self.lines.extend(lines)


class ViewportTests(unittest.TestCase):
    def _viewport(self, total: int, *, height: int = 24, width: int = 80, **kwargs) -> Viewport:
        self.index = _Index([f"line {n}" for n in range(1, total + 1)])
        self.output: list[str] = []
        self.screen = Screen(self.output.append)
        self.session = FileSession(path=Path("/tmp/notes.txt"), fp=io.BytesIO(), title="notes.txt")
        self.sleeps: list[float] = []
        return Viewport(
            self.index,
            SearchEngine(self.index),
            self.screen,
            self.session,
            height=height,
            width=width,
            sleep=self.sleeps.append,
            **kwargs,
        )

    def _flushed(self) -> str:
        self.screen.flush()
        text = "".join(self.output)
        self.output.clear()
        return text

    def test_page_range_follows_clamped_top(self) -> None:
        view = self._viewport(100)
        view.print_page(0)
        self.assertEqual((view.first_row, view.last_row), (0, 23))
        self.assertFalse(self.session.hit_eof)

        view.print_page(500)
        self.assertEqual(view.first_row, 79)
        self.assertEqual(view.last_row, 102)
        self.assertTrue(self.session.hit_eof)

        view.print_page(-10)
        self.assertEqual(view.first_row, 0)

    def test_last_page_of_thousand_lines(self) -> None:
        view = self._viewport(1000)
        view.print_page(500)
        self.assertEqual(view.first_row, 500)
        view.page_last()
        self.assertEqual(view.first_row, 979)
        self.assertTrue(self.session.shown_eof)
        self.assertIn("EOF", self._flushed())
        view.print_page(0)
        self.assertEqual(view.first_row, 0)

    def test_first_page_draws_start_sentinel(self) -> None:
        view = self._viewport(3)
        view.print_page(0)
        text = self._flushed()
        self.assertIn("SOF", text)
        self.assertIn("line 3", text)
        self.assertIn("EOF", text)

    def test_paging_moves_by_one_screen(self) -> None:
        view = self._viewport(100)
        view.print_page(0)
        view.page_down()
        self.assertEqual(view.first_row, 23)
        view.page_up()
        self.assertEqual(view.first_row, 0)

    def test_small_moves_scroll_incrementally(self) -> None:
        view = self._viewport(100)
        view.print_page(10)
        self._flushed()

        view.print_page(12)
        text = self._flushed()

        self.assertEqual(text.count(INDEX), 2)
        self.assertIn("line 33", text)
        self.assertIn("line 34", text)
        self.assertNotIn("line 20", text)
        self.assertEqual((view.first_row, view.last_row), (12, 35))

        view.print_page(9)
        text = self._flushed()
        self.assertEqual(text.count(INSERT_LINE), 3)
        self.assertEqual((view.first_row, view.last_row), (9, 32))

    def test_scroll_stops_at_both_ends(self) -> None:
        view = self._viewport(5)
        view.print_page(0)
        self.assertEqual(view.scroll_up(3), 0)
        self.assertEqual(view.scroll_down(3), 0)
        self.assertTrue(self.session.hit_eof)

    def test_scroll_down_picks_up_growth_under_eof(self) -> None:
        view = self._viewport(5)
        view.print_page(0)
        self.assertTrue(self.session.shown_eof)
        self._flushed()

        self.index.append("line 6", "line 7")
        moved = view.scroll_down(5)

        self.assertEqual(moved, 2)
        text = self._flushed()
        self.assertIn("line 6", text)
        self.assertIn("line 7", text)
        self.assertTrue(self.session.shown_eof)

    def test_marks_remember_top_line(self) -> None:
        view = self._viewport(200)
        view.print_page(40)
        self.assertTrue(view.set_mark(3))
        view.print_page(120)

        self.assertTrue(view.page_marked(3))
        self.assertEqual(view.first_row, 40)
        self.assertFalse(view.set_mark(0))
        self.assertFalse(view.set_mark(10))
        self.assertFalse(view.page_marked(12))

    def test_shift_stays_within_bounds(self) -> None:
        view = self._viewport(3)
        view.print_page(0)
        self.assertFalse(view.shift_left())
        self.assertFalse(view.shift_zero())

        while view.shift_right():
            self.assertLessEqual(view.shift_width, MAX_SHIFT)
        self.assertEqual(view.shift_width, MAX_SHIFT)

        self.assertTrue(view.shift_left())
        self.assertEqual(view.shift_width, MAX_SHIFT - 4)
        self.assertTrue(view.shift_zero())
        self.assertEqual(view.shift_width, 0)

    def test_shift_longest_rounds_up_to_increment(self) -> None:
        view = self._viewport(0)
        self.index.append("short", "x" * 100)
        view.print_page(0)
        self.assertEqual(view.shift_longest(), 20)

        view.numbers = True
        self.assertEqual(view.shift_longest(), 28)

        self.index.lines[2] = "fits"
        self.assertEqual(view.shift_longest(), 0)

    def test_control_bytes_are_escaped(self) -> None:
        view = self._viewport(0)
        self.index.append("bad\x1b[2Jtext\x07")
        view.print_page(0)
        text = self._flushed()
        self.assertIn("bad\\x1b[2Jtext\\x07", text)
        self.assertNotIn("\x1b[2J", text)

    def test_line_numbers_are_drawn(self) -> None:
        view = self._viewport(3)
        view.toggle_numbers()
        self.assertIn("     2 line 2", self._flushed())

    def test_header_centers_title(self) -> None:
        view = self._viewport(1)
        header = view.header_text()
        self.assertIn("q" * 33 + LEFT_TEE, header)
        self.assertIn(" notes.txt ", header)
        self.assertIn(RIGHT_TEE + "q" * 34, header)

    def test_header_truncates_long_title_from_the_left(self) -> None:
        view = self._viewport(1, width=40)
        self.session.title = "/very/long/" + "d" * 80 + "/tail.log"
        header = view.header_text()
        self.assertIn(" ..." + "d" * 20 + "/tail.log ", header)

    def test_narrow_screen_skips_header(self) -> None:
        view = self._viewport(1, width=10)
        view.render_header()
        self.assertNotIn("notes.txt", self._flushed())

    def test_message_hides_last_row_until_restored(self) -> None:
        view = self._viewport(100)
        view.print_page(0)
        self._flushed()

        view.print_message("Mark 1 at line 0", MessageLevel.WARNING)
        text = self._flushed()
        self.assertIn(DEFAULT_THEME.message_warning + " Mark 1 at line 0 ", text)
        self.assertTrue(self.session.shown_msg)

        view.restore_last()
        self.assertIn("line 22", self._flushed())
        self.assertFalse(self.session.shown_msg)

    def test_timed_message_sleeps_then_restores(self) -> None:
        view = self._viewport(100)
        view.print_page(0)
        view.timed_message("hello", seconds=0.5)
        self.assertEqual(self.sleeps, [0.5])
        self.assertFalse(self.session.shown_msg)

    def test_tail_refresh_repaints_only_on_change(self) -> None:
        view = self._viewport(50)
        self.assertTrue(view.tail_refresh())
        self.assertEqual(view.first_row, 29)
        self.assertFalse(view.tail_refresh())

        self.index.append("line 51")
        self.assertTrue(view.tail_refresh())
        self.assertEqual(view.first_row, 30)

    def test_position_report(self) -> None:
        view = self._viewport(100)
        view.print_page(0)
        self.assertEqual(view.position_report(), '"notes.txt" 100 lines --0.0%--')
        view.page_last()
        self.assertEqual(view.position_report(), '"notes.txt" 100 lines --79.0%--')

    def test_empty_file_reports_zero_percent(self) -> None:
        view = self._viewport(0)
        self.assertEqual(view.position_report(), '"notes.txt" 0 lines --0.0%--')


if __name__ == "__main__":
    unittest.main()
