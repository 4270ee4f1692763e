"""Tests for the command dispatcher and its interaction with scroll modes."""

from __future__ import annotations

import io
import os
import tempfile
import unittest
from dataclasses import replace
from pathlib import Path
from unittest import mock

from lazybrowse.dispatcher import CommandBinding, CommandTable, Dispatcher, DispatcherServices
from lazybrowse.modes import ScrollMode
from lazybrowse.screen import Screen
from lazybrowse.search import SearchEngine
from lazybrowse.state import BrowseContext
from lazybrowse.tailer import TailNotice
from lazybrowse.viewport import Viewport


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


class _Tailer:
    def __init__(self) -> None:
        self.notices: list[TailNotice] = []

    def drain_notices(self) -> list[TailNotice]:
        notices, self.notices = self.notices, []
        return notices


class CommandTableTests(unittest.TestCase):
    def test_dispatch_reports_bound_and_unbound_keys(self) -> None:
        calls: list[str] = []
        table = CommandTable().register(
            CommandBinding(("a", "b"), lambda: calls.append("ab")),
            CommandBinding(("q",), lambda: True),
        )
        self.assertIn("a", table)
        self.assertNotIn("z", table)
        self.assertFalse(table.dispatch("b"))
        self.assertTrue(table.dispatch("q"))
        self.assertIsNone(table.dispatch("z"))
        self.assertEqual(calls, ["ab"])


class DispatcherTests(unittest.TestCase):
    def setUp(self) -> None:
        self.context = BrowseContext(height=24, width=80)
        self.index = _Index([f"line {n}" for n in range(1, 101)])
        self.output: list[str] = []
        self.screen = Screen(self.output.append)
        self.session = self.context.begin_file(Path("/tmp/notes.txt"), io.BytesIO(), "notes.txt")
        self.search = SearchEngine(self.index)
        self.viewport = Viewport(
            self.index,
            self.search,
            self.screen,
            self.session,
            height=24,
            width=80,
            sleep=lambda seconds: None,
        )
        self.tailer = _Tailer()
        self.answers: list[str] = []
        self.read = mock.Mock(return_value=b"q")
        self.any_key = mock.Mock(return_value=b" ")
        self.run_filter = mock.Mock(return_value=0)
        self.missing_tool = mock.Mock(return_value=None)
        self.terminal_size = mock.Mock(return_value=(24, 80))
        services = DispatcherServices(
            read=self.read,
            ask=self._ask,
            any_key=self.any_key,
            run_filter=self.run_filter,
            missing_tool=self.missing_tool,
            terminal_size=self.terminal_size,
            version="0.1.0",
        )
        self.dispatcher = Dispatcher(
            self.context,
            self.session,
            self.viewport,
            self.search,
            self.tailer,
            self.screen,
            services,
        )
        self.viewport.print_page(0)

    def _ask(self, prompt: str) -> tuple[str, bool]:
        if not self.answers:
            return "", True
        return self.answers.pop(0), False

    def _flushed(self) -> str:
        self.screen.flush()
        text = "".join(self.output)
        self.output.clear()
        return text

    def test_quit_keys_set_session_flags(self) -> None:
        expected = {"q": (True, False), "Q": (False, False), "x": (True, True), "X": (False, True)}
        for key, (save, exit_list) in expected.items():
            with self.subTest(key=key):
                self.assertTrue(self.dispatcher.handle_key(key))
                self.assertEqual(self.context.save_session, save)
                self.assertEqual(self.context.exit_list, exit_list)

    def test_run_processes_keys_until_quit(self) -> None:
        self.read.side_effect = [b"f", b"", b"f", b"q"]
        self.dispatcher.run()
        self.assertEqual(self.viewport.first_row, 46)
        self.assertTrue(self.context.save_session)

    def test_type_ahead_stops_at_quit(self) -> None:
        self.read.side_effect = [b"fqf"]
        self.dispatcher.run()
        self.assertEqual(self.viewport.first_row, 23)

    def test_timeout_advances_continuous_mode(self) -> None:
        self.read.side_effect = [b"d", b"", b"", b"q"]
        self.dispatcher.run()
        self.assertEqual(self.viewport.first_row, 4)

    def test_stdin_closed_without_data_leaves_the_list(self) -> None:
        self.session.from_stdin = True
        self.dispatcher.services = replace(self.dispatcher.services, input_ended=lambda: True)
        self.read.side_effect = [b""]

        self.dispatcher.run()

        self.assertFalse(self.context.save_session)
        self.assertTrue(self.context.exit_list)

    def test_input_ended_is_ignored_for_regular_files(self) -> None:
        self.dispatcher.services = replace(self.dispatcher.services, input_ended=lambda: True)
        self.read.side_effect = [b"", b"q"]
        self.dispatcher.run()
        self.assertTrue(self.context.save_session)
        self.assertFalse(self.context.exit_list)

    def test_space_only_cancels_motion(self) -> None:
        self.dispatcher.mode = ScrollMode.CONTINUOUS_DOWN
        self.assertFalse(self.dispatcher.handle_key(" "))
        self.assertIs(self.dispatcher.mode, ScrollMode.NONE)
        self.assertEqual(self.viewport.first_row, 0)

        self.dispatcher.handle_key(" ")
        self.assertEqual(self.viewport.first_row, 23)

    def test_mode_keys_toggle(self) -> None:
        self.dispatcher.handle_key("t")
        self.assertIs(self.dispatcher.mode, ScrollMode.TAIL)
        self.assertEqual(self.viewport.first_row, 79)

        self.dispatcher.handle_key("t")
        self.assertIs(self.dispatcher.mode, ScrollMode.NONE)

        self.dispatcher.handle_key("e")
        self.assertIs(self.dispatcher.mode, ScrollMode.FOLLOW)
        self.dispatcher.handle_key("u")
        self.assertIs(self.dispatcher.mode, ScrollMode.CONTINUOUS_UP)

    def test_position_report_keeps_mode(self) -> None:
        self.dispatcher.mode = ScrollMode.FOLLOW
        self.dispatcher.handle_key("%")
        self.assertIs(self.dispatcher.mode, ScrollMode.FOLLOW)
        self.assertIn('"notes.txt" 100 lines --0.0%--', self._flushed())

    def test_other_keys_stop_motion(self) -> None:
        self.dispatcher.mode = ScrollMode.TAIL
        self.dispatcher.handle_key("+")
        self.assertIs(self.dispatcher.mode, ScrollMode.NONE)
        self.assertEqual(self.viewport.first_row, 1)

    def test_notice_interrupts_tail_mode(self) -> None:
        self.dispatcher.mode = ScrollMode.TAIL
        self.search.last_match = 5
        self.tailer.notices = [TailNotice("File truncated", resets_view=True)]

        with mock.patch.object(self.viewport, "tail_refresh") as refresh:
            self.dispatcher.tick()

        refresh.assert_not_called()
        self.assertIs(self.dispatcher.mode, ScrollMode.NONE)
        self.assertIsNone(self.search.last_match)
        self.assertIn("File truncated", self._flushed())

    def test_notice_without_reset_keeps_mode(self) -> None:
        self.dispatcher.mode = ScrollMode.FOLLOW
        self.tailer.notices = [TailNotice("File removed: reading from /proc/self/fd/3")]
        self.dispatcher.tick()
        self.assertIs(self.dispatcher.mode, ScrollMode.FOLLOW)
        self.assertTrue(self.session.shown_msg)

    def test_jump_to_line(self) -> None:
        self.answers = ["50"]
        self.dispatcher.handle_key("j")
        self.assertEqual(self.viewport.first_row, 50)

        self.answers = ["abc"]
        self.dispatcher.handle_key("j")
        self.assertIn("Invalid line number", self._flushed())

        self.answers = ["-3"]
        self.dispatcher.handle_key("j")
        self.assertIn("Line number must be positive", self._flushed())
        self.assertEqual(self.viewport.first_row, 50)

    def test_set_and_use_marks(self) -> None:
        self.viewport.print_page(40)
        self.answers = ["3"]
        self.dispatcher.handle_key("m")
        self.assertIn("Mark 3 at line 40", self._flushed())

        self.viewport.print_page(70)
        self.dispatcher.handle_key("3")
        self.assertEqual(self.viewport.first_row, 40)

        self.answers = ["0"]
        self.dispatcher.handle_key("m")
        self.assertIn("Invalid mark (use 1-9)", self._flushed())

    def test_sof_resets_shift(self) -> None:
        self.viewport.print_page(60)
        self.viewport.shift_width = 8
        self.dispatcher.handle_key("0")
        self.assertEqual((self.viewport.first_row, self.viewport.shift_width), (0, 0))

    def test_search_then_repeat_in_both_directions(self) -> None:
        self.index.lines[30] = "needle"
        self.index.lines[80] = "needle"
        self.answers = ["needle"]
        self.dispatcher.handle_key("/")
        self.assertEqual(self.viewport.first_row, 19)

        self.dispatcher.handle_key("n")
        self.assertEqual(self.viewport.first_row, 78)

        self.dispatcher.handle_key("N")
        self.assertEqual(self.search.last_match, 30)
        self.assertEqual(self.viewport.first_row, 10)
        self.assertTrue(self.search.forward)

    def test_search_failure_is_reported(self) -> None:
        self.answers = ["absent"]
        self.dispatcher.handle_key("/")
        self.assertIn("Pattern not found: absent", self._flushed())

    def test_case_toggle_updates_context(self) -> None:
        self.dispatcher.handle_key("i")
        self.assertTrue(self.context.ignore_case)
        self.assertIn("Search ignores case", self._flushed())
        self.dispatcher.handle_key("i")
        self.assertIn("Search considers case", self._flushed())

    def test_print_and_clear_pattern(self) -> None:
        self.dispatcher.handle_key("p")
        self.assertIn("No search pattern", self._flushed())
        self.search.compile("line")
        self.dispatcher.handle_key("p")
        self.assertIn(" line ", self._flushed())
        self.dispatcher.handle_key("P")
        self.assertFalse(self.search.active)

    def test_grep_needs_pattern(self) -> None:
        self.dispatcher.handle_key("&")
        self.assertIn("No search pattern", self._flushed())
        self.run_filter.assert_not_called()

    def test_grep_runs_filter_and_resizes(self) -> None:
        self.search.compile("line 5")
        self.terminal_size.return_value = (30, 100)

        self.dispatcher.handle_key("&")

        command, height = self.run_filter.call_args.args
        self.assertTrue(command.startswith("grep -nP -e 'line 5' /tmp/notes.txt | "))
        self.assertEqual(height, 24)
        self.assertEqual((self.viewport.height, self.viewport.width), (30, 100))
        self.assertEqual((self.context.height, self.context.width), (30, 100))

    def test_missing_tool_is_reported(self) -> None:
        self.missing_tool.return_value = "Cannot find 'fmt' in $PATH"
        self.dispatcher.handle_key("w")
        self.assertIn("Cannot find 'fmt' in $PATH", self._flushed())
        self.run_filter.assert_not_called()

    def test_bash_command_substitutes_file_and_previous(self) -> None:
        self.answers = ["wc -l %"]
        self.dispatcher.handle_key("!")
        self.assertEqual(self.run_filter.call_args.args[0], "wc -l /tmp/notes.txt")
        self.assertEqual(self.context.previous_command, "wc -l %")

        self.answers = ["! | head"]
        self.dispatcher.handle_key("!")
        self.assertEqual(self.run_filter.call_args.args[0], "wc -l /tmp/notes.txt | head")

    def test_overlong_bash_command_is_rejected(self) -> None:
        self.answers = ["x" * 2000]
        self.dispatcher.handle_key("!")
        self.assertIn("Command too long", self._flushed())
        self.run_filter.assert_not_called()

    def test_open_files_queues_names_and_leaves(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            for name in ("b.log", "a.log"):
                Path(tmp, name).write_text("x\n")
            self.answers = [os.path.join(tmp, "*.log")]
            self.assertTrue(self.dispatcher.handle_key("B"))
        self.assertEqual(
            self.context.pending_files,
            [os.path.join(tmp, "a.log"), os.path.join(tmp, "b.log")],
        )
        self.assertFalse(self.context.save_session)

    def test_open_files_with_no_match_stays(self) -> None:
        self.answers = ["/nonexistent-dir-xyz/*.log"]
        self.assertFalse(self.dispatcher.handle_key("B"))
        self.assertEqual(self.context.pending_files, [])

    def test_change_directory(self) -> None:
        cwd = os.getcwd()
        self.addCleanup(os.chdir, cwd)
        with tempfile.TemporaryDirectory() as tmp:
            self.answers = [tmp]
            self.dispatcher.handle_key("C")
            self.assertEqual(os.path.realpath(os.getcwd()), os.path.realpath(tmp))
            os.chdir(cwd)

        self.answers = ["/nonexistent-dir-xyz"]
        self.dispatcher.handle_key("C")
        self.any_key.assert_called_once_with("Cannot chdir to /nonexistent-dir-xyz ... [press any key]")

    def test_argument_list_brackets_current_file(self) -> None:
        self.context.file_list = ["/tmp/other.txt", "/tmp/notes.txt"]
        self.dispatcher.handle_key("a")
        self.assertIn("/tmp/other.txt [/tmp/notes.txt]", self._flushed())

    def test_help_waits_for_key(self) -> None:
        self.context.height = 40
        self.dispatcher.handle_key("h")
        self.any_key.assert_called_once_with()
        self.assertIn("lazybrowse 0.1.0", self._flushed())

    def test_help_on_small_screen(self) -> None:
        self.context.height = 10
        self.dispatcher.handle_key("h")
        self.any_key.assert_not_called()
        self.assertIn("Screen is too small", self._flushed())

    def test_unknown_key_does_nothing(self) -> None:
        self.assertFalse(self.dispatcher.handle_key("y"))
        self.assertFalse(self.dispatcher.handle_key("\x1b"))
        self.assertEqual(self.viewport.first_row, 0)

    def test_resize_request_is_handled_before_next_read(self) -> None:
        self.terminal_size.return_value = (40, 120)
        self.context.request_resize()
        self.dispatcher.run()
        self.assertEqual(self.viewport.height, 40)
        self.assertFalse(self.context.resize_pending)

    def test_start_in_motion_shows_last_page(self) -> None:
        self.dispatcher.mode = ScrollMode.TAIL
        self.dispatcher.start()
        self.assertEqual(self.viewport.first_row, 79)


if __name__ == "__main__":
    unittest.main()
