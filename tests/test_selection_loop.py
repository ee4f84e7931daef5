import os
import unittest
from typing import List, Optional, Sequence, Tuple
from unittest import mock

import curses

from catalog_picker.errors import LayoutError, TerminalCapabilityError, TerminalLostError
from catalog_picker.events import RESIZED, TASK_COMPLETED, Action, Event, KeyPressed
from catalog_picker.layout import compute_layout
from catalog_picker.models import CatalogEntry, column_widths
from catalog_picker.render import FOOTER_HINT, Theme
from catalog_picker.state import SelectionState
from catalog_picker.tui import SelectionLoop, busy_footer, select_entries


DOWN = KeyPressed(Action.MOVE_DOWN)
UP = KeyPressed(Action.MOVE_UP)
TOGGLE = KeyPressed(Action.TOGGLE)
CONFIRM = KeyPressed(Action.CONFIRM)
QUIT = KeyPressed(Action.QUIT)


class _ScriptedSource:
    """Yields one scripted item per poll (None means nothing pending), then None forever."""

    def __init__(self, events: Sequence[Optional[Event]] = ()) -> None:
        self.events: List[Optional[Event]] = list(events)
        self.polls = 0

    def poll(self) -> Optional[Event]:
        self.polls += 1
        if self.events:
            return self.events.pop(0)
        return None


class _RecordingRenderer:
    def __init__(self) -> None:
        self.calls: List[Tuple] = []

    def full_redraw(self, state: SelectionState, footer: str) -> None:
        self.calls.append(("full", state.index, footer))

    def draw_move(self, state: SelectionState, previous_index: int) -> None:
        self.calls.append(("move", previous_index, state.index))

    def draw_toggle(self, state: SelectionState) -> None:
        self.calls.append(("toggle", state.index, state.current.selected))

    def draw_footer(self, state: SelectionState, text: str) -> None:
        self.calls.append(("footer", text))

    def draw_too_small(self, error: LayoutError) -> None:
        self.calls.append(("too_small", error.actual))

    def kinds(self) -> List[str]:
        return [c[0] for c in self.calls]


def _entries(n: int) -> List[CatalogEntry]:
    return [CatalogEntry(name=f"row{i}name", size=10 * (i + 1), fingerprint="f" * 64) for i in range(n)]


class _Harness:
    def __init__(
        self,
        n: int = 5,
        *,
        keys: Sequence[Optional[Event]] = (),
        resizes: Sequence[Optional[Event]] = (),
        task_events: Sequence[Optional[Event]] = (None, TASK_COMPLETED),
        size: Tuple[int, int] = (40, 120),
        idle_sleep_s: float = 0.0,
    ) -> None:
        entries = _entries(n)
        widths = column_widths(entries)
        self.state = SelectionState(entries, compute_layout(40, 120, widths, n), widths)
        self.renderer = _RecordingRenderer()
        self.keys = _ScriptedSource(keys)
        self.resizes = _ScriptedSource(resizes)
        self.size = size
        self.measured = 0
        self.launched: List[Tuple[str, ...]] = []
        self.task = _ScriptedSource(task_events)
        self.sleeps: List[float] = []

        def measure() -> Tuple[int, int]:
            self.measured += 1
            return self.size

        def launch(names: Tuple[str, ...]) -> _ScriptedSource:
            self.launched.append(names)
            return self.task

        self.loop = SelectionLoop(
            self.state,
            self.renderer,  # type: ignore[arg-type]
            resize_source=self.resizes,
            key_source=self.keys,
            measure=measure,
            launch=launch,
            idle_sleep_s=idle_sleep_s,
            sleep=self.sleeps.append,
        )


class TestSelectionLoop(unittest.TestCase):
    def test_navigation_toggle_confirm_then_completion(self) -> None:
        h = _Harness(5, keys=[DOWN] * 3 + [DOWN] * 5 + [TOGGLE, CONFIRM])
        result = h.loop.run()

        self.assertEqual(result.reason, "completed")
        self.assertEqual(result.launched, ("row4name",))
        self.assertEqual(h.launched, [("row4name",)])
        self.assertEqual(h.state.index, 4)

        # Only legal moves are drawn; blocked moves at the last row draw nothing.
        moves = [c for c in h.renderer.calls if c[0] == "move"]
        self.assertEqual(moves, [("move", 0, 1), ("move", 1, 2), ("move", 2, 3), ("move", 3, 4)])
        self.assertIn(("toggle", 4, True), h.renderer.calls)
        self.assertIn(("footer", busy_footer(1)), h.renderer.calls)
        self.assertEqual(h.renderer.calls[0], ("full", 0, FOOTER_HINT))

    def test_quit_ends_loop_without_launching(self) -> None:
        h = _Harness(3, keys=[DOWN, TOGGLE, QUIT, CONFIRM])
        result = h.loop.run()
        self.assertEqual(result.reason, "quit")
        self.assertIsNone(result.launched)
        self.assertEqual(h.launched, [])
        # CONFIRM after QUIT was never read.
        self.assertEqual(h.keys.events, [CONFIRM])

    def test_resize_resets_pointer_and_keeps_flags(self) -> None:
        h = _Harness(
            5,
            keys=[DOWN, DOWN, DOWN, TOGGLE, QUIT],
            resizes=[None, None, None, None, RESIZED],
            size=(30, 100),
        )
        result = h.loop.run()

        self.assertEqual(result.reason, "quit")
        self.assertEqual(h.state.index, 0)
        self.assertEqual([r.selected for r in h.state.rows], [False, False, False, True, False])
        self.assertEqual(h.measured, 1)
        fulls = [c for c in h.renderer.calls if c[0] == "full"]
        self.assertEqual(len(fulls), 2)
        self.assertEqual(fulls[1][1], 0)
        self.assertEqual(h.state.layout, compute_layout(30, 100, h.state.widths, 5))

    def test_resize_takes_priority_over_pending_key(self) -> None:
        h = _Harness(5, keys=[DOWN], resizes=[RESIZED])
        h.loop.state.index = 2

        self.assertTrue(h.loop.tick())
        self.assertEqual(h.renderer.kinds(), ["full"])
        self.assertEqual(h.keys.polls, 0)
        self.assertEqual(h.state.index, 0)

        self.assertTrue(h.loop.tick())
        self.assertEqual(h.renderer.kinds(), ["full", "move"])
        self.assertEqual(h.state.index, 1)

    def test_completion_takes_priority_over_pending_key(self) -> None:
        h = _Harness(3, keys=[CONFIRM, DOWN], task_events=[TASK_COMPLETED])
        self.assertTrue(h.loop.tick())  # confirm
        self.assertTrue(h.loop.tick())  # completion, DOWN still pending
        self.assertEqual(h.loop.result.reason, "completed")
        self.assertEqual(h.keys.events, [DOWN])

    def test_confirm_is_accepted_once(self) -> None:
        h = _Harness(3, keys=[TOGGLE, CONFIRM, CONFIRM, QUIT], task_events=[])
        result = h.loop.run()
        self.assertEqual(h.launched, [("row0name",)])
        self.assertEqual(result.reason, "quit")
        self.assertEqual(result.launched, ("row0name",))
        self.assertEqual(h.renderer.kinds().count("footer"), 1)

    def test_navigation_keeps_working_while_task_runs(self) -> None:
        h = _Harness(3, keys=[CONFIRM, DOWN, TOGGLE, QUIT], task_events=[])
        h.loop.run()
        self.assertEqual(h.renderer.kinds(), ["full", "footer", "move", "toggle"])
        # Selection made after confirming is not part of the launched snapshot.
        self.assertEqual(h.launched, [()])

    def test_busy_footer_survives_resize(self) -> None:
        h = _Harness(2, keys=[TOGGLE, CONFIRM, None, QUIT], resizes=[None, None, RESIZED], task_events=[])
        h.loop.run()
        fulls = [c for c in h.renderer.calls if c[0] == "full"]
        self.assertEqual(fulls[-1][2], busy_footer(1))

    def test_too_small_terminal_defers_drawing_until_next_resize(self) -> None:
        h = _Harness(5, keys=[DOWN, TOGGLE, DOWN, QUIT], resizes=[RESIZED, None, None, RESIZED], size=(5, 20))
        h.loop.state.index = 2

        h.loop.tick()  # resize to a tiny terminal
        self.assertEqual(h.renderer.kinds(), ["too_small"])
        self.assertIsNotNone(h.loop.too_small)
        self.assertEqual(h.state.index, 0)

        h.loop.tick()  # DOWN ignored
        h.loop.tick()  # TOGGLE ignored
        self.assertEqual(h.renderer.kinds(), ["too_small"])
        self.assertEqual(h.state.index, 0)
        self.assertFalse(any(r.selected for r in h.state.rows))

        h.size = (40, 120)
        h.loop.tick()  # resize back
        self.assertIsNone(h.loop.too_small)
        self.assertEqual(h.renderer.kinds(), ["too_small", "full"])

        h.loop.tick()  # DOWN works again
        self.assertEqual(h.state.index, 1)

    def test_quit_is_honored_while_too_small(self) -> None:
        h = _Harness(5, keys=[None, QUIT], resizes=[RESIZED], size=(5, 20))
        result = h.loop.run()
        self.assertEqual(result.reason, "quit")

    def test_idle_ticks_sleep_between_polls(self) -> None:
        h = _Harness(2, keys=[None, None, QUIT], idle_sleep_s=0.01)
        h.loop.run()
        self.assertEqual(h.sleeps, [0.01, 0.01])

    def test_idle_tick_returns_false(self) -> None:
        h = _Harness(2)
        self.assertFalse(h.loop.tick())
        self.assertEqual(h.renderer.calls, [])

    def test_failed_size_query_during_resize_is_terminal_lost(self) -> None:
        h = _Harness(3, resizes=[RESIZED])

        def measure() -> Tuple[int, int]:
            raise TerminalCapabilityError("cannot query terminal size: not a tty")

        h.loop.measure = measure
        with self.assertRaises(TerminalLostError):
            h.loop.tick()


class _CursesScreen:
    """Just enough of a curses window for select_entries()."""

    def __init__(self, keys: Sequence[int], size: Tuple[int, int] = (40, 120)) -> None:
        self.keys = list(keys)
        self.size = size
        self.nodelay_calls: List[bool] = []
        self.keypad_calls: List[bool] = []
        self.refreshes = 0

    def nodelay(self, flag: bool) -> None:
        self.nodelay_calls.append(flag)

    def keypad(self, flag: bool) -> None:
        self.keypad_calls.append(flag)

    def getmaxyx(self) -> Tuple[int, int]:
        return self.size

    def getch(self) -> int:
        if self.keys:
            return self.keys.pop(0)
        return -1

    def erase(self) -> None:
        pass

    def move(self, y: int, x: int) -> None:
        pass

    def clrtoeol(self) -> None:
        pass

    def addstr(self, y: int, x: int, s: str, attr: int = 0) -> None:
        pass

    def refresh(self) -> None:
        self.refreshes += 1


class TestSelectEntries(unittest.TestCase):
    def test_wires_keys_resize_and_background_task(self) -> None:
        screen = _CursesScreen([ord("j"), -1, ord(" "), 10])
        transferred: List[Tuple[str, ...]] = []
        theme = Theme(header_attr=0, title_attr=0, row_attr=0, pointer_attr=0, footer_attr=0)

        with mock.patch.object(curses, "raw") as raw, mock.patch.object(curses, "noraw") as noraw, mock.patch.object(
            curses, "curs_set"
        ), mock.patch("catalog_picker.tui.init_theme", return_value=theme), mock.patch(
            "sys.stdout", mock.Mock(fileno=mock.Mock(return_value=1))
        ), mock.patch(
            "os.get_terminal_size", return_value=os.terminal_size((120, 40))
        ), mock.patch.object(
            curses, "resizeterm"
        ) as resizeterm:
            result = select_entries(
                screen,  # type: ignore[arg-type]
                entries=_entries(3),
                header="3 entries available",
                action=transferred.append,
                resize_source=_ScriptedSource([None, RESIZED]),
                idle_sleep_s=0.001,
            )

        raw.assert_called_once_with()
        noraw.assert_called_once_with()
        self.assertEqual(screen.nodelay_calls, [True])
        self.assertEqual(screen.keypad_calls, [True])
        # The resize arrived after one move, so the toggle landed on row 0 again.
        resizeterm.assert_called_once_with(40, 120)
        self.assertEqual(result.reason, "completed")
        self.assertEqual(result.launched, ("row0name",))
        self.assertEqual(transferred, [("row0name",)])
        self.assertGreaterEqual(screen.refreshes, 2)


if __name__ == "__main__":
    unittest.main()
