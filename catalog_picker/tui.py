from __future__ import annotations

import curses
import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

from catalog_picker.errors import LayoutError, TerminalCapabilityError, TerminalLostError
from catalog_picker.events import Action, EventSource, KeyPressed, KeySource
from catalog_picker.layout import DEFAULT_BORDER, Border, compute_layout
from catalog_picker.log import logger
from catalog_picker.models import CatalogEntry, column_widths
from catalog_picker.render import FOOTER_HINT, Renderer, init_theme
from catalog_picker.state import SelectionState
from catalog_picker.tasks import TaskAction, launch_task
from catalog_picker.terminal import sync_curses_size


DEFAULT_IDLE_SLEEP_S = 0.005


def busy_footer(n_selected: int) -> str:
    noun = "entry" if n_selected == 1 else "entries"
    return f"Transferring {n_selected} selected {noun}..."


@dataclass(frozen=True)
class SelectionResult:
    reason: str  # "quit" | "completed"
    launched: Optional[Tuple[str, ...]] = None


class SelectionLoop:
    """
    Cooperative event loop merging resize, task completion and keystrokes.

    Each tick polls the sources in priority order (resize, then completion,
    then keys) and handles at most one event. No source ever blocks.
    """

    def __init__(
        self,
        state: SelectionState,
        renderer: Renderer,
        *,
        resize_source: EventSource,
        key_source: EventSource,
        measure: Callable[[], Tuple[int, int]],
        launch: Callable[[Tuple[str, ...]], EventSource],
        border: Border = DEFAULT_BORDER,
        idle_sleep_s: float = 0.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.state = state
        self.renderer = renderer
        self.resize_source = resize_source
        self.key_source = key_source
        self.measure = measure
        self.launch = launch
        self.border = border
        self.idle_sleep_s = idle_sleep_s
        self._sleep = sleep

        self.footer = FOOTER_HINT
        self.task: Optional[EventSource] = None
        self.launched: Optional[Tuple[str, ...]] = None
        self.too_small: Optional[LayoutError] = None
        self.result: Optional[SelectionResult] = None

    def start(self) -> None:
        self.renderer.full_redraw(self.state, self.footer)

    def tick(self) -> bool:
        """Handle at most one pending event. Returns False when the tick was idle."""
        if self.resize_source.poll() is not None:
            self._on_resize()
            return True

        if self.task is not None and self.task.poll() is not None:
            logger.info("background task completed")
            self.result = SelectionResult(reason="completed", launched=self.launched)
            return True

        evt = self.key_source.poll()
        if isinstance(evt, KeyPressed):
            self._on_key(evt.action)
            return True
        return False

    def run(self) -> SelectionResult:
        self.start()
        while self.result is None:
            if not self.tick() and self.idle_sleep_s > 0:
                self._sleep(self.idle_sleep_s)
        return self.result

    def _on_resize(self) -> None:
        try:
            max_y, max_x = self.measure()
        except TerminalCapabilityError as e:
            raise TerminalLostError(f"lost the terminal while resizing: {e}") from e
        logger.debug("resize to %dx%d", max_x, max_y)
        self.state.index = 0
        try:
            layout = compute_layout(max_y, max_x, self.state.widths, self.state.n_rows, self.border)
        except LayoutError as e:
            logger.info("%s", e)
            self.too_small = e
            self.renderer.draw_too_small(e)
            return
        self.too_small = None
        self.state.reset(layout)
        self.renderer.full_redraw(self.state, self.footer)

    def _on_key(self, action: Action) -> None:
        if action is Action.QUIT:
            self.result = SelectionResult(reason="quit", launched=self.launched)
            return

        # Nothing sensible can be drawn until the terminal is big enough again.
        if self.too_small is not None:
            return

        state = self.state
        if action is Action.MOVE_DOWN:
            prev = state.index
            if state.move_down():
                self.renderer.draw_move(state, prev)
        elif action is Action.MOVE_UP:
            prev = state.index
            if state.move_up():
                self.renderer.draw_move(state, prev)
        elif action is Action.TOGGLE:
            state.toggle()
            self.renderer.draw_toggle(state)
        elif action is Action.CONFIRM:
            self._confirm()

    def _confirm(self) -> None:
        if self.task is not None:
            return
        names = self.state.confirm()
        if names is None:
            return
        self.launched = names
        self.footer = busy_footer(len(names))
        self.renderer.draw_footer(self.state, self.footer)
        self.task = self.launch(names)


def select_entries(
    stdscr: "curses.window",
    *,
    entries: Sequence[CatalogEntry],
    header: str,
    action: TaskAction,
    resize_source: EventSource,
    border: Border = DEFAULT_BORDER,
    idle_sleep_s: float = DEFAULT_IDLE_SLEEP_S,
) -> SelectionResult:
    """
    Run the picker on an initialized curses screen (see curses.wrapper()).

    Raises LayoutError if the table does not fit the terminal at startup.
    """
    curses.raw()
    stdscr.nodelay(True)
    stdscr.keypad(True)

    theme = init_theme()
    widths = column_widths(entries)
    max_y, max_x = stdscr.getmaxyx()
    layout = compute_layout(max_y, max_x, widths, len(entries), border)
    state = SelectionState(entries, layout, widths)

    loop = SelectionLoop(
        state,
        Renderer(stdscr, theme, header=header),
        resize_source=resize_source,
        key_source=KeySource(stdscr),
        measure=lambda: sync_curses_size(stdscr),
        launch=lambda names: launch_task(names, action),
        border=border,
        idle_sleep_s=idle_sleep_s,
    )
    try:
        return loop.run()
    finally:
        try:
            curses.noraw()
        except curses.error:
            pass
