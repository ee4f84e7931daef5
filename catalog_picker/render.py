from __future__ import annotations

import curses
from dataclasses import dataclass
from typing import Sequence, Tuple

from catalog_picker.errors import LayoutError, RenderError
from catalog_picker.layout import Point
from catalog_picker.models import truncate_to_width
from catalog_picker.state import SelectionState


COLUMN_TITLES: Tuple[str, str, str] = ("Name", "Size", "SHA-256")
FOOTER_HINT = "j/k: move  space: toggle  enter: transfer  q: quit"


@dataclass(frozen=True)
class Theme:
    header_attr: int
    title_attr: int
    row_attr: int
    pointer_attr: int
    footer_attr: int


def _plain_theme() -> Theme:
    return Theme(
        header_attr=curses.A_BOLD,
        title_attr=getattr(curses, "A_ITALIC", 0),
        row_attr=0,
        pointer_attr=curses.A_REVERSE | curses.A_BOLD,
        footer_attr=curses.A_BOLD,
    )


def init_theme() -> Theme:
    """
    Build the color theme. Must be called after curses is initialized; falls back
    to attribute-only styling when the terminal has no colors.
    """
    if not curses.has_colors():
        return _plain_theme()

    try:
        curses.start_color()
    except Exception:
        return _plain_theme()

    try:
        curses.use_default_colors()
        default_bg = -1
    except Exception:
        default_bg = curses.COLOR_BLACK

    colors = getattr(curses, "COLORS", 0) or 0
    if colors >= 256:
        pointer_bg = 240
    elif colors >= 16:
        # Bright black is typically a dark gray in 16-color terminals.
        pointer_bg = 8
    else:
        pointer_bg = curses.COLOR_BLUE

    italic = getattr(curses, "A_ITALIC", 0)
    try:
        curses.init_pair(1, curses.COLOR_GREEN, default_bg)
        curses.init_pair(2, curses.COLOR_WHITE, default_bg)
        curses.init_pair(3, curses.COLOR_YELLOW, default_bg)
        curses.init_pair(4, curses.COLOR_WHITE, pointer_bg)
        curses.init_pair(5, curses.COLOR_CYAN, default_bg)
        return Theme(
            header_attr=curses.color_pair(1) | curses.A_BOLD,
            title_attr=curses.color_pair(2) | italic,
            row_attr=curses.color_pair(3),
            pointer_attr=curses.color_pair(4) | curses.A_BOLD,
            footer_attr=curses.color_pair(5) | curses.A_BOLD,
        )
    except Exception:
        return _plain_theme()


def _hide_cursor() -> None:
    try:
        curses.curs_set(0)
    except curses.error:
        # Some terminals (or TERM/terminfo combinations) don't support this.
        pass


class Renderer:
    """
    Draws a SelectionState onto a curses window.

    Full redraws repaint everything and are used at startup and after a resize.
    Every other update rewrites only the lines that changed and refreshes once.
    """

    def __init__(
        self,
        win: "curses.window",
        theme: Theme,
        *,
        header: str,
        titles: Sequence[str] = COLUMN_TITLES,
    ) -> None:
        self.win = win
        self.theme = theme
        self.header = header
        self.titles = tuple(titles)

    def _put(self, pos: Point, text: str, attr: int, *, clear_line: bool = False) -> None:
        try:
            max_y, max_x = self.win.getmaxyx()
            if pos.y >= max_y:
                return
            if clear_line:
                self.win.move(pos.y, 0)
                self.win.clrtoeol()
            # Stay off the last column so a write never lands on the bottom-right cell.
            room = max_x - pos.x - 1
            if room <= 0:
                return
            self.win.addstr(pos.y, pos.x, truncate_to_width(text, room), attr)
        except curses.error as e:
            raise RenderError(f"write at {pos.y},{pos.x} failed: {e}") from e

    def _flush(self, state: SelectionState) -> None:
        p = state.pointer
        try:
            self.win.move(p.y, p.x)
            self.win.refresh()
        except curses.error as e:
            raise RenderError(f"refresh failed: {e}") from e

    def _row_attr(self, state: SelectionState, index: int) -> int:
        return self.theme.pointer_attr if index == state.index else self.theme.row_attr

    def _draw_row(self, state: SelectionState, index: int) -> None:
        self._put(state.layout.row(index), state.rows[index].render(), self._row_attr(state, index), clear_line=True)

    def full_redraw(self, state: SelectionState, footer: str) -> None:
        try:
            self.win.erase()
        except curses.error as e:
            raise RenderError(f"clear failed: {e}") from e
        _hide_cursor()

        lay = state.layout
        self._put(lay.header, self.header, self.theme.header_attr)
        for pos, title in zip(lay.column_titles, self.titles):
            self._put(pos, title, self.theme.title_attr)
        for i, row in enumerate(state.rows):
            self._put(lay.row(i), row.render(), self._row_attr(state, i))
        self._put(lay.footer, footer, self.theme.footer_attr)
        self._flush(state)

    def draw_move(self, state: SelectionState, previous_index: int) -> None:
        self._draw_row(state, previous_index)
        self._draw_row(state, state.index)
        self._flush(state)

    def draw_toggle(self, state: SelectionState) -> None:
        self._draw_row(state, state.index)
        self._flush(state)

    def draw_footer(self, state: SelectionState, text: str) -> None:
        self._put(state.layout.footer, text, self.theme.footer_attr, clear_line=True)
        self._flush(state)

    def draw_too_small(self, error: LayoutError) -> None:
        need_h, need_w = error.required
        try:
            self.win.erase()
        except curses.error as e:
            raise RenderError(f"clear failed: {e}") from e
        self._put(Point(0, 0), f"Terminal too small: need {need_w}x{need_h}", curses.A_BOLD)
        try:
            self.win.refresh()
        except curses.error as e:
            raise RenderError(f"refresh failed: {e}") from e
