from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from catalog_picker.errors import LayoutError
from catalog_picker.models import COL_SPACING, ColumnWidths


# Width of the "[x] " selection marker drawn left of every row.
MARKER_WIDTH = 4

HEADER_TO_TITLES = 3
HEADER_TO_LIST = 5


@dataclass(frozen=True)
class Point:
    y: int
    x: int

    def down(self, rows: int) -> "Point":
        return Point(self.y + rows, self.x)


@dataclass(frozen=True)
class Border:
    x: int = 10
    y: int = 2


DEFAULT_BORDER = Border()


@dataclass(frozen=True)
class Layout:
    header: Point
    column_titles: Tuple[Point, Point, Point]  # name, size, fingerprint
    list_origin: Point
    footer: Point

    def row(self, index: int) -> Point:
        return self.list_origin.down(index)


def required_size(widths: ColumnWidths, n_rows: int, border: Border = DEFAULT_BORDER) -> Tuple[int, int]:
    """Smallest (h, w) for which compute_layout() succeeds."""
    need_w = widths.row_width + MARKER_WIDTH + 2 * border.x
    # The footer sits on the line right after the last row and must be on screen.
    need_h = border.y + HEADER_TO_LIST + n_rows + 1
    return need_h, need_w


def compute_layout(
    max_y: int,
    max_x: int,
    widths: ColumnWidths,
    n_rows: int,
    border: Border = DEFAULT_BORDER,
) -> Layout:
    """
    Place the header, column titles, list and footer for a terminal of max_y x max_x.

    The table is centered horizontally. Raises LayoutError when it does not fit.
    """
    need_h, need_w = required_size(widths, n_rows, border)
    if max_x < need_w or max_y < need_h:
        raise LayoutError(required=(need_h, need_w), actual=(max_y, max_x))

    # Center the rendered row including its marker; text columns start after the marker.
    left = (max_x - (widths.row_width + MARKER_WIDTH)) // 2
    cx = left + MARKER_WIDTH

    header = Point(border.y, cx)
    titles_y = border.y + HEADER_TO_TITLES
    name_title = Point(titles_y, cx)
    size_title = Point(titles_y, name_title.x + widths.name + COL_SPACING)
    fp_title = Point(titles_y, size_title.x + widths.size + COL_SPACING)
    list_origin = Point(border.y + HEADER_TO_LIST, left)
    footer = Point(list_origin.y + n_rows, cx)

    return Layout(
        header=header,
        column_titles=(name_title, size_title, fp_title),
        list_origin=list_origin,
        footer=footer,
    )
