from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from catalog_picker.layout import Layout, Point
from catalog_picker.models import CatalogEntry, ColumnWidths, DisplayRow, build_rows, column_widths


class SelectionState:
    """
    Pointer position and per-row selection flags for one picker session.

    The pointer is derived from the layout and the current index, so the two
    can never drift apart.
    """

    def __init__(self, entries: Sequence[CatalogEntry], layout: Layout, widths: Optional[ColumnWidths] = None) -> None:
        if not entries:
            raise ValueError("SelectionState needs at least one entry")
        # Pin the display order for the whole session.
        self.entries: Tuple[CatalogEntry, ...] = tuple(entries)
        self.widths = widths or column_widths(self.entries)
        self.rows: List[DisplayRow] = build_rows(self.entries, self.widths)
        self.layout = layout
        self.index = 0
        self.confirmed = False

    @property
    def n_rows(self) -> int:
        return len(self.rows)

    @property
    def pointer(self) -> Point:
        return self.layout.row(self.index)

    @property
    def current(self) -> DisplayRow:
        return self.rows[self.index]

    def move_down(self) -> bool:
        if self.index < self.n_rows - 1:
            self.index += 1
            return True
        return False

    def move_up(self) -> bool:
        if self.index > 0:
            self.index -= 1
            return True
        return False

    def toggle(self) -> DisplayRow:
        row = self.rows[self.index]
        row.selected = not row.selected
        return row

    def selected_names(self) -> List[str]:
        return [e.name for e, row in zip(self.entries, self.rows) if row.selected]

    def confirm(self) -> Optional[Tuple[str, ...]]:
        """
        Snapshot the selected names, in row order. Only the first call per
        session returns a snapshot; later calls return None.
        """
        if self.confirmed:
            return None
        self.confirmed = True
        return tuple(self.selected_names())

    def reset(self, layout: Layout) -> None:
        # Selection flags survive a relayout; the pointer goes back to the top.
        self.layout = layout
        self.index = 0
