from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from typing import List, Sequence


COL_SEPARATOR = " " * 8
COL_SPACING = len(COL_SEPARATOR)

# Fingerprints are shown as a short prefix followed by an ellipsis.
FINGERPRINT_PREFIX = 20
FINGERPRINT_ELLIPSIS = "..."


@dataclass(frozen=True)
class CatalogEntry:
    name: str
    size: int
    fingerprint: str


@dataclass(frozen=True)
class ColumnWidths:
    name: int
    size: int
    fingerprint: int

    @property
    def row_width(self) -> int:
        return self.name + COL_SPACING + self.size + COL_SPACING + self.fingerprint


@dataclass
class DisplayRow:
    text: str
    selected: bool = False

    @property
    def marker(self) -> str:
        return "[x]" if self.selected else "[ ]"

    def render(self) -> str:
        return f"{self.marker} {self.text}"


def char_width(ch: str) -> int:
    if unicodedata.combining(ch):
        return 0
    if unicodedata.east_asian_width(ch) in ("F", "W"):
        return 2
    return 1


def display_width(text: str) -> int:
    """Number of terminal cells `text` occupies."""
    return sum(char_width(ch) for ch in text)


def truncate_to_width(text: str, width: int) -> str:
    out: List[str] = []
    used = 0
    for ch in text:
        w = char_width(ch)
        if used + w > width:
            break
        out.append(ch)
        used += w
    return "".join(out)


def pad_right(text: str, width: int) -> str:
    return text + " " * max(0, width - display_width(text))


def pad_left(text: str, width: int) -> str:
    return " " * max(0, width - display_width(text)) + text


def short_fingerprint(fingerprint: str) -> str:
    if len(fingerprint) <= FINGERPRINT_PREFIX:
        return fingerprint
    return fingerprint[:FINGERPRINT_PREFIX] + FINGERPRINT_ELLIPSIS


def column_widths(entries: Sequence[CatalogEntry]) -> ColumnWidths:
    max_name = 0
    max_size = 0
    max_fp = 0
    for e in entries:
        max_name = max(max_name, display_width(e.name))
        max_size = max(max_size, len(str(e.size)))
        max_fp = max(max_fp, len(short_fingerprint(e.fingerprint)))
    return ColumnWidths(name=max_name, size=max_size, fingerprint=max_fp)


def format_row(entry: CatalogEntry, widths: ColumnWidths) -> str:
    """
    Render one entry as a fixed-width table row.

    Names are left-aligned, sizes right-aligned. Widths are in terminal cells, so
    every row of a catalog has the same display width and wide characters still
    line up under the column titles.
    """
    return (
        pad_right(entry.name, widths.name)
        + COL_SEPARATOR
        + pad_left(str(entry.size), widths.size)
        + COL_SEPARATOR
        + pad_right(short_fingerprint(entry.fingerprint), widths.fingerprint)
    )


def build_rows(entries: Sequence[CatalogEntry], widths: ColumnWidths) -> List[DisplayRow]:
    return [DisplayRow(text=format_row(e, widths)) for e in entries]
