from __future__ import annotations

import curses
import os
import sys
from typing import Optional, Tuple

from catalog_picker.errors import TerminalCapabilityError


_XTERM_LIKE_PREFIXES = ("xterm", "screen", "tmux", "rxvt", "alacritty", "kitty", "wezterm", "foot")

_SHOW_CURSOR = b"\x1b[?25h"
_EXIT_ALT_SCREEN = b"\x1b[?1049l"


def _is_xterm_like(term: str) -> bool:
    t = (term or "").lower()
    return any(t.startswith(p) for p in _XTERM_LIKE_PREFIXES)


def _write_stdout_bytes(data: bytes) -> None:
    os.write(sys.stdout.fileno(), data)


def query_terminal_size(fd: Optional[int] = None) -> Tuple[int, int]:
    """Return the terminal size as (rows, columns)."""
    try:
        if fd is None:
            fd = sys.stdout.fileno()
        size = os.get_terminal_size(fd)
    except (OSError, ValueError) as e:
        raise TerminalCapabilityError(f"cannot query terminal size: {e}") from e
    return size.lines, size.columns


def sync_curses_size(win: "curses.window") -> Tuple[int, int]:
    """
    Tell curses about the current terminal size and return the window's (h, w).

    SIGWINCH is consumed by the resize listener, so curses never sees it and
    has to be resized explicitly.
    """
    lines, cols = query_terminal_size()
    try:
        curses.resizeterm(lines, cols)
    except curses.error as e:
        raise TerminalCapabilityError(f"cannot resize curses to {cols}x{lines}: {e}") from e
    return win.getmaxyx()


def _terminfo(cap: str) -> Optional[bytes]:
    try:
        return curses.tigetstr(cap)
    except curses.error:
        return None


def restore_terminal() -> None:
    """
    Make the cursor visible and leave the alternate screen.

    Safe to call after curses.endwin(), and on terminals where curses never
    started. Only writes to a TTY.
    """
    try:
        if not sys.stdout.isatty():
            return
    except (AttributeError, ValueError):
        return

    xterm_like = _is_xterm_like(os.environ.get("TERM", ""))
    out = b""
    show = _terminfo("cnorm")
    if show:
        out += show
    elif xterm_like:
        out += _SHOW_CURSOR
    rmcup = _terminfo("rmcup")
    if rmcup:
        out += rmcup
    elif xterm_like:
        out += _EXIT_ALT_SCREEN
    if not out:
        return
    try:
        _write_stdout_bytes(out)
    except OSError:
        return
