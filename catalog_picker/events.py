from __future__ import annotations

import curses
import enum
import queue
import signal
import threading
from dataclasses import dataclass
from typing import Optional, Protocol, Set, Union

from catalog_picker.errors import ChannelClosedError
from catalog_picker.log import logger


class Action(enum.Enum):
    MOVE_UP = "move_up"
    MOVE_DOWN = "move_down"
    TOGGLE = "toggle"
    CONFIRM = "confirm"
    QUIT = "quit"


@dataclass(frozen=True)
class KeyPressed:
    action: Action


@dataclass(frozen=True)
class Resized:
    pass


@dataclass(frozen=True)
class TaskCompleted:
    pass


RESIZED = Resized()
TASK_COMPLETED = TaskCompleted()

Event = Union[KeyPressed, Resized, TaskCompleted]


class EventSource(Protocol):
    def poll(self) -> Optional[Event]:
        """Return the next pending event without blocking, or None."""
        ...


_KEYMAP = {
    ord("q"): Action.QUIT,
    ord("j"): Action.MOVE_DOWN,
    ord("k"): Action.MOVE_UP,
    ord(" "): Action.TOGGLE,
    10: Action.CONFIRM,
    13: Action.CONFIRM,
    curses.KEY_ENTER: Action.CONFIRM,
}


def decode_key(ch: int) -> Optional[Action]:
    return _KEYMAP.get(ch)


class KeySource:
    """
    Non-blocking keystrokes from a curses window. The window must be in
    nodelay mode so getch() returns -1 when nothing is pending.
    """

    def __init__(self, win: "curses.window") -> None:
        self.win = win

    def poll(self) -> Optional[Event]:
        ch = self.win.getch()
        if ch == -1:
            return None
        action = decode_key(ch)
        if action is None:
            return None
        return KeyPressed(action)


class ResizeListener:
    """
    Forwards SIGWINCH to the UI thread through a queue.

    start() blocks the signal in the calling thread (threads started afterwards
    inherit the mask) and a dedicated thread collects it with sigwait(). The
    listener thread never touches the terminal.
    """

    def __init__(self, signum: Optional[int] = None) -> None:
        self._signum = signum if signum is not None else signal.SIGWINCH
        self._q: "queue.Queue[Resized]" = queue.Queue()
        self._stopping = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._prev_mask: Optional[Set[int]] = None
        self._error: Optional[BaseException] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._prev_mask = signal.pthread_sigmask(signal.SIG_BLOCK, {self._signum})
        self._thread = threading.Thread(target=self._run, name="resize-listener", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        try:
            while True:
                signal.sigwait({self._signum})
                if self._stopping.is_set():
                    return
                self._q.put(RESIZED)
        except Exception as e:
            self._error = e
            logger.exception("resize listener failed")

    def poll(self) -> Optional[Event]:
        try:
            return self._q.get_nowait()
        except queue.Empty:
            pass
        if self._thread is not None and not self._thread.is_alive() and not self._stopping.is_set():
            raise ChannelClosedError(f"resize listener stopped unexpectedly: {self._error or 'no error'}")
        return None

    def close(self, *, timeout_s: float = 1.0) -> None:
        self._stopping.set()
        t = self._thread
        if t is not None and t.is_alive() and t.ident is not None:
            try:
                signal.pthread_kill(t.ident, self._signum)
            except (OSError, ValueError):
                pass
            t.join(timeout=timeout_s)
        if self._prev_mask is not None:
            signal.pthread_sigmask(signal.SIG_SETMASK, self._prev_mask)
            self._prev_mask = None
