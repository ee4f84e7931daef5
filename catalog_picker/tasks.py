from __future__ import annotations

import queue
import threading
import time
from typing import Callable, Optional, Sequence, Tuple

from catalog_picker.errors import ChannelClosedError
from catalog_picker.events import TASK_COMPLETED, Event, TaskCompleted
from catalog_picker.log import logger


TaskAction = Callable[[Tuple[str, ...]], None]


class TaskChannel:
    """
    Single-shot completion channel for one background task.

    poll() returns TaskCompleted exactly once. If the worker thread ends without
    completing (the action raised), poll() raises ChannelClosedError.
    """

    def __init__(self) -> None:
        self._q: "queue.Queue[TaskCompleted]" = queue.Queue(maxsize=1)
        self._thread: Optional[threading.Thread] = None
        self._delivered = False
        self._error: Optional[str] = None

    @property
    def done(self) -> bool:
        return self._delivered

    def poll(self) -> Optional[Event]:
        if self._delivered:
            return None
        try:
            evt = self._q.get_nowait()
        except queue.Empty:
            t = self._thread
            if t is not None and not t.is_alive() and self._q.empty():
                raise ChannelClosedError(f"background task ended without completing: {self._error or 'unknown'}")
            return None
        self._delivered = True
        return evt


def launch_task(names: Sequence[str], action: TaskAction) -> TaskChannel:
    """
    Run `action` on a daemon thread with its own copy of `names`.

    Returns immediately; the caller polls the returned channel.
    """
    snapshot = tuple(names)
    channel = TaskChannel()

    def _run() -> None:
        try:
            action(snapshot)
        except Exception as e:
            channel._error = str(e) or e.__class__.__name__
            logger.exception("background task failed")
            return
        channel._q.put(TASK_COMPLETED)

    t = threading.Thread(target=_run, name="background-task", daemon=True)
    channel._thread = t
    logger.info("launching background task for %d entries", len(snapshot))
    t.start()
    return channel


def simulated_transfer(
    names: Sequence[str],
    *,
    duration_s: float = 5.0,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Stand-in for the real transfer: waits, then returns."""
    logger.info("transfer started: %s", ", ".join(names) or "(nothing selected)")
    sleep(max(0.0, duration_s))
    logger.info("transfer finished: %d entries", len(names))
