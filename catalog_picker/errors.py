from __future__ import annotations

from typing import Tuple


class PickerError(Exception):
    """Base class for errors raised by the picker."""


class TerminalCapabilityError(PickerError):
    """
    The terminal could not be put into the mode the picker needs, or its size
    could not be queried. Raised before the event loop starts drawing.
    """


class RenderError(PickerError):
    """A write to the terminal failed while drawing."""


class LayoutError(PickerError):
    """
    The table does not fit the terminal.

    Not fatal by itself: the caller may wait for the user to enlarge the window
    and try again.
    """

    def __init__(self, required: Tuple[int, int], actual: Tuple[int, int]) -> None:
        self.required = required  # (h, w)
        self.actual = actual  # (h, w)
        super().__init__(
            f"terminal too small: need {required[1]}x{required[0]}, have {actual[1]}x{actual[0]}"
        )


class ChannelClosedError(PickerError):
    """An auxiliary thread stopped without delivering what the loop waits for."""


class TerminalLostError(PickerError):
    """
    The terminal stopped answering size queries while the picker was running,
    for example because the controlling TTY went away.
    """
