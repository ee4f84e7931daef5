from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional


ENV_CPICK_LOG_FILE = "CPICK_LOG_FILE"
ENV_CPICK_LOG_LEVEL = "CPICK_LOG_LEVEL"
ENV_XDG_STATE_HOME = "XDG_STATE_HOME"

APP_DIR_NAME = "catalog-picker"
LOG_FILE_NAME = "cpick.log"


def state_dir() -> Path:
    raw = (os.environ.get(ENV_XDG_STATE_HOME) or "").strip()
    if raw:
        return Path(raw).expanduser() / APP_DIR_NAME
    return Path.home() / ".local" / "state" / APP_DIR_NAME


def default_log_file() -> Path:
    """
    Log file location. `$CPICK_LOG_FILE` wins over the XDG state directory.
    """
    override = (os.environ.get(ENV_CPICK_LOG_FILE) or "").strip()
    if override:
        return Path(override).expanduser()
    return state_dir() / LOG_FILE_NAME


def resolve_log_level(explicit: Optional[str] = None) -> int:
    raw = explicit
    if not raw:
        raw = os.environ.get(ENV_CPICK_LOG_LEVEL)
    if not raw:
        return logging.INFO
    raw = raw.strip()
    if raw.isdigit():
        return int(raw)
    level = logging.getLevelName(raw.upper())
    # getLevelName() returns "Level X" for unknown names.
    if isinstance(level, int):
        return level
    return logging.INFO
