from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path
from typing import Optional


LOGGER_NAME = "catalog_picker"

logger = logging.getLogger(LOGGER_NAME)
# Silent until setup_logger() is called; curses owns the terminal while the picker runs.
logger.addHandler(logging.NullHandler())


def setup_logger(log_file: Optional[Path], level: int = logging.INFO) -> logging.Logger:
    """
    Attach a rotating file handler to the package logger.

    No console handler: anything written to stderr while curses is active
    ends up on the picker's screen.
    """
    logger.setLevel(level)

    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.addHandler(logging.NullHandler())

    if log_file is None:
        return logger

    resolved = Path(log_file).expanduser().resolve()
    os.makedirs(resolved.parent, exist_ok=True)

    file_handler = logging.handlers.RotatingFileHandler(
        resolved,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    logger.addHandler(file_handler)
    return logger
