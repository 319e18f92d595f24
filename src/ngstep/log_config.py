"""Color-coded console logging with an extra SUCCESS severity."""
from __future__ import annotations

import logging
import os
import sys
from typing import TextIO

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

LOG_PREFIX = "[ngstep]"

_RESET = "\033[0m"
_LEVEL_COLORS = {
    logging.CRITICAL: "\033[31m",
    logging.ERROR: "\033[31m",
    logging.WARNING: "\033[35m",
    SUCCESS: "\033[32m",
    logging.INFO: "\033[34m",
    logging.DEBUG: "\033[33m",
}


class ColorFormatter(logging.Formatter):
    """Render ``[ngstep] - message`` wrapped in the ANSI color of the record's level."""

    def __init__(self, *, use_color: bool = True) -> None:
        super().__init__(f"{LOG_PREFIX} - %(message)s")
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        if not self.use_color:
            return text
        color = _LEVEL_COLORS.get(record.levelno)
        if color is None:
            return text
        return f"{color}{text}{_RESET}"


def log_success(logger: logging.Logger, message: str, *args: object) -> None:
    logger.log(SUCCESS, message, *args)


def _color_enabled(stream: TextIO) -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def configure_logging(level: str = "DEBUG", stream: TextIO | None = None) -> None:
    """Configure the root logger with a single colored stream handler."""
    target = stream if stream is not None else sys.stdout
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.DEBUG))
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    handler = logging.StreamHandler(target)
    handler.setFormatter(ColorFormatter(use_color=_color_enabled(target)))
    root.addHandler(handler)
