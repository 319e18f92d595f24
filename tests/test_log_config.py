from __future__ import annotations

import io
import logging

from ngstep.log_config import SUCCESS, ColorFormatter, configure_logging, log_success


def _record(level: int, message: str) -> logging.LogRecord:
    return logging.LogRecord("ngstep.test", level, __file__, 1, message, None, None)


def test_success_level_is_registered() -> None:
    assert logging.getLevelName(SUCCESS) == "SUCCESS"
    assert logging.INFO < SUCCESS < logging.WARNING


def test_formatter_colors_by_severity() -> None:
    formatter = ColorFormatter(use_color=True)
    assert formatter.format(_record(logging.ERROR, "boom")) == "\033[31m[ngstep] - boom\033[0m"
    assert formatter.format(_record(logging.DEBUG, "step")).startswith("\033[33m")
    assert formatter.format(_record(logging.INFO, "info")).startswith("\033[34m")
    assert formatter.format(_record(SUCCESS, "done")).startswith("\033[32m")


def test_formatter_without_color_is_plain() -> None:
    assert ColorFormatter(use_color=False).format(_record(SUCCESS, "done")) == "[ngstep] - done"


def test_configure_logging_writes_plain_text_to_non_tty() -> None:
    stream = io.StringIO()
    configure_logging("INFO", stream=stream)
    logger = logging.getLogger("ngstep.test")

    logger.debug("hidden")
    log_success(logger, "Angular upgraded to %d", 12)

    assert stream.getvalue() == "[ngstep] - Angular upgraded to 12\n"
