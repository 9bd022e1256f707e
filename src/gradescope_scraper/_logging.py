"""Logging setup for the ``gradescope_scraper`` package."""

from __future__ import annotations

import logging
from pathlib import Path

PACKAGE_LOGGER = "gradescope_scraper"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def setup_logging(
    level: int = logging.WARNING,
    log_file: Path | str | None = None,
    fmt: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Route package log records to stderr and, optionally, *log_file*.

    Calling it again replaces the handlers installed by the previous call.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    formatter = logging.Formatter(fmt)
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger
