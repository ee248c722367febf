from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def setup_logging(level: int = logging.WARNING, log_file: str | None = None) -> logging.Logger:
    """
    Route `hmdoptics.*` records to stderr (stdout carries the CLI's JSON) and,
    optionally, to `log_file`. Safe to call repeatedly.
    """
    logger = logging.getLogger("hmdoptics")
    logger.setLevel(level)
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    formatter = logging.Formatter(LOG_FORMAT)
    for h in handlers:
        h.setFormatter(formatter)
        logger.addHandler(h)
    return logger
