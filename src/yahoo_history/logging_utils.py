"""Logger wiring for the `yahoo_history.*` hierarchy."""

from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# urllib3 logs every request line, crumb included, at DEBUG.
TRANSPORT_LOGGER = "urllib3.connectionpool"


def setup_logger(log_level: str = "INFO", log_file: str | None = None) -> logging.Logger:
    """Attach handlers to the package logger and return it.

    Session, fetcher and history loggers are children of `yahoo_history` and
    inherit its handlers. Calling this again updates the level and adds a file
    handler for a new `log_file`; existing handlers are not duplicated.
    """
    level = logging.getLevelName(log_level.strip().upper())
    if not isinstance(level, int):
        level = logging.INFO

    logger = logging.getLogger("yahoo_history")
    logger.setLevel(level)
    logger.propagate = False
    logging.getLogger(TRANSPORT_LOGGER).setLevel(
        logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    )

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    has_console = any(type(handler) is logging.StreamHandler for handler in logger.handlers)
    if not has_console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        path = os.path.abspath(log_file)
        open_files = {
            handler.baseFilename
            for handler in logger.handlers
            if isinstance(handler, logging.FileHandler)
        }
        if path not in open_files:
            file_handler = logging.FileHandler(path)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
