"""Logging for the CLI process and the render workers it spawns."""

import contextlib
import logging
import logging.handlers
import multiprocessing as mp
import sys
from typing import Iterator, List, Optional

from mandelanim.errors import ConfigurationError, ResourceError

LOGGER_NAME = "mandelanim"
LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
LOG_FORMAT = "%(asctime)s.%(msecs)03d %(processName)s %(levelname)s %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


def get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def parse_level(name: str) -> int:
    key = name.strip().upper()
    if key not in LEVELS:
        raise ConfigurationError(f"Unknown log level {name!r}; expected one of: {', '.join(LEVELS)}")
    return getattr(logging, key)


def _detach_handlers(logger: logging.Logger) -> None:
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()


def _file_handler(path: str, rotate_bytes: int, rotate_count: int) -> logging.Handler:
    try:
        return logging.handlers.RotatingFileHandler(
            path, maxBytes=rotate_bytes, backupCount=rotate_count, encoding="utf-8"
        )
    except OSError as e:
        raise ResourceError(f"Cannot open log file {path}: {e}") from e


def install_handlers(
    level: int,
    *,
    log_file: Optional[str] = None,
    rotate_bytes: int = 5 * 1024 * 1024,
    rotate_count: int = 5,
) -> List[logging.Handler]:
    """
    Replace the package logger's handlers with stderr and, optionally, a
    rotating log file.

    stdout never receives log records because image and frame bytes go there.
    The stderr handler is attached first so a log file that cannot be opened
    is still reported.
    """
    logger = get_logger()
    logger.setLevel(level)
    logger.propagate = False
    _detach_handlers(logger)

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(fmt)
    logger.addHandler(console)
    if log_file:
        fh = _file_handler(log_file, rotate_bytes, rotate_count)
        fh.setLevel(level)
        fh.setFormatter(fmt)
        logger.addHandler(fh)
    return list(logger.handlers)


@contextlib.contextmanager
def logging_session(level: int, log_file: Optional[str] = None) -> Iterator[mp.Queue]:
    """
    Configure the parent's handlers and yield a queue for worker records.

    Records that render workers put on the queue are written by a listener
    thread through the same handlers until the session ends.
    """
    handlers = install_handlers(level, log_file=log_file)
    log_queue = mp.Queue(-1)
    listener = logging.handlers.QueueListener(log_queue, *handlers, respect_handler_level=True)
    listener.start()
    try:
        yield log_queue
    finally:
        listener.stop()


def route_worker_logs(log_queue: Optional[mp.Queue], level: int) -> None:
    """Send a worker process's package records to the parent's listener."""
    if log_queue is None:
        return
    logger = get_logger()
    logger.setLevel(level)
    logger.propagate = False
    _detach_handlers(logger)
    logger.addHandler(logging.handlers.QueueHandler(log_queue))
