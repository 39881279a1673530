"""
Logging for the parspace package.

Every module logs through ``get_logger(__name__)``, which places it under the
``parspace`` root logger. The root gets one stream handler on first use and
a WARNING level, so a partition search is silent unless asked otherwise::

    from parspace.utils.logging import set_level
    set_level("INFO")    # run start/finish summaries
    set_level("DEBUG")   # spawns, deduplication passes, volume estimates

Run-level helpers:

- ``log_operation`` times a whole run and reports the figures the caller
  collects while it runs
- ``log_performance`` flags a slow call of an expensive step
"""

import functools
import logging
import time
from contextlib import contextmanager

ROOT_LOGGER = "parspace"

_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_handler_installed = False


def _root_logger() -> logging.Logger:
    global _handler_installed

    root = logging.getLogger(ROOT_LOGGER)
    if not _handler_installed:
        if not root.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(_FORMAT))
            root.addHandler(handler)
        if root.level == logging.NOTSET:
            root.setLevel(logging.WARNING)
        _handler_installed = True
    return root


def get_logger(name: str) -> logging.Logger:
    """Logger for module ``name`` under the ``parspace`` root.

    Package modules keep their dotted name; anything else, such as a user
    script, is nested below the root.
    """
    _root_logger()
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    if name == "__main__":
        name = "main"
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def set_level(level: str) -> None:
    """Set the package log level, e.g. ``set_level("DEBUG")``."""
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"unknown log level: {level!r}")
    _root_logger().setLevel(numeric)


def log_performance(threshold: float = 0.1, level: int = logging.INFO):
    """Log calls of the decorated function that take ``threshold`` seconds or more.

    The message goes to the logger of the function's module.
    """

    def decorator(func):
        logger = get_logger(func.__module__)

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            result = func(*args, **kwargs)
            duration = time.perf_counter() - start
            if duration >= threshold:
                logger.log(level, f"{func.__qualname__} took {duration:.3f}s")
            return result

        return wrapper

    return decorator


@contextmanager
def log_operation(operation: str, logger: logging.Logger, level: int = logging.INFO):
    """Time ``operation`` and log how it ended.

    Yields a dict the caller fills with summary figures (iterations, region
    counts, ...); they are appended to the completion message. A failure is
    logged at ERROR with the elapsed time and re-raised unchanged.
    """
    details: dict = {}
    logger.log(level, f"Starting {operation}")
    start = time.perf_counter()
    try:
        yield details
    except Exception as e:
        logger.error(
            f"{operation} failed after {time.perf_counter() - start:.3f}s: "
            f"{type(e).__name__}: {e}"
        )
        raise

    summary = ", ".join(f"{k}={v}" for k, v in details.items())
    message = f"Completed {operation} in {time.perf_counter() - start:.3f}s"
    logger.log(level, f"{message} ({summary})" if summary else message)
