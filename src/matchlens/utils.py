"""
Timing helpers for MatchLens.

Durations are reported in whole milliseconds, e.g. "Match 42 took 1830 ms".
"""

import logging
import time
from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _ms_since(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def timed(func: F) -> F:
    """
    Log how long each call of ``func`` took.

    Usage:
        @timed
        def decode_demo(path):
            ...
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            logger.info(f"{func.__name__} took {_ms_since(start)} ms")

    return wrapper  # type: ignore


class OperationTimer:
    """
    Times a block and logs the outcome once it exits.

    Usage:
        with OperationTimer("Match 42") as timer:
            run_match(...)
        outcome.elapsed_ms = timer.elapsed_ms
    """

    def __init__(self, label: str, log_level: int = logging.INFO):
        self.label = label
        self.log_level = log_level
        self.elapsed_ms = 0
        self._start = 0.0

    def __enter__(self) -> "OperationTimer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.elapsed_ms = _ms_since(self._start)
        if exc_type is None:
            logger.log(self.log_level, f"{self.label} took {self.elapsed_ms} ms")
        else:
            logger.warning(f"{self.label} aborted after {self.elapsed_ms} ms: {exc_val}")
        return False
