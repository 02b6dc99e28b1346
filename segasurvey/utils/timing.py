"""
SegaSurvey Timing Utilities
Step duration logging
"""

import time
from functools import wraps
from typing import Callable, Any
import logging

logger = logging.getLogger(__name__)


def timed(func: Callable) -> Callable:
    """Log how long each call of func takes (debug level)"""
    @wraps(func)
    def wrapper(*args, **kwargs) -> Any:
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed = time.perf_counter() - start
            logger.debug(f"{func.__name__} took {elapsed:.4f}s")
    return wrapper


class Timer:
    """Context manager timer; elapsed is set on exit"""

    def __init__(self, name: str = ""):
        self.name = name
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, *args) -> None:
        self.elapsed = time.perf_counter() - self._start
        if self.name:
            logger.debug(f"{self.name} took {self.elapsed * 1000:.1f}ms")
