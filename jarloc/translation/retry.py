"""
Bounded retry for provider calls that hit rate limits or overload.
"""

import time
from typing import Callable, TypeVar

from jarloc.ai.exceptions import OverloadedError
from jarloc.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_OVERLOAD_MARKERS = ("overloaded", "429", "too many requests")


def is_overload_error(error: Exception) -> bool:
    """Whether an error is a transient overload / rate-limit signal."""
    if isinstance(error, OverloadedError):
        return True
    error_str = str(error).lower()
    return any(marker in error_str for marker in _OVERLOAD_MARKERS)


def call_with_retry(fn: Callable[[], T], max_attempts: int = 3, base_delay: float = 2.0) -> T:
    """
    Call `fn`, retrying overload errors with a linearly growing wait.

    The wait before attempt n+1 is `base_delay * n` seconds (2s, 4s, ...).
    Any other error is raised immediately; the last overload error is raised
    once the attempts are exhausted.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    for attempt in range(1, max_attempts + 1):
        try:
            return fn()
        except Exception as e:
            if not is_overload_error(e) or attempt >= max_attempts:
                raise
            wait_time = base_delay * attempt
            logger.warning(
                f"Model overloaded. Retrying in {wait_time:.1f}s... (Attempt {attempt}/{max_attempts})"
            )
            time.sleep(wait_time)
