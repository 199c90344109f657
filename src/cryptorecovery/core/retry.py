"""Bounded retry and call pacing for the lookup service.

The public price API is free, slow at times and strictly rate limited, so
every request goes through :class:`RateLimiter` and a bounded
:func:`retry` with exponential backoff.
"""

from __future__ import annotations

import functools
import logging
import threading
import time
from collections.abc import Callable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


# ---------------------------------------------------------------------------
# Bounded retry decorator
# ---------------------------------------------------------------------------


def retry(
    max_retries: int = 2,
    base_delay: float = 1.0,
    max_delay: float = 20.0,
    backoff_factor: float = 2.0,
    exceptions: tuple[type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], None] | None = None,
) -> Callable[[F], F]:
    """Retry the wrapped call on *exceptions* with exponential backoff.

    The call is attempted ``max_retries + 1`` times in total; the last
    exception is re-raised unchanged once attempts are exhausted.  *sleep*
    defaults to :func:`time.sleep`, looked up at call time.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            attempts = max_retries + 1
            delay = base_delay
            for attempt in range(1, attempts + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as exc:
                    if attempt == attempts:
                        logger.error(
                            "%s failed after %d attempts: %s",
                            func.__qualname__,
                            attempts,
                            exc,
                        )
                        raise
                    logger.warning(
                        "%s attempt %d/%d failed: %s; retrying in %.1fs",
                        func.__qualname__,
                        attempt,
                        attempts,
                        exc,
                        delay,
                    )
                    (sleep or time.sleep)(delay)
                    delay = min(delay * backoff_factor, max_delay)
            raise AssertionError("unreachable")  # pragma: no cover

        return wrapper  # type: ignore[return-value]

    return decorator


# ---------------------------------------------------------------------------
# Minimum-interval rate limiter
# ---------------------------------------------------------------------------


class RateLimiter:
    """Thread-safe pacing: at most *calls_per_second* calls are let through.

    Callers that arrive too early block until the minimum interval since
    the previous call has elapsed.
    """

    def __init__(
        self,
        calls_per_second: float = 0.5,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if calls_per_second <= 0:
            raise ValueError("calls_per_second must be positive")
        self._min_interval = 1.0 / calls_per_second
        self._clock = clock
        self._sleep = sleep
        self._last_call: float | None = None
        self._lock = threading.Lock()

    @property
    def min_interval(self) -> float:
        return self._min_interval

    def acquire(self) -> None:
        """Block until a call is allowed."""
        with self._lock:
            if self._last_call is not None:
                wait = self._min_interval - (self._clock() - self._last_call)
                if wait > 0:
                    self._sleep(wait)
            self._last_call = self._clock()
