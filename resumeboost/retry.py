"""Retry with exponential backoff for flaky remote calls (stdlib only)."""
from __future__ import annotations

import functools
import logging
import random
import time
from typing import Any, Callable, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def backoff_delays(
    max_attempts: int,
    base_delay: float = 1.0,
    backoff_factor: float = 2.0,
    max_delay: float = 30.0,
) -> list[float]:
    """Sleep durations between attempts (one fewer than the attempt count)."""
    return [
        min(base_delay * (backoff_factor ** i), max_delay)
        for i in range(max(max_attempts - 1, 0))
    ]


def call_with_retry(
    fn: Callable[..., T],
    *args: Any,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    backoff_factor: float = 2.0,
    jitter: bool = False,
    retryable: Tuple[Type[BaseException], ...] = (Exception,),
    **kwargs: Any,
) -> T:
    """Call ``fn`` and retry on ``retryable`` exceptions; anything else propagates at once."""
    name = getattr(fn, "__qualname__", repr(fn))
    delays = backoff_delays(max_attempts, base_delay, backoff_factor, max_delay)
    for attempt in range(1, max_attempts + 1):
        try:
            return fn(*args, **kwargs)
        except retryable as exc:
            if attempt == max_attempts:
                logger.error("%s failed after %d attempts: %s", name, max_attempts, exc)
                raise
            delay = delays[attempt - 1]
            if jitter:
                delay *= 0.5 + random.random()
            logger.warning(
                "%s attempt %d/%d failed (%s), retrying in %.1fs",
                name,
                attempt,
                max_attempts,
                exc,
                delay,
            )
            time.sleep(delay)
    raise RuntimeError(f"{name}: max_attempts must be >= 1")


def retry(
    *,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    backoff_factor: float = 2.0,
    jitter: bool = True,
    retryable: Tuple[Type[BaseException], ...] = (Exception,),
) -> Callable:
    """Decorator form of :func:`call_with_retry`."""

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            return call_with_retry(
                fn,
                *args,
                max_attempts=max_attempts,
                base_delay=base_delay,
                max_delay=max_delay,
                backoff_factor=backoff_factor,
                jitter=jitter,
                retryable=retryable,
                **kwargs,
            )

        return wrapper

    return decorator
