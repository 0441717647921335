"""Retry utility with capped exponential backoff.

Used for engine readiness probes. Inference calls are never retried: a
retried chunk would report the sum of its attempts as processing time.
"""

import asyncio
import logging
from collections.abc import Callable
from functools import wraps
from typing import Any

logger = logging.getLogger(__name__)


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Return the delay before retry number ``attempt`` (0-based)."""
    return min(base_delay * (2**attempt), max_delay)


def retry_with_backoff(
    max_retries: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 8.0,
    retryable_exceptions: tuple[type[Exception], ...] | None = None,
    stage: str | None = None,
) -> Callable:
    """Decorator for retrying async functions with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts (default 3).
        base_delay: Delay in seconds before the first retry (default 0.5).
        max_delay: Upper bound for any single delay (default 8.0).
        retryable_exceptions: Exception types eligible for retry. If None,
            every exception is retried. Other exceptions are re-raised
            immediately.
        stage: Label attached to retry log records (defaults to the
            wrapped function's name).

    Returns:
        Decorator that wraps an async function with retry logic. The
        exception finally raised carries a ``retry_count`` attribute.
    """

    def decorator(func: Callable) -> Callable:
        label = stage or func.__name__

        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except Exception as exc:
                    permanent = retryable_exceptions is not None and not isinstance(
                        exc, retryable_exceptions
                    )
                    if permanent or attempt == max_retries:
                        exc.retry_count = attempt  # type: ignore[attr-defined]
                        raise
                    delay = backoff_delay(attempt, base_delay, max_delay)
                    logger.warning(
                        "Retry %d/%d for %s after %.1fs: %s",
                        attempt + 1,
                        max_retries,
                        label,
                        delay,
                        exc,
                        extra={"stage": label, "error": str(exc)},
                    )
                    await asyncio.sleep(delay)
            raise AssertionError("unreachable")  # pragma: no cover

        return wrapper

    return decorator
