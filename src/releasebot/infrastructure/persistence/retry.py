# Hey future me - this is THE FIX for "database is locked" errors!
#
# SQLite can only have ONE writer at a time. If something else (a second bot instance, a
# sqlite3 shell left open) holds the write lock, our commit gets "database is locked".
# Those locks are TEMPORARY - waiting and retrying almost always works.
#
# USAGE:
#   @with_db_retry(max_attempts=3)
#   async def add_members(self, namespace, members):
#       ...
"""Database retry utilities for handling SQLite lock errors."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import ParamSpec, TypeVar

from sqlalchemy.exc import OperationalError

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


def with_db_retry(
    max_attempts: int = 3,
    initial_delay: float = 0.5,
    max_delay: float = 5.0,
    backoff_factor: float = 2.0,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Decorator for retrying database operations on lock errors.

    The backoff is exponential: 0.5s → 1s → 2s → 4s (capped at max_delay).

    Args:
        max_attempts: Maximum attempts (default: 3)
        initial_delay: Initial delay in seconds (default: 0.5)
        max_delay: Maximum delay cap in seconds (default: 5.0)
        backoff_factor: Multiply delay by this each retry (default: 2.0)

    Returns:
        Decorated coroutine function with automatic retry logic.

    Notes:
        - Only retries on "locked"/"busy" errors
        - Other OperationalErrors are raised immediately
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            delay = initial_delay
            for attempt in range(1, max_attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except OperationalError as e:
                    error_msg = str(e).lower()
                    if "locked" not in error_msg and "busy" not in error_msg:
                        raise
                    if attempt == max_attempts:
                        logger.error(
                            "Database locked after %d attempts, giving up: %s",
                            max_attempts,
                            func.__qualname__,
                        )
                        raise
                    logger.warning(
                        "Database locked (attempt %d/%d), retrying in %.1fs: %s",
                        attempt,
                        max_attempts,
                        delay,
                        func.__qualname__,
                    )
                    await asyncio.sleep(delay)
                    delay = min(delay * backoff_factor, max_delay)
            raise RuntimeError("unreachable")  # pragma: no cover

        return wrapper

    return decorator


__all__ = ["with_db_retry"]
