"""
Token bucket rate limiter for outbound catalog calls.

Hey future me - this paces the track fetches the BoundedTaskExecutor runs. The semaphore in the
executor caps how many fetches are in flight at once; this bucket caps how many START per second.
Both are needed: four slow fetches can stay under the concurrency cap while still hammering the
catalog if each one returns instantly.

ALGORITHM: Token Bucket
- Bucket holds max_tokens (burst)
- Tokens refill at refill_rate per second
- Each call consumes 1 token
- Empty bucket: wait until a token is available

USAGE:
    limiter = RateLimiter.from_fetch_settings(settings.fetch)

    async with limiter:
        tracks = await track_provider.get_tracks(release_id)
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field

from releasebot.config import FetchSettings

logger = logging.getLogger(__name__)


@dataclass
class RateLimiterConfig:
    """Configuration for rate limiter.

    Defaults match FetchSettings: 2 req/sec sustained, 10 burst.
    """

    max_tokens: int = 10  # Bucket size
    refill_rate: float = 2.0  # Tokens per second


@dataclass
class RateLimiter:
    """Token bucket rate limiter.

    Attributes:
        config: Rate limiter configuration
        name: Label used in log lines
        _tokens: Current available tokens
        _last_refill: Last time tokens were refilled
        _lock: Async lock for task-safety
    """

    config: RateLimiterConfig = field(default_factory=RateLimiterConfig)
    name: str = "default"

    # Internal state (not in __init__ signature)
    _tokens: float = field(default=0.0, init=False)
    _last_refill: float = field(default_factory=time.monotonic, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    def __post_init__(self) -> None:
        """Initialize tokens to max capacity."""
        self._tokens = float(self.config.max_tokens)

    @classmethod
    def from_fetch_settings(cls, settings: FetchSettings) -> "RateLimiter":
        """Create a limiter from the fetch settings group."""
        return cls(
            config=RateLimiterConfig(
                max_tokens=settings.burst,
                refill_rate=settings.requests_per_second,
            ),
            name="track_fetch",
        )

    def _refill_tokens(self) -> None:
        """Refill tokens based on elapsed time."""
        now = time.monotonic()
        elapsed = now - self._last_refill

        new_tokens = elapsed * self.config.refill_rate
        self._tokens = min(self.config.max_tokens, self._tokens + new_tokens)
        self._last_refill = now

    async def acquire(self) -> None:
        """Acquire one token, waiting if necessary."""
        async with self._lock:
            self._refill_tokens()

            while self._tokens < 1.0:
                wait_time = (1.0 - self._tokens) / self.config.refill_rate
                logger.debug(
                    f"RateLimiter[{self.name}]: No tokens available, waiting {wait_time:.2f}s"
                )

                # Release lock while waiting
                self._lock.release()
                try:
                    await asyncio.sleep(wait_time)
                finally:
                    await self._lock.acquire()

                self._refill_tokens()

            self._tokens -= 1.0

    async def __aenter__(self) -> "RateLimiter":
        """Enter async context - acquire token."""
        await self.acquire()
        return self

    async def __aexit__(
        self, exc_type: type | None, exc_val: Exception | None, exc_tb: object
    ) -> None:
        """Exit async context (token already consumed)."""


__all__ = [
    "RateLimiter",
    "RateLimiterConfig",
]
