"""
Retry Policy

Bounded re-attempt with exponential backoff for one fallible async action.
Attempts within one call are strictly sequential.
"""

import asyncio
import sys
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

import aiohttp

from cex_rest.exceptions import ExchangeRestError
from cex_rest.logging import HFTLoggerInterface, get_logger

T = TypeVar('T')

MAX_DELAY = sys.float_info.max


@dataclass(frozen=True)
class RetryConfig:
    """
    Retry settings of one category.

    Attributes:
        max_attempts: Total attempts including the first one (>= 1)
        initial_delay: Delay in seconds before the second attempt
        multiplier: Backoff factor applied per further attempt
        max_delay: Optional cap on a single delay
    """
    max_attempts: int
    initial_delay: float
    multiplier: float = 1.0
    max_delay: Optional[float] = None

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.initial_delay < 0:
            raise ValueError("initial_delay cannot be negative")
        if self.multiplier <= 0:
            raise ValueError("multiplier must be positive")
        if self.max_delay is not None and self.max_delay < 0:
            raise ValueError("max_delay cannot be negative")

    def delay_for_attempt(self, attempt: int) -> float:
        """Delay after the 0-indexed failed ``attempt``; saturates instead of overflowing."""
        cap = self.max_delay if self.max_delay is not None else MAX_DELAY
        try:
            delay = self.initial_delay * (self.multiplier ** attempt)
        except OverflowError:
            return cap
        return min(delay, cap)


def is_retryable(error: BaseException) -> bool:
    """Default predicate: transport failures and explicitly transient errors only."""
    if isinstance(error, ExchangeRestError):
        return error.is_transient
    return isinstance(error, (aiohttp.ClientConnectionError, asyncio.TimeoutError))


class RetryPolicy:
    """Executes an operation up to ``config.max_attempts`` times.

    Holds per-call attempt state; create one policy per invocation.
    """

    def __init__(
        self,
        config: RetryConfig,
        predicate: Callable[[BaseException], bool] = is_retryable,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        logger: Optional[HFTLoggerInterface] = None,
    ):
        self.config = config
        self.predicate = predicate
        self._sleep = sleep
        self.logger = logger or get_logger('rest.retry')
        self.last_attempts = 0

    async def execute(self, operation: Callable[[int], Awaitable[T]]) -> T:
        """
        Run ``operation(attempt)`` until it succeeds or the policy gives up.

        ``attempt`` is 1-based. The last error is re-raised unchanged.
        """
        attempt = 0
        while True:
            attempt += 1
            self.last_attempts = attempt
            try:
                return await operation(attempt)
            except Exception as e:
                if attempt >= self.config.max_attempts or not self.predicate(e):
                    raise

                delay = self.config.delay_for_attempt(attempt - 1)
                self.logger.warning("Retrying after failure",
                                    attempt=attempt,
                                    max_attempts=self.config.max_attempts,
                                    delay_s=delay,
                                    error=str(e))
                await self._sleep(delay)
