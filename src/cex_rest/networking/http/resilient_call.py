"""
Resilient Call

Decorates one fallible async action with rate limiting and retry:
the limiters are acquired before every attempt, then the action runs
inside the retry policy.
"""

from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

from cex_rest.logging import HFTLoggerInterface, get_logger
from .strategies.rate_limit import RateLimiter
from .strategies.retry import RetryConfig, RetryPolicy, is_retryable

T = TypeVar('T')

SINGLE_ATTEMPT = RetryConfig(max_attempts=1, initial_delay=0.0)


class ResilientCall:
    """
    Builder for one resilient execution.

    Usage:
        result = await (ResilientCall(send)
                        .with_rate_limiters([weight_limiter])
                        .with_retry(registries.retry("requestWeight"))
                        .call())
    """

    def __init__(self, action: Callable[[int], Awaitable[T]], logger: Optional[HFTLoggerInterface] = None):
        self._action = action
        self._retry_config = SINGLE_ATTEMPT
        self._limiters: List[RateLimiter] = []
        self._predicate = is_retryable
        self._sleep = None
        self.logger = logger or get_logger('rest.resilient_call')
        self.attempts = 0
        self.rate_limit_wait = 0.0

    def with_retry(self, config: RetryConfig,
                   predicate: Callable[[BaseException], bool] = is_retryable) -> 'ResilientCall':
        self._retry_config = config
        self._predicate = predicate
        return self

    def with_rate_limiters(self, limiters: Sequence[Optional[RateLimiter]]) -> 'ResilientCall':
        self._limiters = [limiter for limiter in limiters if limiter is not None]
        return self

    def with_sleep(self, sleep: Callable[[float], Awaitable[None]]) -> 'ResilientCall':
        """Override the retry delay sleep (tests)."""
        self._sleep = sleep
        return self

    async def _attempt(self, attempt: int) -> T:
        self.attempts = attempt
        for limiter in self._limiters:
            waited = await limiter.acquire()
            if waited > 0:
                self.rate_limit_wait += waited
                self.logger.debug("Rate limiter delayed attempt",
                                  limiter=limiter.name, waited_s=waited, attempt=attempt)
        return await self._action(attempt)

    async def call(self) -> T:
        kwargs = {'predicate': self._predicate, 'logger': self.logger}
        if self._sleep is not None:
            kwargs['sleep'] = self._sleep
        policy = RetryPolicy(self._retry_config, **kwargs)
        return await policy.execute(self._attempt)
