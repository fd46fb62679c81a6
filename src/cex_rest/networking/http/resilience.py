"""
Resilience Registries

Named retry configurations and rate limiters, looked up by category key
(e.g. "requestWeight", "orders"). Built once per client; read-only after
construction except for the limiters' own token counts.
"""

from typing import Dict, Mapping, Optional

from cex_rest.config.structs import ExchangeConfig, ResilienceSpecification
from cex_rest.exceptions import RetryConfigNotFound
from .strategies.rate_limit import RateLimiter
from .strategies.retry import RetryConfig

GLOBAL = "global"
NON_IDEMPOTENT = "non_idempotent"

DEFAULT_RETRY_CONFIGS = {
    GLOBAL: RetryConfig(max_attempts=3, initial_delay=0.05, multiplier=4.0),
    NON_IDEMPOTENT: RetryConfig(max_attempts=1, initial_delay=0.05, multiplier=1.0),
}

# category -> (capacity, refill_period); a fresh limiter is built per registry
DEFAULT_RATE_LIMITS = {
    GLOBAL: (1200, 60.0),
}


class ResilienceRegistries:
    """Category -> RetryConfig and category -> RateLimiter maps."""

    def __init__(self,
                 retry_configs: Optional[Mapping[str, RetryConfig]] = None,
                 rate_limiters: Optional[Mapping[str, RateLimiter]] = None,
                 specification: Optional[ResilienceSpecification] = None):
        self._retry_configs: Dict[str, RetryConfig] = dict(DEFAULT_RETRY_CONFIGS)
        self._retry_configs.update(retry_configs or {})
        self._rate_limiters: Dict[str, RateLimiter] = {
            category: RateLimiter(capacity, refill_period, name=category)
            for category, (capacity, refill_period) in DEFAULT_RATE_LIMITS.items()
        }
        self._rate_limiters.update(rate_limiters or {})
        self.specification = specification or ResilienceSpecification()

    @classmethod
    def from_config(cls, config: ExchangeConfig) -> 'ResilienceRegistries':
        retry_configs = {
            category: RetryConfig(
                max_attempts=definition.max_attempts,
                initial_delay=definition.initial_delay,
                multiplier=definition.multiplier,
                max_delay=definition.max_delay,
            )
            for category, definition in config.retries.items()
        }
        rate_limiters = {
            category: RateLimiter(definition.capacity, definition.refill_period, name=category)
            for category, definition in config.rate_limits.items()
        }
        return cls(retry_configs, rate_limiters, config.resilience)

    def register_retry(self, category: str, config: RetryConfig) -> None:
        self._retry_configs[category] = config

    def register_rate_limiter(self, category: str, limiter: RateLimiter) -> None:
        self._rate_limiters[category] = limiter

    def retry(self, category: str) -> RetryConfig:
        """
        Retry config of ``category``.

        Raises:
            RetryConfigNotFound: unknown category
        """
        try:
            return self._retry_configs[category]
        except KeyError:
            raise RetryConfigNotFound(category) from None

    def rate_limiter(self, category: str) -> Optional[RateLimiter]:
        """Limiter of ``category`` or None when the category is not throttled."""
        return self._rate_limiters.get(category)

    @property
    def retry_categories(self):
        return sorted(self._retry_configs)

    @property
    def rate_limiter_categories(self):
        return sorted(self._rate_limiters)
