"""
REST Strategies

Pluggable pieces composed by the executor: request signing, rate limiting,
retry and exchange-specific error translation.
"""

from .auth import ParamsDigest, HmacParamsDigest, render_pairs
from .rate_limit import RateLimiter, RateLimiterState
from .retry import RetryConfig, RetryPolicy, is_retryable
from .exception_handler import ExceptionHandlerStrategy
from .structs import RequestContext, RequestMetrics

__all__ = [
    'ParamsDigest',
    'HmacParamsDigest',
    'render_pairs',
    'RateLimiter',
    'RateLimiterState',
    'RetryConfig',
    'RetryPolicy',
    'is_retryable',
    'ExceptionHandlerStrategy',
    'RequestContext',
    'RequestMetrics',
]
