"""
Binance Resilience Presets

Default rate limiters and retry categories for Binance spot and USD-M
futures clients. Limits mirror the exchange's published defaults; the live
values can be read from ``exchange_info().rateLimits``.
"""

from typing import List

from cex_rest.config.structs import ResilienceSpecification
from cex_rest.networking.http import RateLimiter, ResilienceRegistries, RetryConfig
from .structs import BinanceRateLimit

REQUEST_WEIGHT = "requestWeight"
RAW_REQUESTS = "rawRequests"
ORDERS_PER_SECOND = "ordersPerSecond"
ORDERS_PER_10_SECONDS = "ordersPer10Seconds"
ORDERS_PER_MINUTE = "ordersPerMinute"

# Retry category for order placement; a retried order could be placed twice
ORDERS = "orders"

UNLIMITED = 2 ** 32 - 1

_INTERVAL_SECONDS = {"SECOND": 1, "MINUTE": 60, "HOUR": 3600, "DAY": 86400}

_RATE_LIMIT_CATEGORIES = {
    "REQUEST_WEIGHT": REQUEST_WEIGHT,
    "RAW_REQUESTS": RAW_REQUESTS,
}


def _retry_configs():
    return {
        REQUEST_WEIGHT: RetryConfig(max_attempts=3, initial_delay=0.05, multiplier=4.0),
        ORDERS: RetryConfig(max_attempts=1, initial_delay=0.05),
    }


def new_spot(specification: ResilienceSpecification = None) -> ResilienceRegistries:
    return ResilienceRegistries(
        retry_configs=_retry_configs(),
        rate_limiters={
            REQUEST_WEIGHT: RateLimiter(6000, 60.0, name=REQUEST_WEIGHT),
            ORDERS_PER_SECOND: RateLimiter(10, 1.0, name=ORDERS_PER_SECOND),
            RAW_REQUESTS: RateLimiter(61000, 300.0, name=RAW_REQUESTS),
        },
        specification=specification,
    )


def new_futures(specification: ResilienceSpecification = None) -> ResilienceRegistries:
    return ResilienceRegistries(
        retry_configs=_retry_configs(),
        rate_limiters={
            REQUEST_WEIGHT: RateLimiter(2400, 60.0, name=REQUEST_WEIGHT),
            ORDERS_PER_10_SECONDS: RateLimiter(300, 10.0, name=ORDERS_PER_10_SECONDS),
            ORDERS_PER_MINUTE: RateLimiter(1200, 60.0, name=ORDERS_PER_MINUTE),
            # Spot categories are not throttled on futures
            ORDERS_PER_SECOND: RateLimiter(UNLIMITED, 1.0, name=ORDERS_PER_SECOND),
            RAW_REQUESTS: RateLimiter(UNLIMITED, 1.0, name=RAW_REQUESTS),
        },
        specification=specification,
    )


def apply_exchange_limits(registries: ResilienceRegistries, limits: List[BinanceRateLimit]) -> List[str]:
    """
    Replace preset limiters with the limits reported by exchangeInfo.

    Returns:
        Categories that were updated
    """
    updated = []
    for limit in limits:
        period = _INTERVAL_SECONDS.get(limit.interval)
        if period is None:
            continue
        period *= limit.interval_num

        if limit.rate_limit_type == "ORDERS":
            category = {1: ORDERS_PER_SECOND, 10: ORDERS_PER_10_SECONDS, 60: ORDERS_PER_MINUTE}.get(period)
        else:
            category = _RATE_LIMIT_CATEGORIES.get(limit.rate_limit_type)
        if category is None:
            continue

        registries.register_rate_limiter(category, RateLimiter(limit.limit, float(period), name=category))
        updated.append(category)
    return updated
