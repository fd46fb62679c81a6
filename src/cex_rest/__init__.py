"""
cex_rest - declarative REST operation engine for exchange clients.

Operations are declared once as OperationSpec values and executed through
RestManager.invoke(), which renders a deterministic canonical request,
signs it, applies rate limiting and retry, and decodes the typed response.
"""

from .networking.http import (
    HTTPMethod,
    ParamRole,
    ParamShape,
    OperationSpec,
    CanonicalRequestBuilder,
    HmacParamsDigest,
    RateLimiter,
    RetryConfig,
    ResilienceRegistries,
    ResponseDecoder,
    RestManager,
)

__version__ = "1.0.0"

__all__ = [
    'HTTPMethod',
    'ParamRole',
    'ParamShape',
    'OperationSpec',
    'CanonicalRequestBuilder',
    'HmacParamsDigest',
    'RateLimiter',
    'RetryConfig',
    'ResilienceRegistries',
    'ResponseDecoder',
    'RestManager',
]
