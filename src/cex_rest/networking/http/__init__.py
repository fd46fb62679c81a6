"""
REST Operation Engine

Declarative operations, canonical request rendering, signing, rate
limiting, retry and the resilient executor that composes them.
"""

from .structs import HTTPMethod, CanonicalPair, PreparedRequest, HttpResponse
from .operation import (
    RoleKind,
    ParamRole,
    ParamShape,
    Param,
    ParamSpec,
    OperationSpec,
    OperationSpecBuilder,
    classify_params,
    default_role,
)
from .canonical import (
    SigningProfile,
    RestInvocation,
    CanonicalRequest,
    CanonicalRequestBuilder,
    render_value,
)
from .time_provider import TimestampProvider, MonotonicTimestamp, FixedTimestamp, ServerSyncedTimestamp
from .strategies import (
    ParamsDigest,
    HmacParamsDigest,
    RateLimiter,
    RateLimiterState,
    RetryConfig,
    RetryPolicy,
    is_retryable,
    ExceptionHandlerStrategy,
    RequestContext,
    RequestMetrics,
)
from .resilience import ResilienceRegistries, GLOBAL, NON_IDEMPOTENT
from .resilient_call import ResilientCall
from .decoder import ResponseDecoder
from .transport import HttpTransport, AiohttpTransport, build_url, map_client_error
from .rest_manager import RestManager

__all__ = [
    'HTTPMethod', 'CanonicalPair', 'PreparedRequest', 'HttpResponse',
    'RoleKind', 'ParamRole', 'ParamShape', 'Param', 'ParamSpec',
    'OperationSpec', 'OperationSpecBuilder', 'classify_params', 'default_role',
    'SigningProfile', 'RestInvocation', 'CanonicalRequest', 'CanonicalRequestBuilder', 'render_value',
    'TimestampProvider', 'MonotonicTimestamp', 'FixedTimestamp', 'ServerSyncedTimestamp',
    'ParamsDigest', 'HmacParamsDigest', 'RateLimiter', 'RateLimiterState',
    'RetryConfig', 'RetryPolicy', 'is_retryable', 'ExceptionHandlerStrategy',
    'RequestContext', 'RequestMetrics',
    'ResilienceRegistries', 'GLOBAL', 'NON_IDEMPOTENT', 'ResilientCall',
    'ResponseDecoder', 'HttpTransport', 'AiohttpTransport', 'build_url', 'map_client_error', 'RestManager',
]
