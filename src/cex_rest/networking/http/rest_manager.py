"""
REST Operation Executor

Generic invoker for declared operations. Per invocation it resolves the
operation's retry config and rate limiters by category, then for every
attempt: acquires the limiters, renders and signs the canonical request
with a fresh timestamp, sends it through the transport and decodes the
response. Failures surface as ExchangeRestError subclasses carrying the
category and the number of attempts made.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Optional

import aiohttp

from cex_rest.config.structs import ExchangeConfig
from cex_rest.exceptions import ExchangeRestError
from cex_rest.logging import HFTLoggerInterface, get_logger
from .canonical import CanonicalRequestBuilder
from .decoder import ResponseDecoder
from .operation import OperationSpec
from .resilience import ResilienceRegistries
from .resilient_call import ResilientCall, SINGLE_ATTEMPT
from .strategies.auth import HmacParamsDigest, ParamsDigest
from .strategies.retry import is_retryable
from .strategies.structs import RequestContext, RequestMetrics
from .structs import HttpResponse, PreparedRequest
from .time_provider import MonotonicTimestamp, TimestampProvider
from .transport import AiohttpTransport, HttpTransport, map_client_error


class RestManager:
    """
    Resilient executor for OperationSpec invocations.

    Usage:
        async with RestManager.from_config(config) as rest:
            server_time = await rest.invoke(TIME)
    """

    def __init__(
        self,
        transport: HttpTransport,
        registries: Optional[ResilienceRegistries] = None,
        signer: Optional[ParamsDigest] = None,
        timestamp_provider: Optional[TimestampProvider] = None,
        builder: Optional[CanonicalRequestBuilder] = None,
        decoder: Optional[ResponseDecoder] = None,
        retry_predicate: Callable[[BaseException], bool] = is_retryable,
        logger: Optional[HFTLoggerInterface] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        self.transport = transport
        self.registries = registries or ResilienceRegistries()
        self.signer = signer
        self.timestamp_provider = timestamp_provider or MonotonicTimestamp()
        self.builder = builder or CanonicalRequestBuilder()
        self.decoder = decoder or ResponseDecoder()
        self.retry_predicate = retry_predicate
        self.logger = logger or get_logger('rest.executor')

        self._metrics = RequestMetrics()
        self._sleep = sleep

    @classmethod
    def from_config(cls, config: ExchangeConfig, **kwargs) -> 'RestManager':
        """Build transport, registries and signer from an ExchangeConfig."""
        signer = kwargs.pop('signer', None)
        credentials = config.credentials
        if signer is None and credentials is not None and credentials.secret_key:
            if credentials.secret_encoding == 'base64':
                signer = HmacParamsDigest.from_base64(credentials.secret_key)
            else:
                signer = HmacParamsDigest(credentials.secret_key)

        kwargs.setdefault('registries', ResilienceRegistries.from_config(config))
        kwargs.setdefault('logger', get_logger(f'rest.executor.{config.name}'))
        return cls(
            transport=AiohttpTransport(RequestContext.from_config(config)),
            signer=signer,
            **kwargs,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        await self.transport.close()

    def prepare(self, spec: OperationSpec, **args: Any) -> PreparedRequest:
        """Render and sign without sending. Useful for inspecting the wire form."""
        return self.builder.build(spec, args, self.timestamp_provider, self.signer)

    async def invoke(self, spec: OperationSpec, **args: Any) -> Any:
        """
        Execute ``spec`` with keyword arguments named after its parameters.

        Returns:
            Response decoded into ``spec.response_type`` (raw JSON when None)

        Raises:
            RetryConfigNotFound: unknown retry category, before any attempt
            InvalidOperationSpec, InvalidKey: local rendering/signing failure
            ExchangeRestError: transport, HTTP status, business or decoding failure
        """
        category = spec.retry_category
        retry_config = self.registries.retry(category)

        specification = self.registries.specification
        if not specification.retry_enabled:
            retry_config = SINGLE_ATTEMPT
        limiters = []
        if specification.rate_limiter_enabled:
            limiters = [self.registries.rate_limiter(c) for c in spec.limiter_categories]

        ts_param = spec.timestamp_param
        if ts_param is not None and args.get(ts_param.name) is None:
            await self.timestamp_provider.sync()

        async def attempt(number: int) -> Any:
            request = self.builder.build(spec, args, self.timestamp_provider, self.signer)
            self.logger.debug("Sending request",
                              operation=spec.name, method=request.method.value,
                              path=request.path, attempt=number, category=category)
            response = await self._send(request)
            return self.decoder.decode(response, spec.response_type)

        call = (ResilientCall(attempt, self.logger)
                .with_rate_limiters(limiters)
                .with_retry(retry_config, self.retry_predicate))
        if self._sleep is not None:
            call.with_sleep(self._sleep)

        start_time = time.perf_counter()
        try:
            result = await call.call()
        except ExchangeRestError as e:
            self._record(spec, call, start_time, success=False)
            self.logger.error("Request failed",
                              operation=spec.name, category=category,
                              attempts=call.attempts, error=str(e))
            raise e.with_context(category, call.attempts)

        self._record(spec, call, start_time, success=True)
        return result

    async def _send(self, request: PreparedRequest) -> HttpResponse:
        try:
            return await self.transport.send(request)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise map_client_error(request, e) from e

    def _record(self, spec: OperationSpec, call: ResilientCall, start_time: float, success: bool) -> None:
        latency_ms = (time.perf_counter() - start_time) * 1000
        metrics = self._metrics
        metrics.total_requests += 1
        if success:
            metrics.successful_requests += 1
        else:
            metrics.failed_requests += 1
        metrics.retried_attempts += max(call.attempts - 1, 0)
        if call.rate_limit_wait > 0:
            metrics.rate_limit_waits += 1
        metrics.avg_latency_ms += (latency_ms - metrics.avg_latency_ms) / metrics.total_requests

        self.logger.metric("rest_request_latency_ms", latency_ms,
                           operation=spec.name, category=spec.retry_category, success=success)
        if call.attempts > 1:
            self.logger.metric("rest_retry_count", call.attempts - 1, operation=spec.name)
        if call.rate_limit_wait > 0:
            self.logger.metric("rest_rate_limit_wait_ms", call.rate_limit_wait * 1000, operation=spec.name)

    def get_metrics(self) -> RequestMetrics:
        return self._metrics

    def reset_metrics(self) -> None:
        self._metrics = RequestMetrics()
