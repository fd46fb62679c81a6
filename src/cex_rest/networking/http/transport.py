"""
HTTP Transport

Thin collaborator that sends a PreparedRequest and returns the raw status
and body. Connection pooling and TLS are delegated to aiohttp.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Optional

import aiohttp

from cex_rest.exceptions import ExchangeRestError, HttpStatusError, TransportError
from .strategies.auth import render_pairs
from .strategies.structs import RequestContext
from .structs import HttpResponse, PreparedRequest


class HttpTransport(ABC):
    """Sends one request. Client library errors are mapped by ``map_client_error``."""

    @abstractmethod
    async def send(self, request: PreparedRequest) -> HttpResponse:
        pass

    async def close(self) -> None:
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


def build_url(base_url: str, request: PreparedRequest) -> str:
    """``base_url + path`` plus the URL-encoded query in canonical order."""
    url = f"{base_url.rstrip('/')}{request.path}"
    if request.query:
        url = f"{url}?{render_pairs(request.query, url_encode=True)}"
    return url


def map_client_error(request: PreparedRequest, error: BaseException) -> ExchangeRestError:
    """
    Translate an aiohttp or timeout error into the REST error taxonomy.

    Connection, payload and timeout failures are transient. A
    ClientResponseError (including TooManyRedirects) carries an HTTP status
    and becomes HttpStatusError. Any other client error, e.g. InvalidURL,
    is a TransportError that is not retried.
    """
    where = f"{request.method.value} {request.path}"
    if isinstance(error, aiohttp.ClientResponseError):
        return HttpStatusError(error.status, f"{where} failed: {error.message or type(error).__name__}")
    if isinstance(error, (aiohttp.ClientConnectionError, aiohttp.ClientPayloadError, asyncio.TimeoutError)):
        return TransportError(f"{where} failed: {error!r}")
    return TransportError(f"{where} failed: {error!r}", transient=False)


class AiohttpTransport(HttpTransport):
    """aiohttp-backed transport with a lazily created pooled session."""

    def __init__(self, context: RequestContext):
        self.context = context
        self._session: Optional[aiohttp.ClientSession] = None
        self._semaphore: Optional[asyncio.Semaphore] = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            context = self.context
            connector = aiohttp.TCPConnector(
                limit=100,
                limit_per_host=context.max_concurrent,
                ttl_dns_cache=300,
                use_dns_cache=True,
                keepalive_timeout=context.keepalive_timeout,
                force_close=False,
            )
            timeout = aiohttp.ClientTimeout(
                total=context.timeout,
                connect=context.connection_timeout,
                sock_read=context.read_timeout,
                sock_connect=context.connection_timeout,
            )
            default_headers = {
                'User-Agent': 'cex-rest-core/1.0',
                'Accept': 'application/json',
                'Accept-Encoding': 'gzip, deflate',
                'Connection': 'keep-alive',
            }
            if context.default_headers:
                default_headers.update(context.default_headers)

            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=timeout,
                headers=default_headers,
            )
            self._semaphore = asyncio.Semaphore(context.max_concurrent)
        return self._session

    async def send(self, request: PreparedRequest) -> HttpResponse:
        session = await self._ensure_session()
        # Query is pre-encoded in canonical order; aiohttp requoting leaves it intact.
        url = build_url(self.context.base_url, request)
        data = request.body.encode('utf-8') if request.body is not None else None

        async with self._semaphore:
            async with session.request(
                request.method.value,
                url,
                data=data,
                headers=request.header_dict(),
                proxy=self.context.proxy,
            ) as response:
                body = await response.read()
                return HttpResponse(status=response.status, body=body, headers=dict(response.headers))

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
