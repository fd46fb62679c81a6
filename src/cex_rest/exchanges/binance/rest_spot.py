"""
Binance Spot REST Binding

Operations are declared once as module-level OperationSpec values; the
client methods are thin wrappers that assemble keyword arguments and call
``RestManager.invoke``.

Signed endpoints send the API key in ``X-MBX-APIKEY`` and append
``signature`` (HMAC-SHA256 hex over query string + body) as the last query
parameter. Timestamps come from a server-synchronized clock.
"""

from decimal import Decimal
from typing import Any, List, Optional, Union

from cex_rest.config.structs import ExchangeConfig
from cex_rest.networking.http import (
    HTTPMethod,
    OperationSpec,
    OperationSpecBuilder,
    ParamShape,
    ResilienceRegistries,
    RestManager,
    ServerSyncedTimestamp,
)
from cex_rest.logging import get_exchange_logger
from . import resilience
from .resilience import ORDERS, ORDERS_PER_SECOND, REQUEST_WEIGHT, RAW_REQUESTS
from .structs import (
    BinanceExchangeInfo,
    BinanceKline,
    BinanceOrder,
    BinanceSystemStatus,
    BinanceTime,
    OrderSide,
    OrderType,
    TimeInForce,
)

SPOT_URL = "https://api.binance.com"
SANDBOX_SPOT_URL = "https://testnet.binance.vision"
API_KEY_HEADER = "X-MBX-APIKEY"

Number = Union[str, int, float, Decimal]


def _public(name: str, path: str) -> OperationSpecBuilder:
    return (OperationSpec.builder(name, HTTPMethod.GET, path)
            .category(REQUEST_WEIGHT, rate_limits=[REQUEST_WEIGHT, RAW_REQUESTS]))


PING = _public("ping", "/api/v3/ping").build()

TIME = _public("time", "/api/v3/time").returns(BinanceTime).build()

SYSTEM_STATUS = _public("system_status", "/sapi/v1/system/status").returns(BinanceSystemStatus).build()

EXCHANGE_INFO = _public("exchange_info", "/api/v3/exchangeInfo").returns(BinanceExchangeInfo).build()

KLINES = (
    _public("klines", "/api/v3/klines")
    .query("symbol")
    .query("interval")
    .query("limit", shape=ParamShape.OPTIONAL)
    .query("start_time", shape=ParamShape.OPTIONAL, alias="startTime")
    .query("end_time", shape=ParamShape.OPTIONAL, alias="endTime")
    .returns(List[BinanceKline])
    .build()
)

ORDER_STATUS = (
    OperationSpec.builder("order_status", HTTPMethod.GET, "/api/v3/order")
    .header("api_key", API_KEY_HEADER)
    .query("symbol")
    .query("order_id", shape=ParamShape.OPTIONAL, alias="orderId")
    .query("orig_client_order_id", shape=ParamShape.OPTIONAL, alias="origClientOrderId")
    .query("recv_window", shape=ParamShape.OPTIONAL, alias="recvWindow")
    .timestamp()
    .signature()
    .returns(BinanceOrder)
    .category(REQUEST_WEIGHT, rate_limits=[REQUEST_WEIGHT, RAW_REQUESTS])
    .build()
)

NEW_ORDER = (
    OperationSpec.builder("new_order", HTTPMethod.POST, "/api/v3/order")
    .header("api_key", API_KEY_HEADER)
    .form("symbol")
    .form("side")
    .form("type")
    .form("time_in_force", shape=ParamShape.OPTIONAL, alias="timeInForce")
    .form("quantity", shape=ParamShape.OPTIONAL)
    .form("quote_order_qty", shape=ParamShape.OPTIONAL, alias="quoteOrderQty")
    .form("price", shape=ParamShape.OPTIONAL)
    .form("new_client_order_id", shape=ParamShape.OPTIONAL, alias="newClientOrderId")
    .form("recv_window", shape=ParamShape.OPTIONAL, alias="recvWindow")
    .timestamp()
    .signature()
    .returns(BinanceOrder)
    .category(ORDERS, rate_limits=[REQUEST_WEIGHT, ORDERS_PER_SECOND])
    .build()
)

CANCEL_ORDER = (
    OperationSpec.builder("cancel_order", HTTPMethod.DELETE, "/api/v3/order")
    .header("api_key", API_KEY_HEADER)
    .query("symbol")
    .query("order_id", shape=ParamShape.OPTIONAL, alias="orderId")
    .query("orig_client_order_id", shape=ParamShape.OPTIONAL, alias="origClientOrderId")
    .query("recv_window", shape=ParamShape.OPTIONAL, alias="recvWindow")
    .timestamp()
    .signature()
    .returns(BinanceOrder)
    .category(REQUEST_WEIGHT, rate_limits=[REQUEST_WEIGHT, RAW_REQUESTS])
    .build()
)


class BinanceSpotRest:
    """Binance spot client over a RestManager."""

    def __init__(self, rest: RestManager, api_key: str = ""):
        self.rest = rest
        self.api_key = api_key
        self.logger = get_exchange_logger('binance', 'rest.spot')

    @classmethod
    def from_config(cls, config: ExchangeConfig) -> 'BinanceSpotRest':
        """
        Build a client with spot resilience presets.

        Categories configured in ``config.rate_limits``/``config.retries``
        override the presets.
        """
        registries = resilience.new_spot(config.resilience)
        configured = ResilienceRegistries.from_config(config)
        for category in config.retries:
            registries.register_retry(category, configured.retry(category))
        for category in config.rate_limits:
            registries.register_rate_limiter(category, configured.rate_limiter(category))

        rest = RestManager.from_config(config, registries=registries)
        client = cls(rest, config.credentials.api_key if config.credentials else "")
        rest.timestamp_provider = ServerSyncedTimestamp(client._fetch_server_time)
        return client

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        await self.rest.close()

    async def _fetch_server_time(self) -> int:
        return (await self.server_time()).server_time

    # Market data

    async def ping(self) -> Any:
        return await self.rest.invoke(PING)

    async def server_time(self) -> BinanceTime:
        return await self.rest.invoke(TIME)

    async def system_status(self) -> BinanceSystemStatus:
        return await self.rest.invoke(SYSTEM_STATUS)

    async def exchange_info(self) -> BinanceExchangeInfo:
        return await self.rest.invoke(EXCHANGE_INFO)

    async def klines(self, symbol: str, interval: str, limit: Optional[int] = None,
                     start_time: Optional[int] = None, end_time: Optional[int] = None) -> List[BinanceKline]:
        return await self.rest.invoke(KLINES, symbol=symbol, interval=interval, limit=limit,
                                      start_time=start_time, end_time=end_time)

    async def sync_rate_limits(self) -> List[str]:
        """Replace preset limiters with the limits published by exchangeInfo."""
        info = await self.exchange_info()
        updated = resilience.apply_exchange_limits(self.rest.registries, info.rate_limits)
        self.logger.info("Rate limits synchronized", categories=updated)
        return updated

    # Trading

    async def order_status(self, symbol: str, order_id: Optional[int] = None,
                           orig_client_order_id: Optional[str] = None,
                           recv_window: Optional[int] = None) -> BinanceOrder:
        return await self.rest.invoke(ORDER_STATUS, api_key=self.api_key, symbol=symbol,
                                      order_id=order_id, orig_client_order_id=orig_client_order_id,
                                      recv_window=recv_window)

    async def new_order(self, symbol: str, side: OrderSide, order_type: OrderType,
                        quantity: Optional[Number] = None, price: Optional[Number] = None,
                        time_in_force: Optional[TimeInForce] = None,
                        quote_order_qty: Optional[Number] = None,
                        new_client_order_id: Optional[str] = None,
                        recv_window: Optional[int] = None) -> BinanceOrder:
        return await self.rest.invoke(NEW_ORDER, api_key=self.api_key, symbol=symbol, side=side,
                                      type=order_type, time_in_force=time_in_force, quantity=quantity,
                                      quote_order_qty=quote_order_qty, price=price,
                                      new_client_order_id=new_client_order_id, recv_window=recv_window)

    async def cancel_order(self, symbol: str, order_id: Optional[int] = None,
                           orig_client_order_id: Optional[str] = None,
                           recv_window: Optional[int] = None) -> BinanceOrder:
        return await self.rest.invoke(CANCEL_ORDER, api_key=self.api_key, symbol=symbol,
                                      order_id=order_id, orig_client_order_id=orig_client_order_id,
                                      recv_window=recv_window)
