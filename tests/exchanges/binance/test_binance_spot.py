"""
Tests for the Binance spot binding over a scripted transport.
"""

import hashlib
import hmac
from decimal import Decimal

import pytest

from conftest import RecordingSleep, ScriptedTransport, json_response
from cex_rest.config.structs import ExchangeConfig, ExchangeCredentials, RateLimitDefinition
from cex_rest.exceptions import BusinessError, HttpStatusError
from cex_rest.exchanges.binance import (
    API_KEY_HEADER,
    ORDERS,
    ORDERS_PER_10_SECONDS,
    ORDERS_PER_MINUTE,
    ORDERS_PER_SECOND,
    RAW_REQUESTS,
    REQUEST_WEIGHT,
    BinanceSpotRest,
    OrderSide,
    OrderType,
    TimeInForce,
    new_futures,
    new_spot,
)
from cex_rest.networking.http import (
    FixedTimestamp,
    HmacParamsDigest,
    HTTPMethod,
    RestManager,
    ServerSyncedTimestamp,
)

SECRET = "binance-secret"

ORDER_JSON = (
    '{"symbol":"BTCUSDT","orderId":28,"clientOrderId":"6gCrw2kRUAF9CvJDGP16IP",'
    '"transactTime":1507725176595,"price":"30000.00000000","origQty":"0.00100000",'
    '"executedQty":"0.00000000","status":"NEW","timeInForce":"GTC","type":"LIMIT","side":"BUY"}'
)

EXCHANGE_INFO_JSON = (
    '{"timezone":"UTC","serverTime":1565246363776,"rateLimits":['
    '{"rateLimitType":"REQUEST_WEIGHT","interval":"MINUTE","intervalNum":1,"limit":1200},'
    '{"rateLimitType":"ORDERS","interval":"SECOND","intervalNum":10,"limit":100},'
    '{"rateLimitType":"RAW_REQUESTS","interval":"MINUTE","intervalNum":5,"limit":61000}],'
    '"exchangeFilters":[],"symbols":[{"symbol":"BTCUSDT","status":"TRADING","baseAsset":"BTC",'
    '"quoteAsset":"USDT","filters":[{"filterType":"PRICE_FILTER","minPrice":"0.01",'
    '"maxPrice":"1000000.00","tickSize":"0.01"}]}]}'
)


def sign(payload: str) -> str:
    return hmac.new(SECRET.encode(), payload.encode(), hashlib.sha256).hexdigest()


def make_client(*script):
    transport = ScriptedTransport(*script)
    rest = RestManager(
        transport,
        new_spot(),
        signer=HmacParamsDigest(SECRET),
        timestamp_provider=FixedTimestamp(1000),
        sleep=RecordingSleep(),
    )
    return BinanceSpotRest(rest, api_key="api-key"), transport


class TestMarketData:

    @pytest.mark.asyncio
    async def test_server_time(self):
        client, transport = make_client(json_response('{"serverTime": 1499827319559}'))
        result = await client.server_time()
        assert result.server_time == 1499827319559
        assert transport.requests[0].path == "/api/v3/time"

    @pytest.mark.asyncio
    async def test_system_status(self):
        client, _ = make_client(json_response('{"status": 1, "msg": "system maintenance"}'))
        status = await client.system_status()
        assert not status.is_normal

    @pytest.mark.asyncio
    async def test_klines_query(self):
        client, transport = make_client(json_response('[[1499040000000, "0.01634790", "0.80000000"]]'))
        klines = await client.klines("BTCUSDT", "1m", start_time=1499040000000)

        assert klines[0][0] == 1499040000000
        assert transport.requests[0].query == (
            ("symbol", "BTCUSDT"), ("interval", "1m"), ("startTime", "1499040000000"),
        )

    @pytest.mark.asyncio
    async def test_exchange_info_and_limit_sync(self):
        client, _ = make_client(json_response(EXCHANGE_INFO_JSON))
        updated = await client.sync_rate_limits()

        assert updated == [REQUEST_WEIGHT, ORDERS_PER_10_SECONDS, RAW_REQUESTS]
        registries = client.rest.registries
        assert registries.rate_limiter(REQUEST_WEIGHT).capacity == 1200
        assert registries.rate_limiter(ORDERS_PER_10_SECONDS).refill_period == 10.0
        assert registries.rate_limiter(RAW_REQUESTS).refill_period == 300.0


class TestTrading:

    @pytest.mark.asyncio
    async def test_new_order_wire_format(self):
        client, transport = make_client(json_response(ORDER_JSON))
        order = await client.new_order(
            "BTCUSDT", OrderSide.BUY, OrderType.LIMIT,
            quantity=Decimal("0.001"), price="30000", time_in_force=TimeInForce.GTC,
        )

        assert order.order_id == 28
        assert order.status == "NEW"

        request = transport.requests[0]
        body = "symbol=BTCUSDT&side=BUY&type=LIMIT&timeInForce=GTC&quantity=0.001&price=30000"
        assert request.method is HTTPMethod.POST
        assert request.path == "/api/v3/order"
        assert request.body == body
        assert request.content_type == "application/x-www-form-urlencoded"
        assert request.headers == ((API_KEY_HEADER, "api-key"),)
        assert request.query == (("timestamp", "1000"), ("signature", sign("timestamp=1000" + body)))

    @pytest.mark.asyncio
    async def test_order_is_not_retried(self):
        client, transport = make_client(json_response("busy", status=503))
        with pytest.raises(HttpStatusError) as exc_info:
            await client.new_order("BTCUSDT", OrderSide.SELL, OrderType.MARKET, quantity="1")

        assert exc_info.value.category == ORDERS
        assert exc_info.value.attempts == 1
        assert len(transport.requests) == 1

    @pytest.mark.asyncio
    async def test_order_consumes_order_limiter(self):
        client, _ = make_client(json_response(ORDER_JSON))
        limiter = client.rest.registries.rate_limiter(ORDERS_PER_SECOND)
        before = limiter.available_tokens

        await client.new_order("BTCUSDT", OrderSide.BUY, OrderType.MARKET, quote_order_qty="10")
        assert limiter.available_tokens == before - 1

    @pytest.mark.asyncio
    async def test_cancel_order_signed_query(self):
        client, transport = make_client(json_response(ORDER_JSON))
        await client.cancel_order("BTCUSDT", order_id=28)

        request = transport.requests[0]
        assert request.method is HTTPMethod.DELETE
        assert request.body is None
        assert request.query[-1] == ("signature", sign("symbol=BTCUSDT&orderId=28&timestamp=1000"))

    @pytest.mark.asyncio
    async def test_timestamp_error_surfaces_as_business_error(self):
        client, _ = make_client(json_response('{"code":-1021,"msg":"Timestamp out of range"}', status=400))
        with pytest.raises(BusinessError) as exc_info:
            await client.order_status("BTCUSDT", order_id=1)
        assert exc_info.value.api_code == -1021
        assert exc_info.value.category == REQUEST_WEIGHT

    @pytest.mark.asyncio
    async def test_server_synced_timestamp(self):
        client, transport = make_client(json_response('{"serverTime": 1500}'), json_response(ORDER_JSON))
        client.rest.timestamp_provider = ServerSyncedTimestamp(client._fetch_server_time, clock=lambda: 1000)

        await client.order_status("BTCUSDT", order_id=28)

        assert transport.requests[0].path == "/api/v3/time"
        assert dict(transport.requests[1].query)["timestamp"] == "1500"


class TestPresets:

    def test_spot_presets(self):
        registries = new_spot()
        assert registries.rate_limiter(REQUEST_WEIGHT).capacity == 6000
        assert registries.rate_limiter(ORDERS_PER_SECOND).capacity == 10
        assert registries.retry(REQUEST_WEIGHT).max_attempts == 3
        assert registries.retry(ORDERS).max_attempts == 1

    def test_futures_presets(self):
        registries = new_futures()
        assert registries.rate_limiter(REQUEST_WEIGHT).capacity == 2400
        assert registries.rate_limiter(ORDERS_PER_MINUTE).capacity == 1200

    @pytest.mark.asyncio
    async def test_from_config(self):
        config = ExchangeConfig(
            name="binance",
            base_url="https://api.binance.com",
            credentials=ExchangeCredentials(api_key="key", secret_key="secret"),
            rate_limits={REQUEST_WEIGHT: RateLimitDefinition(capacity=100, refill_period=60.0)},
        )
        client = BinanceSpotRest.from_config(config)
        try:
            assert client.api_key == "key"
            assert isinstance(client.rest.signer, HmacParamsDigest)
            assert isinstance(client.rest.timestamp_provider, ServerSyncedTimestamp)
            assert client.rest.registries.rate_limiter(REQUEST_WEIGHT).capacity == 100
            assert client.rest.registries.rate_limiter(ORDERS_PER_SECOND).capacity == 10
        finally:
            await client.close()
