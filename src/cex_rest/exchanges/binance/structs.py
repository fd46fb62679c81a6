"""
Binance Payload Structures

msgspec structs for the responses decoded by the Binance bindings.
Field names are snake_case; the wire uses camelCase.
"""

from enum import Enum
from typing import Any, List, Optional

import msgspec


class OrderSide(Enum):
    BUY = "BUY"
    SELL = "SELL"


class OrderType(Enum):
    LIMIT = "LIMIT"
    MARKET = "MARKET"
    LIMIT_MAKER = "LIMIT_MAKER"


class TimeInForce(Enum):
    GTC = "GTC"
    IOC = "IOC"
    FOK = "FOK"


class BinanceTime(msgspec.Struct, rename="camel"):
    server_time: int


class BinanceSystemStatus(msgspec.Struct):
    # 0: normal, 1: system maintenance
    status: int
    msg: str

    @property
    def is_normal(self) -> bool:
        return self.status == 0


class BinanceRateLimit(msgspec.Struct, rename="camel"):
    rate_limit_type: str
    interval: str
    interval_num: int
    limit: int


class BinanceFilter(msgspec.Struct, rename="camel"):
    filter_type: str
    min_price: Optional[str] = None
    max_price: Optional[str] = None
    tick_size: Optional[str] = None
    min_qty: Optional[str] = None
    max_qty: Optional[str] = None
    step_size: Optional[str] = None
    min_notional: Optional[str] = None


class BinanceSymbol(msgspec.Struct, rename="camel"):
    symbol: str
    status: str
    base_asset: str
    quote_asset: str
    base_asset_precision: int = 8
    quote_precision: int = 8
    order_types: List[str] = []
    filters: List[BinanceFilter] = []


class BinanceExchangeInfo(msgspec.Struct, rename="camel"):
    timezone: str
    server_time: int
    rate_limits: List[BinanceRateLimit] = []
    symbols: List[BinanceSymbol] = []


class BinanceOrder(msgspec.Struct, rename="camel"):
    symbol: str
    order_id: int
    client_order_id: str
    price: str
    orig_qty: str
    executed_qty: str
    status: str
    type: str
    side: str
    time_in_force: Optional[str] = None
    time: Optional[int] = None
    update_time: Optional[int] = None
    transact_time: Optional[int] = None


# Klines arrive as positional arrays:
# [open time, open, high, low, close, volume, close time, quote volume,
#  trades, taker base volume, taker quote volume, ignore]
BinanceKline = List[Any]
