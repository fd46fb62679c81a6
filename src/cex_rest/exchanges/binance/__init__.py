from .rest_spot import (
    BinanceSpotRest,
    SPOT_URL,
    SANDBOX_SPOT_URL,
    API_KEY_HEADER,
    PING,
    TIME,
    SYSTEM_STATUS,
    EXCHANGE_INFO,
    KLINES,
    ORDER_STATUS,
    NEW_ORDER,
    CANCEL_ORDER,
)
from .resilience import (
    new_spot,
    new_futures,
    apply_exchange_limits,
    REQUEST_WEIGHT,
    RAW_REQUESTS,
    ORDERS,
    ORDERS_PER_SECOND,
    ORDERS_PER_10_SECONDS,
    ORDERS_PER_MINUTE,
)
from .structs import (
    BinanceTime,
    BinanceSystemStatus,
    BinanceRateLimit,
    BinanceExchangeInfo,
    BinanceOrder,
    OrderSide,
    OrderType,
    TimeInForce,
)
