from .rest import (
    ExchangeRestError,
    TransportError,
    HttpStatusError,
    BusinessError,
    DeserializationError,
    RetryConfigNotFound,
)
from .system import (
    BaseSystemError,
    InvalidOperationSpec,
    InvalidKey,
    ConfigurationError,
)

__all__ = [
    'ExchangeRestError',
    'TransportError',
    'HttpStatusError',
    'BusinessError',
    'DeserializationError',
    'RetryConfigNotFound',
    'BaseSystemError',
    'InvalidOperationSpec',
    'InvalidKey',
    'ConfigurationError',
]
