from .structs import (
    ExchangeCredentials,
    ProxyConfig,
    NetworkConfig,
    RateLimitDefinition,
    RetryDefinition,
    ResilienceSpecification,
    ExchangeConfig,
)
from .loader import (
    substitute_env_vars,
    parse_exchange_config,
    load_exchange_configs,
    load_exchange_config,
)

__all__ = [
    'ExchangeCredentials',
    'ProxyConfig',
    'NetworkConfig',
    'RateLimitDefinition',
    'RetryDefinition',
    'ResilienceSpecification',
    'ExchangeConfig',
    'substitute_env_vars',
    'parse_exchange_config',
    'load_exchange_configs',
    'load_exchange_config',
]
