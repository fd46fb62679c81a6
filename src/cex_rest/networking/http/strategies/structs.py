"""
REST Transport Data Structures

Common data structures shared by the transport and the executor.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from cex_rest.config.structs import ExchangeConfig


@dataclass(frozen=True)
class RequestContext:
    """Request configuration context."""
    base_url: str
    timeout: float = 10.0
    max_concurrent: int = 50
    connection_timeout: float = 2.0
    read_timeout: float = 5.0
    keepalive_timeout: float = 60.0
    default_headers: Optional[Dict[str, str]] = None
    proxy: Optional[str] = None

    @classmethod
    def from_config(cls, config: ExchangeConfig) -> 'RequestContext':
        network = config.network
        return cls(
            base_url=config.base_url,
            timeout=network.request_timeout,
            max_concurrent=network.max_concurrent,
            connection_timeout=network.connect_timeout,
            read_timeout=network.read_timeout,
            default_headers=dict(config.default_headers) or None,
            proxy=config.proxy.url if config.proxy else None,
        )


@dataclass
class RequestMetrics:
    """Executor counters."""
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    retried_attempts: int = 0
    rate_limit_waits: int = 0
    avg_latency_ms: float = 0.0
