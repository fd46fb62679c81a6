from typing import Dict, Optional
from msgspec import Struct, field


class ExchangeCredentials(Struct, frozen=True):
    """
    Exchange API credentials.

    Attributes:
        api_key: Public API key sent in the exchange's API-key header
        secret_key: Signing secret
        secret_encoding: 'raw' (UTF-8 string) or 'base64'
    """
    api_key: str = ""
    secret_key: str = ""
    secret_encoding: str = "raw"

    @property
    def has_private_api(self) -> bool:
        return bool(self.api_key) and bool(self.secret_key)

    def get_preview(self) -> str:
        """Safe preview of credentials for logging."""
        if not self.api_key:
            return "Not configured"
        if len(self.api_key) > 8:
            return f"{self.api_key[:4]}...{self.api_key[-4:]}"
        return "***"

    def validate(self) -> None:
        """Allow empty credentials for public-only mode."""
        if self.secret_encoding not in ("raw", "base64"):
            raise ValueError(f"Invalid secret_encoding: {self.secret_encoding}")
        if not self.api_key and not self.secret_key:
            return
        if bool(self.api_key) != bool(self.secret_key):
            raise ValueError("Both api_key and secret_key must be provided together or both empty")


class ProxyConfig(Struct, frozen=True):
    """HTTP proxy used for every request of the client."""
    host: str
    port: int = 80
    scheme: str = "http"

    @property
    def url(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}"

    def validate(self) -> None:
        if not self.host:
            raise ValueError("proxy host is required")
        if not 0 < self.port < 65536:
            raise ValueError(f"Invalid proxy port: {self.port}")
        if self.scheme not in ("http", "https"):
            raise ValueError(f"Invalid proxy scheme: {self.scheme}")


class NetworkConfig(Struct, frozen=True):
    """
    Network configuration settings.

    Attributes:
        request_timeout: Total HTTP request timeout in seconds
        connect_timeout: Connection timeout in seconds
        read_timeout: Socket read timeout in seconds
        max_concurrent: Maximum concurrent connections per host
    """
    request_timeout: float = 10.0
    connect_timeout: float = 2.0
    read_timeout: float = 5.0
    max_concurrent: int = 50

    def validate(self) -> None:
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")
        if self.connect_timeout <= 0:
            raise ValueError("connect_timeout must be positive")
        if self.read_timeout <= 0:
            raise ValueError("read_timeout must be positive")
        if self.max_concurrent <= 0:
            raise ValueError("max_concurrent must be positive")


class RateLimitDefinition(Struct, frozen=True):
    """Fixed-window limiter: ``capacity`` calls per ``refill_period`` seconds."""
    capacity: int
    refill_period: float

    def validate(self) -> None:
        if self.capacity < 1:
            raise ValueError("capacity must be at least 1")
        if self.refill_period <= 0:
            raise ValueError("refill_period must be positive")


class RetryDefinition(Struct, frozen=True):
    """Retry settings; delays in seconds."""
    max_attempts: int
    initial_delay: float
    multiplier: float = 1.0
    max_delay: Optional[float] = None

    def validate(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.initial_delay < 0:
            raise ValueError("initial_delay cannot be negative")
        if self.multiplier <= 0:
            raise ValueError("multiplier must be positive")


class ResilienceSpecification(Struct, frozen=True):
    """Switches for the resilience layer of one client."""
    retry_enabled: bool = True
    rate_limiter_enabled: bool = True


class ExchangeConfig(Struct, frozen=True):
    """
    Complete REST client configuration.

    Attributes:
        name: Exchange name (e.g., 'binance')
        base_url: REST base URL without trailing slash
        credentials: API credentials (optional for public-only clients)
        network: Timeouts and connection limits
        proxy: Optional HTTP proxy
        rate_limits: Limiter definitions keyed by category
        retries: Retry definitions keyed by category
        resilience: Enable/disable switches
        default_headers: Headers added to every request
    """
    name: str
    base_url: str
    credentials: Optional[ExchangeCredentials] = None
    network: NetworkConfig = field(default_factory=NetworkConfig)
    proxy: Optional[ProxyConfig] = None
    rate_limits: Dict[str, RateLimitDefinition] = {}
    retries: Dict[str, RetryDefinition] = {}
    resilience: ResilienceSpecification = field(default_factory=ResilienceSpecification)
    default_headers: Dict[str, str] = {}

    def validate(self) -> None:
        if not self.name:
            raise ValueError("name is required")
        if not self.base_url.startswith(("http://", "https://")):
            raise ValueError(f"Invalid base_url: {self.base_url}")
        if self.credentials:
            self.credentials.validate()
        if self.proxy:
            self.proxy.validate()
        self.network.validate()
        for definition in self.rate_limits.values():
            definition.validate()
        for definition in self.retries.values():
            definition.validate()
