"""
Logging Configuration Structures

Structured configuration for the logging system using msgspec.Struct
for type safety.
"""

from typing import Optional, Dict, Any
from msgspec import Struct


class BackendConfig(Struct, frozen=True):
    """
    Base configuration for all logging backends.

    Attributes:
        enabled: Whether this backend is active
        min_level: Minimum log level to process (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    enabled: bool = True
    min_level: str = "INFO"

    def validate(self) -> None:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.min_level.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {self.min_level}")


class ConsoleBackendConfig(BackendConfig):
    """
    Console backend configuration.

    Attributes:
        color: Enable colored output
        include_context: Include context information
        max_message_length: Maximum message length before truncation
    """
    color: bool = True
    include_context: bool = True
    max_message_length: int = 1000


class FileBackendConfig(BackendConfig):
    """
    File backend configuration.

    Attributes:
        path: Log file path
        format: Output format (text or json)
        buffer_size: Lines kept in memory before a synchronous flush
    """
    path: str = "logs/cex_rest.log"
    format: str = "text"
    buffer_size: int = 256

    def validate(self) -> None:
        super().validate()
        if self.format not in {"text", "json"}:
            raise ValueError(f"Invalid format: {self.format}")
        if self.buffer_size <= 0:
            raise ValueError("buffer_size must be positive")


class LoggingConfig(Struct, frozen=True):
    """
    Complete logging configuration.

    Attributes:
        environment: Environment name (dev, prod, test)
        console: Console backend configuration
        file: File backend configuration
        default_context: Default context for all log messages
    """
    environment: str = "dev"
    console: Optional[ConsoleBackendConfig] = None
    file: Optional[FileBackendConfig] = None
    default_context: Optional[Dict[str, Any]] = None

    def validate(self) -> None:
        if self.environment not in {"dev", "prod", "test", "staging"}:
            raise ValueError(f"Invalid environment: {self.environment}")
        if self.console:
            self.console.validate()
        if self.file:
            self.file.validate()

    @classmethod
    def default_development(cls) -> 'LoggingConfig':
        return cls(
            environment="dev",
            console=ConsoleBackendConfig(min_level="DEBUG", color=True),
        )

    @classmethod
    def default_production(cls) -> 'LoggingConfig':
        return cls(
            environment="prod",
            console=ConsoleBackendConfig(min_level="WARNING", color=False),
            file=FileBackendConfig(min_level="INFO", format="json"),
        )
