"""
Logging Factory

Creates and caches logger instances from struct-based configuration.
Components obtain their logger with ``get_logger('rest.component')``.
"""

import os
from typing import Dict, Optional

from .interfaces import HFTLoggerInterface, LogLevel
from .hft_logger import HFTLogger
from .backends.console import ConsoleBackend
from .backends.file import FileBackend
from .structs import LoggingConfig


class LoggerFactory:
    """Simplified logging factory - trust config, fail fast."""

    _cached_loggers: Dict[str, HFTLogger] = {}
    _default_config: Optional[LoggingConfig] = None

    @classmethod
    def create_logger(cls, name: str, config: Optional[LoggingConfig] = None) -> HFTLoggerInterface:
        if name in cls._cached_loggers:
            return cls._cached_loggers[name]

        config = config or cls.get_default_config()

        backends = []
        if config.console and config.console.enabled:
            backends.append(ConsoleBackend(config.console, 'console'))
        if config.file and config.file.enabled:
            backends.append(FileBackend(config.file, 'file'))

        logger = HFTLogger(name=name, backends=backends)
        if config.default_context:
            logger.set_context(**config.default_context)

        cls._cached_loggers[name] = logger
        return logger

    @classmethod
    def configure(cls, config: LoggingConfig) -> None:
        """Replace the default config. Already created loggers are dropped."""
        config.validate()
        cls._cached_loggers.clear()
        cls._default_config = config

    @classmethod
    def override_logger(cls, name: str, min_level: Optional[str] = None, enabled: Optional[bool] = None) -> bool:
        """
        Override a cached logger at runtime.

        Example:
            LoggerFactory.override_logger("rest.executor", min_level="ERROR")
        """
        logger = cls._cached_loggers.get(name)
        if logger is None:
            return False

        for backend in logger.backends:
            if min_level is not None:
                backend.min_level = LogLevel[min_level.upper()]
            if enabled is not None:
                backend.enabled = enabled
        return True

    @classmethod
    def clear_cache(cls) -> None:
        cls._cached_loggers.clear()
        cls._default_config = None

    @classmethod
    def get_default_config(cls) -> LoggingConfig:
        if cls._default_config is None:
            environment = os.getenv('ENVIRONMENT', 'dev')
            if environment == 'prod':
                cls._default_config = LoggingConfig.default_production()
            else:
                cls._default_config = LoggingConfig.default_development()
        return cls._default_config


def get_logger(name: str) -> HFTLoggerInterface:
    """Get logger instance. Simple, fast."""
    return LoggerFactory.create_logger(name)


def get_exchange_logger(exchange: str, component: Optional[str] = None) -> HFTLoggerInterface:
    """Get exchange logger with optional component and exchange context preset."""
    name = f"{exchange}.{component}" if component else exchange
    logger = get_logger(name)
    logger.set_context(exchange=exchange)
    return logger
