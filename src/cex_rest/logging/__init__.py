"""
REST Core Logging

Structured logging for the REST operation engine.

Usage:
    from cex_rest.logging import get_logger

    logger = get_logger('rest.executor')
    logger.info("Request completed", category="requestWeight", attempts=1)
    logger.metric("rest_request_latency_ms", 12.5, path="/api/v3/time")
"""

from .interfaces import (
    LogLevel,
    LogType,
    LogRecord,
    LogBackend,
    HFTLoggerInterface
)
from .hft_logger import HFTLogger
from .factory import LoggerFactory, get_logger, get_exchange_logger
from .structs import (
    LoggingConfig,
    ConsoleBackendConfig,
    FileBackendConfig,
    BackendConfig
)
from .backends.console import ConsoleBackend
from .backends.file import FileBackend

__all__ = [
    'LogLevel',
    'LogType',
    'LogRecord',
    'LogBackend',
    'HFTLoggerInterface',
    'HFTLogger',
    'LoggerFactory',
    'get_logger',
    'get_exchange_logger',
    'LoggingConfig',
    'ConsoleBackendConfig',
    'FileBackendConfig',
    'BackendConfig',
    'ConsoleBackend',
    'FileBackend',
]
