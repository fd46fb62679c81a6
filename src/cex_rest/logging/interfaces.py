"""
Core Logging Interfaces

Lightweight record and backend interfaces for the REST core logger.
Backends own formatting; the logger only builds records and dispatches them.
"""

import time
from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Any, Dict, Optional
from dataclasses import dataclass, field


class LogLevel(IntEnum):
    """Log levels with numeric values for fast comparison."""
    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50


class LogType(IntEnum):
    """Log record kinds."""
    TEXT = 1
    METRIC = 2


@dataclass
class LogRecord:
    """
    Lightweight log record.

    Formatting happens in backends, not here.
    """
    timestamp: float
    level: LogLevel
    log_type: LogType
    logger_name: str
    message: str
    context: Dict[str, Any] = field(default_factory=dict)

    # Only used when log_type == METRIC
    metric_name: Optional[str] = None
    metric_value: Optional[float] = None
    metric_tags: Optional[Dict[str, Any]] = None

    # Correlation
    exchange: Optional[str] = None
    category: Optional[str] = None

    @classmethod
    def create_text(cls, level: LogLevel, logger_name: str, message: str, **context) -> 'LogRecord':
        return cls(
            timestamp=time.time(),
            level=level,
            log_type=LogType.TEXT,
            logger_name=logger_name,
            message=message,
            context=context
        )

    @classmethod
    def create_metric(cls, logger_name: str, metric_name: str, value: float, **tags) -> 'LogRecord':
        return cls(
            timestamp=time.time(),
            level=LogLevel.INFO,
            log_type=LogType.METRIC,
            logger_name=logger_name,
            message="",
            metric_name=metric_name,
            metric_value=value,
            metric_tags=tags
        )


class LogBackend(ABC):
    """
    Abstract base for all logging backends.

    Each backend handles its own formatting and output logic.
    """

    def __init__(self, name: str):
        self.name = name
        self.enabled = True
        self.min_level = LogLevel.DEBUG
        self._error_count = 0
        self._max_errors = 10  # Disable after too many failures

    def should_handle(self, record: LogRecord) -> bool:
        """Fast check if this backend should process the record."""
        return self.enabled and record.level >= self.min_level

    @abstractmethod
    def write_sync(self, record: LogRecord) -> None:
        """Write a record immediately. Must not raise."""
        pass

    @abstractmethod
    async def flush(self) -> None:
        """Flush any buffered data."""
        pass

    def disable(self) -> None:
        self.enabled = False

    def enable(self) -> None:
        self.enabled = True
        self._error_count = 0

    def _handle_error(self, error: Exception) -> None:
        """Count backend failures and disable the backend once the limit is hit."""
        self._error_count += 1
        if self._error_count >= self._max_errors:
            self.enabled = False
            print(f"Backend {self.name} disabled after {self._max_errors} errors: {error}")


class HFTLoggerInterface(ABC):
    """
    Interface for the structured logger injected into REST components.

    Context is passed as keyword arguments: ``logger.info("msg", key=value)``.
    """

    @abstractmethod
    def debug(self, msg: str, **context) -> None:
        pass

    @abstractmethod
    def info(self, msg: str, **context) -> None:
        pass

    @abstractmethod
    def warning(self, msg: str, **context) -> None:
        pass

    @abstractmethod
    def error(self, msg: str, **context) -> None:
        pass

    @abstractmethod
    def critical(self, msg: str, **context) -> None:
        pass

    @abstractmethod
    def metric(self, name: str, value: float, **tags) -> None:
        """Log metric value."""
        pass

    @abstractmethod
    def latency(self, operation: str, duration_ms: float, **tags) -> None:
        """Log latency metric. Convenience method for timing."""
        pass

    @abstractmethod
    def set_context(self, **context) -> None:
        """Set persistent context for all logs from this logger."""
        pass

    @abstractmethod
    async def flush(self) -> None:
        """Flush all backends."""
        pass
