"""
Structured Logger Implementation

Logger with context kwargs, metric records and pluggable backends.

Dispatch is synchronous: the REST core is a library invoked from a host
event loop and never starts background tasks of its own.
"""

import logging
import time
from typing import Dict, List, Any

from .interfaces import HFTLoggerInterface, LogBackend, LogRecord, LogLevel


class HFTLogger(HFTLoggerInterface):
    """
    Structured logger dispatching records to multiple backends.

    Records at WARNING and above are also propagated to the standard
    ``logging`` module so host applications see failures without extra setup.
    """

    def __init__(self, name: str, backends: List[LogBackend]):
        self.name = name
        self.backends = backends

        # Persistent context for all log messages
        self.context: Dict[str, Any] = {}

        self._records_written = 0
        self._py_logger = logging.getLogger(name)

    @staticmethod
    def _convert_level_to_python(level: LogLevel) -> int:
        mapping = {
            LogLevel.DEBUG: logging.DEBUG,
            LogLevel.INFO: logging.INFO,
            LogLevel.WARNING: logging.WARNING,
            LogLevel.ERROR: logging.ERROR,
            LogLevel.CRITICAL: logging.CRITICAL
        }
        return mapping.get(level, logging.INFO)

    def _dispatch(self, record: LogRecord) -> None:
        for backend in self.backends:
            if not backend.should_handle(record):
                continue
            try:
                backend.write_sync(record)
            except Exception as e:
                backend._handle_error(e)
        self._records_written += 1

    def _log(self, level: LogLevel, msg: str, **context) -> None:
        full_context = {**self.context, **context}

        exchange = full_context.pop('exchange', None)
        category = full_context.pop('category', None)

        record = LogRecord.create_text(level, self.name, msg, **full_context)
        record.exchange = exchange
        record.category = category

        if level >= LogLevel.WARNING and self._py_logger.propagate:
            extra = f" | {full_context}" if full_context else ""
            self._py_logger.log(self._convert_level_to_python(level), str(msg) + extra)

        self._dispatch(record)

    def debug(self, msg: str, **context) -> None:
        self._log(LogLevel.DEBUG, msg, **context)

    def info(self, msg: str, **context) -> None:
        self._log(LogLevel.INFO, msg, **context)

    def warning(self, msg: str, **context) -> None:
        self._log(LogLevel.WARNING, msg, **context)

    def error(self, msg: str, **context) -> None:
        self._log(LogLevel.ERROR, msg, **context)

    def critical(self, msg: str, **context) -> None:
        self._log(LogLevel.CRITICAL, msg, **context)

    def metric(self, name: str, value: float, **tags) -> None:
        full_tags = {**self.context, **tags}
        exchange = full_tags.pop('exchange', None)
        category = full_tags.pop('category', None)

        record = LogRecord.create_metric(self.name, name, value, **full_tags)
        record.exchange = exchange
        record.category = category
        self._dispatch(record)

    def latency(self, operation: str, duration_ms: float, **tags) -> None:
        self.metric(f"{operation}_latency_ms", duration_ms, **tags)

    def set_context(self, **context) -> None:
        self.context.update(context)

    async def flush(self) -> None:
        for backend in self.backends:
            try:
                await backend.flush()
            except Exception as e:
                backend._handle_error(e)

    def get_stats(self) -> Dict[str, Any]:
        return {
            "records_written": self._records_written,
            "backends_enabled": sum(1 for b in self.backends if b.enabled),
            "backends_total": len(self.backends),
            "timestamp": time.time(),
        }
