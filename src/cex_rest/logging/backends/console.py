"""
Console Backend

Human-readable output to stderr with optional ANSI colours.
"""

import sys
from datetime import datetime

from ..interfaces import LogBackend, LogRecord, LogLevel, LogType
from ..structs import ConsoleBackendConfig


_COLORS = {
    LogLevel.DEBUG: "\033[36m",
    LogLevel.INFO: "\033[32m",
    LogLevel.WARNING: "\033[33m",
    LogLevel.ERROR: "\033[31m",
    LogLevel.CRITICAL: "\033[1;31m",
}
_RESET = "\033[0m"


class ConsoleBackend(LogBackend):
    """Writes formatted text records to a stream (stderr by default)."""

    def __init__(self, config: ConsoleBackendConfig, name: str = "console", stream=None):
        if not isinstance(config, ConsoleBackendConfig):
            raise TypeError(f"Expected ConsoleBackendConfig, got {type(config)}")

        super().__init__(name)
        self.config = config
        self.enabled = config.enabled
        self.min_level = LogLevel[config.min_level.upper()]
        self.color = config.color
        self.include_context = config.include_context
        self.max_message_length = config.max_message_length
        self.stream = stream or sys.stderr

    def format(self, record: LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.timestamp).strftime("%H:%M:%S.%f")[:-3]

        if record.log_type == LogType.METRIC:
            line = f"{timestamp} METRIC {record.logger_name}: {record.metric_name}={record.metric_value}"
            if record.metric_tags:
                line += " " + " ".join(f"{k}={v}" for k, v in record.metric_tags.items())
        else:
            message = record.message
            if len(message) > self.max_message_length:
                message = message[:self.max_message_length] + "..."
            line = f"{timestamp} {record.level.name:<8} {record.logger_name}: {message}"
            if self.include_context and record.context:
                line += " | " + ", ".join(f"{k}={v}" for k, v in record.context.items())

        if record.exchange:
            line += f" [{record.exchange}]"
        if record.category:
            line += f" <{record.category}>"

        if self.color:
            return f"{_COLORS.get(record.level, '')}{line}{_RESET}"
        return line

    def write_sync(self, record: LogRecord) -> None:
        self.stream.write(self.format(record) + "\n")

    async def flush(self) -> None:
        self.stream.flush()
