"""
File Backend for Persistent Logging

Buffered file logging in text or JSON format. Lines are kept in memory and
written either synchronously when the buffer fills (or an ERROR arrives) or
asynchronously through ``flush()``.
"""

import json
import threading
from datetime import datetime
from pathlib import Path
from typing import List

import aiofiles

from ..interfaces import LogBackend, LogRecord, LogLevel, LogType
from ..structs import FileBackendConfig


class FileBackend(LogBackend):
    """
    File logging backend.

    Accepts only FileBackendConfig struct for configuration.
    """

    def __init__(self, config: FileBackendConfig, name: str = "file"):
        if not isinstance(config, FileBackendConfig):
            raise TypeError(f"Expected FileBackendConfig, got {type(config)}")

        super().__init__(name)
        self.config = config
        self.file_path = Path(config.path)
        self.format_type = config.format
        self.min_level = LogLevel[config.min_level.upper()]
        self.buffer_size = config.buffer_size
        self.enabled = config.enabled

        if self.enabled:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)

        self._write_buffer: List[str] = []
        self._lock = threading.Lock()

    def write_sync(self, record: LogRecord) -> None:
        line = self._format_json(record) if self.format_type == 'json' else self._format_text(record)

        with self._lock:
            self._write_buffer.append(line)
            if len(self._write_buffer) < self.buffer_size and record.level < LogLevel.ERROR:
                return
            pending = self._drain()

        with open(self.file_path, 'a', encoding='utf-8') as f:
            f.write(''.join(pending))

    async def flush(self) -> None:
        """Write buffered lines without blocking the event loop."""
        with self._lock:
            pending = self._drain()
        if not pending:
            return

        async with aiofiles.open(self.file_path, 'a', encoding='utf-8') as f:
            await f.write(''.join(pending))

    def _drain(self) -> List[str]:
        pending = [line + '\n' for line in self._write_buffer]
        self._write_buffer.clear()
        return pending

    def _format_text(self, record: LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.timestamp).isoformat()

        if record.log_type == LogType.METRIC:
            message = f"[{timestamp}] METRIC {record.logger_name}: {record.metric_name}={record.metric_value}"
            if record.metric_tags:
                message += f" | {', '.join(f'{k}={v}' for k, v in record.metric_tags.items())}"
        else:
            message = f"[{timestamp}] {record.level.name} {record.logger_name}: {record.message}"
            if record.context:
                message += f" | {', '.join(f'{k}={v}' for k, v in record.context.items())}"

        correlation_parts = []
        if record.exchange:
            correlation_parts.append(f"exchange={record.exchange}")
        if record.category:
            correlation_parts.append(f"category={record.category}")
        if correlation_parts:
            message += f" | {', '.join(correlation_parts)}"

        return message

    def _format_json(self, record: LogRecord) -> str:
        data = {
            'timestamp': record.timestamp,
            'level': record.level.name,
            'type': record.log_type.name,
            'logger': record.logger_name,
            'message': record.message
        }

        if record.context:
            data['context'] = record.context
        if record.exchange:
            data['exchange'] = record.exchange
        if record.category:
            data['category'] = record.category

        if record.log_type == LogType.METRIC:
            data['metric'] = {
                'name': record.metric_name,
                'value': record.metric_value,
                'tags': record.metric_tags
            }

        return json.dumps(data, separators=(',', ':'), default=str)
