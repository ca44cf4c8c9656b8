"""Log formatters for JSON and console output."""

import json
import logging
import re
import sys
from datetime import UTC, datetime
from typing import Any

from core.logging.context import get_log_context
from core.logging.message_context import get_message_context
from core.utils.json_serializers import json_serializer


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter with context injection.

    Produces one JSON object per line for easy parsing with jq/grep.
    Broker addresses carrying credentials are redacted before logging.
    """

    # Fields to extract from LogRecord extras
    EXTRA_FIELDS = [
        # Correlation and tracing
        "trace_id",
        "duration_ms",
        # Errors
        "error_category",
        "error_message",
        "error",
        "error_type",
        # Reconnect tracking
        "attempt",
        "max_attempts",
        "total_attempts",
        "reconnect_count",
        # Client configuration
        "bootstrap_servers",
        "group_id",
        "topic",
        "topics",
        "partition",
        "offset",
        "partition_eof",
        "log_level",
        # Message transport metadata
        "message_topic",
        "message_partition",
        "message_offset",
        "message_key",
        "message_consumer_group",
        "value_size",
    ]

    # Numeric fields are coerced so they never serialize as strings
    NUMERIC_FIELDS = {
        "duration_ms": float,
        "attempt": int,
        "max_attempts": int,
        "total_attempts": int,
        "reconnect_count": int,
        "partition": int,
        "offset": int,
        "message_partition": int,
        "message_offset": int,
        "value_size": int,
    }

    # Fields that may contain broker URLs with embedded credentials
    URL_FIELDS = ["bootstrap_servers"]

    # Matches user:password@ in broker addresses
    CREDENTIALS_PATTERN = re.compile(r"(//)?([^/@,\s]+):([^/@,\s]+)@")

    def _sanitize_url(self, url: str) -> str:
        return self.CREDENTIALS_PATTERN.sub(r"\1[REDACTED]@", url)

    def _sanitize_value(self, key: str, value: Any) -> Any:
        if key in self.URL_FIELDS and isinstance(value, str):
            return self._sanitize_url(value)
        return value

    def _ensure_type(self, field: str, value: Any) -> Any:
        """
        Coerce a numeric field to its declared type.

        Returns None when the value cannot be converted.
        """
        if field not in self.NUMERIC_FIELDS or value is None:
            return value

        expected_type = self.NUMERIC_FIELDS[field]
        try:
            return expected_type(value)
        except (ValueError, TypeError):
            return None

    @staticmethod
    def _base_log_entry(record: logging.LogRecord) -> dict[str, Any]:
        return {
            "ts": datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

    @staticmethod
    def _inject_context(log_entry: dict[str, Any], log_context: dict[str, Any]) -> None:
        for field in ("service", "worker_id", "trace_id"):
            if log_context[field]:
                log_entry[field] = log_context[field]

    @staticmethod
    def _inject_message_context(log_entry: dict[str, Any]) -> None:
        message_context = get_message_context()
        if not message_context["message_topic"]:
            return
        log_entry.update(message_context)

    @staticmethod
    def _should_include_source_location(record: logging.LogRecord) -> bool:
        return record.levelno in (logging.DEBUG, logging.ERROR, logging.CRITICAL)

    def _inject_extra_fields(self, log_entry: dict[str, Any], record: logging.LogRecord) -> None:
        for field in self.EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                typed_value = self._ensure_type(field, value)
                log_entry[field] = self._sanitize_value(field, typed_value)

    def _inject_exception(self, log_entry: dict[str, Any], record: logging.LogRecord) -> None:
        if not record.exc_info:
            return

        exc_type, exc_value, _ = record.exc_info
        log_entry["exception"] = {
            "type": exc_type.__name__ if exc_type else None,
            "message": str(exc_value) if exc_value else None,
            "stacktrace": self.formatException(record.exc_info),
        }

    def format(self, record: logging.LogRecord) -> str:
        log_entry = self._base_log_entry(record)

        self._inject_context(log_entry, get_log_context())
        self._inject_message_context(log_entry)

        if self._should_include_source_location(record):
            log_entry["file"] = f"{record.filename}:{record.lineno}"

        # Explicit extras win over ambient message context
        self._inject_extra_fields(log_entry, record)
        self._inject_exception(log_entry, record)

        return json.dumps(log_entry, default=json_serializer, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """
    Human-readable console formatter with color-coded log levels.

    Colors are auto-disabled when output is not a TTY (pipes, files).
    """

    # ANSI color codes
    COLORS = {
        logging.DEBUG: "\033[36m",  # Cyan
        logging.INFO: "\033[32m",  # Green
        logging.WARNING: "\033[33m",  # Yellow
        logging.ERROR: "\033[31m",  # Red
        logging.CRITICAL: "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._use_colors = sys.stdout.isatty()

    def _format_level_name(self, record: logging.LogRecord) -> str:
        level_name = record.levelname
        if not self._use_colors:
            return level_name

        color = self.COLORS.get(record.levelno, "")
        if not color:
            return level_name

        return f"{color}{level_name}{self.RESET}"

    @staticmethod
    def _build_prefix(level_name: str, log_context: dict[str, Any]) -> str:
        parts = [
            datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            level_name,
        ]

        if log_context["service"]:
            parts.append(f"[{log_context['service']}]")

        return " - ".join(parts)

    @staticmethod
    def _build_tags(record: logging.LogRecord, log_context: dict[str, Any]) -> list[str]:
        trace_id = getattr(record, "trace_id", None) or log_context.get("trace_id")
        message_context = get_message_context()

        tags = []
        if message_context["message_topic"]:
            tags.append(
                f"[{message_context['message_topic']}"
                f"/{message_context['message_partition']}"
                f"@{message_context['message_offset']}]"
            )
        if trace_id:
            tags.append(f"[{trace_id[:8]}]")
        return tags

    def format(self, record: logging.LogRecord) -> str:
        """Format log record for console output with optional color coding."""
        log_context = get_log_context()

        level_name = self._format_level_name(record)
        prefix = self._build_prefix(level_name, log_context)
        tags = self._build_tags(record, log_context)

        if tags:
            return f"{prefix} - {' '.join(tags)} {record.getMessage()}"

        return f"{prefix} - {record.getMessage()}"
