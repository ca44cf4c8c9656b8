"""
Structured logging for kafka_relay.

Provides:
- JSON and console formatters with context injection
- Context variables for service/worker/trace correlation
- Message transport context (topic, partition, offset) for consumer logs
"""

from core.logging.context import clear_log_context, get_log_context, set_log_context
from core.logging.formatters import ConsoleFormatter, JSONFormatter
from core.logging.message_context import (
    MessageLogContext,
    clear_message_context,
    get_message_context,
    set_message_context,
)
from core.logging.setup import setup_logging

__all__ = [
    # Setup
    "setup_logging",
    # Formatters
    "JSONFormatter",
    "ConsoleFormatter",
    # Context
    "set_log_context",
    "get_log_context",
    "clear_log_context",
    # Message transport context
    "MessageLogContext",
    "set_message_context",
    "get_message_context",
    "clear_message_context",
]
