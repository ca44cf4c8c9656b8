"""
Unified exception hierarchy for kafka_relay.

Provides typed exceptions with fatal/transient classification so the
adapters can decide between surfacing a failure and rebuilding the
connection.
"""


# Import ErrorCategory from canonical source to avoid duplicate enum issues
# (comparing enums from different classes always returns False)
from core.types import ErrorCategory


class PipelineError(Exception):
    """
    Base exception for all adapter errors.

    Attributes:
        message: Human-readable error description
        category: Error classification for reconnect decisions
        cause: Original exception if wrapping
        context: Additional context dict for debugging
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        self.message = message
        self.cause = cause
        self.context = context or {}
        super().__init__(message)

    @property
    def is_fatal(self) -> bool:
        return self.category == ErrorCategory.FATAL

    @property
    def is_transient(self) -> bool:
        return self.category == ErrorCategory.TRANSIENT

    def __str__(self) -> str:
        parts = [self.message]
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


class TransientError(PipelineError):
    """Base class for failures reported without touching the connection."""

    category = ErrorCategory.TRANSIENT


class PermanentError(PipelineError):
    """Base class for usage errors that will never succeed."""

    category = ErrorCategory.PERMANENT


# =============================================================================
# Connection Errors
# =============================================================================


class NoConnectionError(PermanentError):
    """Send or receive attempted without an established connection."""

    def __init__(self, message: str | None = None, context: dict | None = None):
        super().__init__(
            message
            or "No connection: attempting to send or receive without an established connection",
            context=context,
        )


# =============================================================================
# Transport Errors (wrap the broker client's exceptions)
# =============================================================================


class TransportError(PipelineError):
    """Error raised by the underlying broker client."""

    pass


class FatalTransportError(TransportError):
    """The current session/transaction is unrecoverable; reconnect required."""

    category = ErrorCategory.FATAL


class TransientTransportError(TransportError):
    """Broker error that leaves the session usable; surfaced, not retried."""

    category = ErrorCategory.TRANSIENT


class ConnectError(FatalTransportError):
    """Building or starting a client handle failed."""

    pass


class PartitionEOFError(TransientTransportError):
    """Consumer reached the end of a partition (only when partition EOF is enabled)."""

    def __init__(self, topic: str, partition: int, offset: int):
        super().__init__(
            f"Reached end of partition {topic}[{partition}] at offset {offset}",
            context={"topic": topic, "partition": partition, "offset": offset},
        )
        self.topic = topic
        self.partition = partition
        self.offset = offset


# =============================================================================
# Codec Errors
# =============================================================================


class CodecError(TransientError):
    """Message encode/decode failure from a caller-supplied codec."""

    pass


__all__ = [
    "ErrorCategory",
    "PipelineError",
    "TransientError",
    "PermanentError",
    "NoConnectionError",
    "TransportError",
    "FatalTransportError",
    "TransientTransportError",
    "ConnectError",
    "PartitionEOFError",
    "CodecError",
]
