"""Core types used across modules."""

from enum import Enum


class ErrorCategory(Enum):
    """
    Classification of error types for handling decisions.

    This enum is used by the adapters to classify errors and decide whether
    a failure is surfaced, or whether the connection is rebuilt.

    Categories:
        TRANSIENT: Failures that are reported to the caller without touching
                   the connection (non-fatal broker errors, codec errors)
        FATAL: The current session/transaction cannot continue; the
               connection must be discarded and rebuilt
        PERMANENT: Usage errors that will never succeed
                   (e.g., operating without a connection)
        UNKNOWN: Unclassified errors
    """

    TRANSIENT = "transient"
    FATAL = "fatal"
    PERMANENT = "permanent"
    UNKNOWN = "unknown"


__all__ = [
    "ErrorCategory",
]
