"""
Error classification and exception hierarchy.

Provides:
- ErrorCategory enum for classifying errors
- PipelineError hierarchy for typed exceptions
- Kafka error classifier deciding fatal vs transient failures
"""

from core.errors.exceptions import (
    CodecError,
    ConnectError,
    # Enums
    ErrorCategory,
    FatalTransportError,
    NoConnectionError,
    PartitionEOFError,
    PermanentError,
    # Base classes
    PipelineError,
    TransientError,
    TransientTransportError,
    TransportError,
)
from core.errors.kafka_classifier import (
    FATAL_KAFKA_ERRORS,
    KafkaErrorClassifier,
    is_fatal_kafka_error,
)

__all__ = [
    # Enums
    "ErrorCategory",
    # Base classes
    "PipelineError",
    "TransientError",
    "PermanentError",
    # Adapter errors
    "NoConnectionError",
    "TransportError",
    "FatalTransportError",
    "TransientTransportError",
    "ConnectError",
    "PartitionEOFError",
    "CodecError",
    # Kafka classifier
    "FATAL_KAFKA_ERRORS",
    "KafkaErrorClassifier",
    "is_fatal_kafka_error",
]
