"""
Kafka error classification for consumer and producer operations.

Provides consistent error handling for aiokafka exceptions, mapping them to
the transport error hierarchy with a fatal/transient decision:

- Fatal: the session or transaction cannot continue, the adapter must
  discard its client handle and build a new one.
- Transient: everything else. The error is reported to the caller and the
  connection is kept.
"""

from typing import Optional

from core.errors.exceptions import (
    FatalTransportError,
    PipelineError,
    TransientTransportError,
    TransportError,
)
# Exception type names (aiokafka.errors) that leave the client unusable
FATAL_KAFKA_ERRORS = frozenset(
    {
        # Transactional / idempotent producer state is broken
        "ProducerFenced",
        "OutOfOrderSequenceNumber",
        "InvalidProducerEpoch",
        "InvalidProducerIdMapping",
        "TransactionalIdAuthorizationFailed",
        "TransactionCoordinatorFenced",
        "InvalidTxnState",
        "UnknownProducerId",
        # Handle was stopped underneath us
        "ConsumerStoppedError",
        "ProducerClosed",
    }
)


def is_fatal_kafka_error(error: BaseException) -> bool:
    """
    Check whether a client error is a fatal session/transaction failure.

    Matches on exception type names across the MRO so subclasses of a fatal
    error are fatal too. Errors already wrapped in the transport hierarchy
    keep their classification.
    """
    if isinstance(error, PipelineError):
        return error.is_fatal

    return any(cls.__name__ in FATAL_KAFKA_ERRORS for cls in type(error).__mro__)


class KafkaErrorClassifier:
    """
    Centralized error classification for Kafka operations.

    Provides consistent error categorization for both producer and consumer
    operations. Maps aiokafka exceptions to the TransportError hierarchy.
    """

    @staticmethod
    def classify(
        error: Exception,
        operation: str,
        context: Optional[dict] = None,
    ) -> TransportError:
        """
        Classify a Kafka client error into a transport exception.

        Args:
            error: Original exception from aiokafka
            operation: Operation type ("consumer", "producer")
            context: Additional context (merged with default {"service": "kafka_<operation>"})

        Returns:
            FatalTransportError or TransientTransportError
        """
        if isinstance(error, TransportError):
            return error

        ctx = {"service": f"kafka_{operation}", "error_type": type(error).__name__}
        if context:
            ctx.update(context)

        if is_fatal_kafka_error(error):
            return FatalTransportError(
                f"Kafka {operation} fatal error: {error}",
                cause=error,
                context=ctx,
            )

        return TransientTransportError(
            f"Kafka {operation} error: {error}",
            cause=error,
            context=ctx,
        )

    @staticmethod
    def classify_consumer_error(
        error: Exception, context: Optional[dict] = None
    ) -> TransportError:
        return KafkaErrorClassifier.classify(error, "consumer", context)

    @staticmethod
    def classify_producer_error(
        error: Exception, context: Optional[dict] = None
    ) -> TransportError:
        return KafkaErrorClassifier.classify(error, "producer", context)


__all__ = [
    "FATAL_KAFKA_ERRORS",
    "KafkaErrorClassifier",
    "is_fatal_kafka_error",
]
