"""Message envelope and result types shared by the consumer and producer."""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Generic, Protocol, TypeVar

from core.errors.exceptions import PipelineError

__all__ = [
    "KafkaMessage",
    "Message",
    "ConsumeResult",
    "from_consumer_record",
]

M = TypeVar("M")
V = TypeVar("V", covariant=True)


class KafkaMessage(Protocol[V]):
    """Capability accessors the producer reads from an outbound message."""

    @property
    def key(self) -> bytes | None: ...

    @property
    def payload(self) -> V | None: ...

    @property
    def ts_ms_utc(self) -> int | None: ...


@dataclass(frozen=True)
class Message(Generic[M]):
    """A received or to-be-sent record.

    A missing payload models a tombstone/empty record, not an error.
    """

    key: bytes | None = None
    ts_ms_utc: int | None = None
    payload: M | None = None
    partition: int = 0

    @property
    def timestamp(self) -> datetime | None:
        """Record timestamp as an aware UTC datetime."""
        if self.ts_ms_utc is None:
            return None
        return datetime.fromtimestamp(self.ts_ms_utc / 1000, tz=UTC)

    def into_payload(self) -> M | None:
        return self.payload


@dataclass(frozen=True)
class ConsumeResult(Generic[M]):
    """One item of a consumer stream: either a message or an error."""

    message: Message[M] | None = None
    error: PipelineError | None = None

    def __post_init__(self):
        if (self.message is None) == (self.error is None):
            raise ValueError("ConsumeResult requires exactly one of message or error")

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Message[M]:
        """Return the message or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.message

    @classmethod
    def success(cls, message: Message[M]) -> "ConsumeResult[M]":
        return cls(message=message)

    @classmethod
    def failure(cls, error: PipelineError) -> "ConsumeResult[M]":
        return cls(error=error)


def from_consumer_record(record, payload=None) -> Message:
    """Convert an aiokafka ConsumerRecord (with its decoded payload) to a Message."""
    timestamp = record.timestamp
    if timestamp is not None and timestamp < 0:
        timestamp = None

    return Message(
        key=bytes(record.key) if record.key is not None else None,
        ts_ms_utc=timestamp,
        payload=payload,
        partition=record.partition,
    )
