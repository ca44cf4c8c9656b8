"""Kafka producer adapter: bounded reconnects for one outbound message at a time."""

import logging
from typing import Any, Generic, TypeVar

from aiokafka import AIOKafkaProducer

from core.errors.exceptions import (
    CodecError,
    FatalTransportError,
    NoConnectionError,
    PipelineError,
)
from core.errors.kafka_classifier import KafkaErrorClassifier
from kafka_relay.common.builder import KafkaClientBuilder
from kafka_relay.common.codecs import BytesCodec, Encoder
from kafka_relay.common.connection import ManagedConnection
from kafka_relay.common.metrics import record_error, record_message_produced
from kafka_relay.common.types import KafkaMessage
from kafka_relay.config import KafkaConfig

logger = logging.getLogger(__name__)

V = TypeVar("V")


class KafkaProducer(ManagedConnection[AIOKafkaProducer], Generic[V]):
    """Async producer that encodes payloads into a reusable buffer.

    Only fatal transport errors are retried (by reconnecting); any other
    failure is raised immediately. One send in flight per instance: the
    encode buffer is exclusive to the instance.
    """

    role = "producer"

    def __init__(
        self,
        config: KafkaConfig,
        encoder: Encoder[V] | None = None,
        topic: str | None = None,
        builder: KafkaClientBuilder | None = None,
        sleep_between_reconnects: bool = False,
    ):
        super().__init__(config, builder=builder, sleep_between_reconnects=sleep_between_reconnects)
        self.encoder = encoder if encoder is not None else BytesCodec()
        self.topic = topic or config.topic
        if not self.topic:
            raise ValueError("A topic must be specified")
        self._buffer = bytearray()

        logger.info(
            "Initialized Kafka producer",
            extra={
                "topic": self.topic,
                "bootstrap_servers": config.bootstrap_servers,
                "reconnect_count": self.reconnect_count,
            },
        )

    async def _open_handle(self) -> AIOKafkaProducer:
        producer = self._builder.build_producer()
        try:
            await producer.start()
        except Exception:
            await self._close_handle(producer)
            raise
        return producer

    async def connect(self) -> None:
        """Build a fresh producer handle. Raises ConnectError."""
        await self._connect()

    def _encode(self, payload: V) -> bytes:
        self._buffer.clear()
        try:
            self.encoder.encode(payload, self._buffer)
        except Exception as e:
            raise CodecError(
                f"Message encode error: {e}",
                cause=e,
                context={"topic": self.topic},
            ) from e
        return bytes(self._buffer)

    async def send_once(self, message: KafkaMessage[V]) -> None:
        """Send ``message`` once on the live connection, without reconnecting.

        Raises:
            NoConnectionError: no prior successful connect
            CodecError: payload could not be encoded
            FatalTransportError / TransientTransportError: client failure
        """
        producer = self._handle
        if producer is None:
            raise NoConnectionError()

        payload = message.payload
        value = self._encode(payload) if payload is not None else None

        try:
            metadata = await producer.send_and_wait(
                self.topic,
                value=value,
                key=message.key,
                timestamp_ms=message.ts_ms_utc,
            )
        except Exception as e:
            raise KafkaErrorClassifier.classify_producer_error(
                e, context={"topic": self.topic}
            ) from e

        record_message_produced(self.topic)
        logger.debug(
            "Message sent successfully",
            extra={
                "topic": self.topic,
                "partition": getattr(metadata, "partition", None),
                "offset": getattr(metadata, "offset", None),
                "value_size": len(value) if value is not None else 0,
            },
        )

    async def send(self, message: KafkaMessage[V], context: Any = None) -> None:
        """Send one message, reconnecting on fatal errors within the budget.

        Returns on success. Raises the first non-fatal failure immediately,
        or the last fatal/connect error once the budget is exhausted.
        ``context`` is an opaque per-call token passed through unchanged.
        """
        budget = self._new_budget()

        while not budget.exhausted:
            if not self.is_connected:
                if not await self._try_connect(budget):
                    continue

            try:
                await self.send_once(message)
                return
            except FatalTransportError as e:
                await self._on_fatal(budget, e)
                continue
            except PipelineError as e:
                record_error(self.role, e.category.value)
                logger.error(
                    "Failed to send message",
                    extra={
                        "topic": self.topic,
                        "error_category": e.category.value,
                        "error_type": type(e).__name__,
                        "error_message": str(e)[:200],
                    },
                )
                raise

        record_error(self.role, budget.last_error.category.value)
        raise budget.last_error


__all__ = [
    "KafkaProducer",
]
