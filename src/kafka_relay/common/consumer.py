"""Kafka consumer adapter: a reconnecting, decoding stream of messages."""

import logging
from collections import deque
from collections.abc import AsyncIterator, Sequence
from typing import Any, Generic, TypeVar

from aiokafka import AIOKafkaConsumer
from aiokafka.structs import ConsumerRecord, TopicPartition

from core.errors.exceptions import (
    CodecError,
    FatalTransportError,
    NoConnectionError,
    PartitionEOFError,
    PipelineError,
)
from core.errors.kafka_classifier import KafkaErrorClassifier
from core.logging import MessageLogContext
from kafka_relay.common.builder import KafkaClientBuilder
from kafka_relay.common.codecs import BytesCodec, Decoder
from kafka_relay.common.connection import ManagedConnection
from kafka_relay.common.metrics import record_error, record_message_consumed
from kafka_relay.common.types import ConsumeResult, Message, from_consumer_record
from kafka_relay.config import KafkaConfig

logger = logging.getLogger(__name__)

M = TypeVar("M")


def _resolve_topics(topics: str | Sequence[str] | None, default: str | None) -> list[str]:
    if topics is None:
        topics = default
    if isinstance(topics, str):
        topics = [topics]
    topic_list = [t for t in (topics or []) if t]
    if not topic_list:
        raise ValueError("At least one topic must be specified")
    return topic_list


class KafkaConsumer(ManagedConnection[AIOKafkaConsumer], Generic[M]):
    """Async consumer that yields decoded messages and reconnects on fatal errors.

    Usage:
        async with KafkaConsumer(config, decoder=JsonCodec()) as consumer:
            async for result in consumer.stream("events"):
                if result.ok:
                    handle(result.message)
    """

    role = "consumer"

    def __init__(
        self,
        config: KafkaConfig,
        decoder: Decoder[M] | None = None,
        builder: KafkaClientBuilder | None = None,
        sleep_between_reconnects: bool = False,
    ):
        super().__init__(config, builder=builder, sleep_between_reconnects=sleep_between_reconnects)
        self.decoder = decoder if decoder is not None else BytesCodec()
        self.group_id = config.group_id
        self.partition_eof = bool(config.partition_eof)
        self.topics: list[str] = []
        self._pending_eof: deque[PartitionEOFError] = deque()

        logger.info(
            "Initialized Kafka consumer",
            extra={
                "group_id": self.group_id,
                "bootstrap_servers": config.bootstrap_servers,
                "reconnect_count": self.reconnect_count,
                "partition_eof": self.partition_eof,
            },
        )

    async def _open_handle(self, topics: list[str]) -> AIOKafkaConsumer:
        consumer = self._builder.build_consumer(topics)
        try:
            await consumer.start()
        except Exception:
            await self._close_handle(consumer)
            raise
        return consumer

    async def connect(self, topics: str | Sequence[str]) -> None:
        """Build a fresh consumer subscribed to ``topics``. Raises ConnectError."""
        self.topics = _resolve_topics(topics, None)
        self._pending_eof.clear()
        await self._connect(self.topics)

    async def recv(self) -> Message[M]:
        """Receive and decode one record from the live connection.

        Raises:
            NoConnectionError: no prior successful connect
            FatalTransportError / TransientTransportError: client failure
            PartitionEOFError: end of partition reached (partition EOF enabled)
            CodecError: payload could not be decoded
        """
        consumer = self._handle
        if consumer is None:
            raise NoConnectionError()

        if self._pending_eof:
            raise self._pending_eof.popleft()

        try:
            record = await consumer.getone()
        except Exception as e:
            raise KafkaErrorClassifier.classify_consumer_error(
                e, context={"group_id": self.group_id, "topics": self.topics}
            ) from e

        if self.partition_eof:
            self._track_partition_eof(consumer, record)

        with MessageLogContext(
            topic=record.topic,
            partition=record.partition,
            offset=record.offset,
            key=record.key.decode("utf-8", errors="replace") if record.key else None,
            consumer_group=self.group_id,
        ):
            payload = self._decode(record)
            record_message_consumed(record.topic)
            logger.debug(
                "Received message",
                extra={"value_size": len(record.value) if record.value else 0},
            )

        return from_consumer_record(record, payload)

    def _decode(self, record: ConsumerRecord) -> M | None:
        if record.value is None:
            return None
        try:
            return self.decoder.decode(record.value)
        except Exception as e:
            raise CodecError(
                f"Message decode error: {e}",
                cause=e,
                context={
                    "topic": record.topic,
                    "partition": record.partition,
                    "offset": record.offset,
                },
            ) from e

    def _track_partition_eof(self, consumer: AIOKafkaConsumer, record: ConsumerRecord) -> None:
        """Queue an end-of-partition event when ``record`` is the last one available."""
        highwater = consumer.highwater(TopicPartition(record.topic, record.partition))
        if highwater is not None and record.offset + 1 >= highwater:
            self._pending_eof.append(
                PartitionEOFError(record.topic, record.partition, record.offset + 1)
            )

    async def stream(
        self,
        topics: str | Sequence[str] | None = None,
        context: Any = None,
    ) -> AsyncIterator[ConsumeResult[M]]:
        """Lazily receive messages from ``topics`` (default: config.topic).

        Each step yields a ConsumeResult. Fatal transport errors reconnect
        without yielding; other errors are yielded and receiving continues
        on the same connection. When the reconnect budget runs out the last
        fatal/connect error is yielded and the stream ends.

        A live connection subscribed to other topics is closed first; this
        does not count against the reconnect budget.

        ``context`` is an opaque per-call token passed through unchanged.
        """
        topic_list = _resolve_topics(topics, self.config.topic)
        budget = self._new_budget()

        if self.is_connected and self.topics != topic_list:
            logger.info(
                "Subscription changed, rebuilding consumer",
                extra={"topics": topic_list, "group_id": self.group_id},
            )
            await self._discard_handle()

        logger.info(
            "Starting consumer stream",
            extra={"topics": topic_list, "group_id": self.group_id, "max_attempts": budget.limit},
        )

        while not budget.exhausted:
            if not self.is_connected:
                self.topics = topic_list
                self._pending_eof.clear()
                if not await self._try_connect(budget, topic_list):
                    continue

            try:
                message = await self.recv()
            except FatalTransportError as e:
                await self._on_fatal(budget, e)
                continue
            except PipelineError as e:
                record_error(self.role, e.category.value)
                logger.warning(
                    "Consumer error, continuing on current connection",
                    extra={
                        "error_category": e.category.value,
                        "error_type": type(e).__name__,
                        "error_message": str(e)[:200],
                    },
                )
                yield ConsumeResult.failure(e)
                continue

            yield ConsumeResult.success(message)

        record_error(self.role, budget.last_error.category.value)
        yield ConsumeResult.failure(budget.last_error)


__all__ = [
    "KafkaConsumer",
]
