"""Client options and handle construction for aiokafka consumers and producers."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from aiokafka import AIOKafkaConsumer, AIOKafkaProducer

from kafka_relay.config import KafkaConfig

logger = logging.getLogger(__name__)

CLIENT_LOGGER_NAME = "aiokafka"


@dataclass(frozen=True)
class ClientOptions:
    """Options derived from a validated KafkaConfig.

    Tri-state settings stay None when the configuration leaves them unset
    and are then omitted from the aiokafka keyword arguments.
    """

    bootstrap_servers: str
    group_id: str
    partition_eof: bool | None = None
    session_timeout_ms: int | None = None
    message_timeout_ms: int | None = None
    message_max_bytes: int | None = None
    queue_buffering_max_kbytes: int | None = None
    enable_auto_commit: bool | None = None
    auto_offset_reset: str = "earliest"
    log_level: int = logging.ERROR

    def consumer_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for AIOKafkaConsumer."""
        kwargs: dict[str, Any] = {
            "bootstrap_servers": self.bootstrap_servers,
            "group_id": self.group_id,
            "auto_offset_reset": self.auto_offset_reset,
        }
        if self.session_timeout_ms is not None:
            kwargs["session_timeout_ms"] = self.session_timeout_ms
        if self.enable_auto_commit is not None:
            kwargs["enable_auto_commit"] = self.enable_auto_commit
        if self.message_max_bytes is not None:
            kwargs["max_partition_fetch_bytes"] = self.message_max_bytes
        return kwargs

    def producer_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for AIOKafkaProducer (zero local queuing delay)."""
        kwargs: dict[str, Any] = {
            "bootstrap_servers": self.bootstrap_servers,
            "linger_ms": 0,
        }
        if self.message_timeout_ms is not None:
            kwargs["request_timeout_ms"] = self.message_timeout_ms
        if self.message_max_bytes is not None:
            kwargs["max_request_size"] = self.message_max_bytes
        if self.queue_buffering_max_kbytes is not None:
            kwargs["max_batch_size"] = self.queue_buffering_max_kbytes * 1024
        return kwargs


def build_client_options(config: KafkaConfig) -> ClientOptions:
    """Map a KafkaConfig onto ClientOptions. Deterministic, no I/O."""
    max_message_size = config.max_message_size
    buffering_kbytes = max_message_size // 1024 if max_message_size is not None else None

    return ClientOptions(
        bootstrap_servers=",".join(config.brokers),
        group_id=config.group_id,
        partition_eof=config.partition_eof,
        session_timeout_ms=config.session_timeout_ms,
        message_timeout_ms=config.message_timeout_ms,
        message_max_bytes=max_message_size,
        queue_buffering_max_kbytes=buffering_kbytes,
        enable_auto_commit=config.auto_commit,
        auto_offset_reset=config.auto_offset_reset.value,
        log_level=config.log_level.to_logging_level(),
    )


class KafkaClientBuilder:
    """Builds fresh aiokafka handles from one KafkaConfig.

    Construction is not validated ahead of time: a malformed broker address
    or unreachable cluster surfaces when the handle is built or started.
    """

    def __init__(self, config: KafkaConfig):
        self.options = build_client_options(config)

    def _apply_log_level(self) -> None:
        logging.getLogger(CLIENT_LOGGER_NAME).setLevel(self.options.log_level)

    def build_consumer(self, topics: Sequence[str]) -> AIOKafkaConsumer:
        self._apply_log_level()
        logger.debug(
            "Building consumer handle",
            extra={"topics": list(topics), "group_id": self.options.group_id},
        )
        return AIOKafkaConsumer(*topics, **self.options.consumer_kwargs())

    def build_producer(self) -> AIOKafkaProducer:
        self._apply_log_level()
        logger.debug(
            "Building producer handle",
            extra={"bootstrap_servers": self.options.bootstrap_servers},
        )
        return AIOKafkaProducer(**self.options.producer_kwargs())


__all__ = [
    "ClientOptions",
    "KafkaClientBuilder",
    "build_client_options",
]
