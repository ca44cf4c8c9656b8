"""Fake aiokafka handles and builders for adapter tests."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, Mock

import pytest

from kafka_relay.config import KafkaConfig


def make_record(topic="events", partition=0, offset=0, key=b"key", value=b"value", timestamp=1_700_000_000_000):
    """Minimal stand-in for aiokafka's ConsumerRecord."""
    return SimpleNamespace(
        topic=topic,
        partition=partition,
        offset=offset,
        key=key,
        value=value,
        timestamp=timestamp,
    )


def make_consumer_handle(items=(), start_error=None, highwater=None):
    """AIOKafkaConsumer mock; ``items`` are records or exceptions returned by getone()."""
    handle = MagicMock()
    handle.start = AsyncMock(side_effect=start_error)
    handle.stop = AsyncMock()
    handle.getone = AsyncMock(side_effect=list(items))
    handle.highwater = Mock(return_value=highwater)
    return handle


def make_producer_handle(send_results=(None,), start_error=None):
    """AIOKafkaProducer mock; ``send_results`` are metadata values or exceptions."""
    handle = MagicMock()
    handle.start = AsyncMock(side_effect=start_error)
    handle.stop = AsyncMock()
    handle.send_and_wait = AsyncMock(
        side_effect=[
            result if isinstance(result, Exception) else SimpleNamespace(partition=0, offset=i)
            for i, result in enumerate(send_results)
        ]
    )
    return handle


def make_builder(consumer_handles=(), producer_handles=()):
    builder = Mock()
    builder.build_consumer = Mock(side_effect=list(consumer_handles))
    builder.build_producer = Mock(side_effect=list(producer_handles))
    return builder


@pytest.fixture
def make_config():
    def _make(**overrides):
        values = {"brokers": ["localhost:9092"], "group_id": "relay", "topic": "events"}
        values.update(overrides)
        return KafkaConfig(**values)

    return _make
