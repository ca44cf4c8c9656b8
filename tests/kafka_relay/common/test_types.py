"""Tests for the message envelope and consume results."""

from datetime import UTC, datetime
from types import SimpleNamespace

import pytest

from core.errors.exceptions import CodecError
from kafka_relay.common.types import ConsumeResult, Message, from_consumer_record


class TestMessage:
    def test_defaults(self):
        message = Message()
        assert message.key is None
        assert message.payload is None
        assert message.ts_ms_utc is None
        assert message.partition == 0
        assert message.timestamp is None

    def test_timestamp_is_utc(self):
        message = Message(ts_ms_utc=1_700_000_000_123)
        assert message.timestamp == datetime(2023, 11, 14, 22, 13, 20, 123000, tzinfo=UTC)

    def test_into_payload(self):
        assert Message(payload={"a": 1}).into_payload() == {"a": 1}

    def test_is_immutable(self):
        message = Message(key=b"k")
        with pytest.raises(AttributeError):
            message.key = b"other"


class TestConsumeResult:
    def test_success(self):
        result = ConsumeResult.success(Message(payload=b"v"))
        assert result.ok
        assert result.unwrap().payload == b"v"

    def test_failure_unwrap_raises(self):
        error = CodecError("bad")
        result = ConsumeResult.failure(error)

        assert not result.ok
        with pytest.raises(CodecError):
            result.unwrap()

    def test_requires_exactly_one(self):
        with pytest.raises(ValueError):
            ConsumeResult()
        with pytest.raises(ValueError):
            ConsumeResult(message=Message(), error=CodecError("x"))


class TestFromConsumerRecord:
    def test_copies_envelope_fields(self):
        record = SimpleNamespace(key=b"k1", timestamp=1234, partition=3, value=b"raw")
        message = from_consumer_record(record, payload="decoded")

        assert message == Message(key=b"k1", ts_ms_utc=1234, payload="decoded", partition=3)

    def test_missing_timestamp_and_key(self):
        record = SimpleNamespace(key=None, timestamp=-1, partition=0, value=None)
        message = from_consumer_record(record)

        assert message.key is None
        assert message.ts_ms_utc is None
        assert message.payload is None
