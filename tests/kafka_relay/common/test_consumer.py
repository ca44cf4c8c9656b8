"""
Tests for the reconnecting Kafka consumer stream.

These are unit tests that use mocks - no Docker/Kafka required.
"""

from unittest.mock import AsyncMock, patch

import pytest
from aiokafka.errors import ConsumerStoppedError, KafkaConnectionError

from core.errors.exceptions import (
    CodecError,
    ConnectError,
    FatalTransportError,
    NoConnectionError,
    PartitionEOFError,
    TransientTransportError,
)
from kafka_relay.common.codecs import JsonCodec, StringCodec
from kafka_relay.common.connection import ConnectionState
from kafka_relay.common.consumer import KafkaConsumer

from .conftest import make_builder, make_consumer_handle, make_record


async def collect(stream, limit=None):
    results = []
    async for result in stream:
        results.append(result)
        if limit is not None and len(results) >= limit:
            await stream.aclose()
            break
    return results


class TestKafkaConsumerInit:
    def test_defaults(self, make_config):
        consumer = KafkaConsumer(make_config(), builder=make_builder())

        assert consumer.group_id == "relay"
        assert consumer.partition_eof is False
        assert consumer.reconnect_count == 100
        assert not consumer.is_connected

    @pytest.mark.asyncio
    async def test_stream_requires_topic(self, make_config):
        consumer = KafkaConsumer(make_config(topic=None), builder=make_builder())

        with pytest.raises(ValueError, match="At least one topic"):
            await consumer.stream().__anext__()


class TestRecv:
    @pytest.mark.asyncio
    async def test_recv_without_connection(self, make_config):
        consumer = KafkaConsumer(make_config(), builder=make_builder())

        with pytest.raises(NoConnectionError):
            await consumer.recv()

    @pytest.mark.asyncio
    async def test_recv_decodes_payload(self, make_config):
        handle = make_consumer_handle([make_record(key=b"k1", value=b"hello", partition=2)])
        consumer = KafkaConsumer(
            make_config(), decoder=StringCodec(), builder=make_builder(consumer_handles=[handle])
        )

        await consumer.connect("events")
        message = await consumer.recv()

        assert message.payload == "hello"
        assert message.key == b"k1"
        assert message.partition == 2
        assert message.ts_ms_utc == 1_700_000_000_000

    @pytest.mark.asyncio
    async def test_empty_record_has_no_payload(self, make_config):
        handle = make_consumer_handle([make_record(value=None)])
        consumer = KafkaConsumer(
            make_config(), decoder=JsonCodec(), builder=make_builder(consumer_handles=[handle])
        )

        await consumer.connect(["events"])
        message = await consumer.recv()

        assert message.payload is None

    @pytest.mark.asyncio
    async def test_connect_subscribes_to_topics(self, make_config):
        handle = make_consumer_handle()
        builder = make_builder(consumer_handles=[handle])
        consumer = KafkaConsumer(make_config(), builder=builder)

        await consumer.connect(["events", "audit"])

        builder.build_consumer.assert_called_once_with(["events", "audit"])
        handle.start.assert_awaited_once()


class TestStreamReconnects:
    @pytest.mark.asyncio
    async def test_connect_failures_exhaust_budget(self, make_config):
        handles = [make_consumer_handle(start_error=KafkaConnectionError("down")) for _ in range(3)]
        builder = make_builder(consumer_handles=handles)
        consumer = KafkaConsumer(make_config(reconnect_count=2), builder=builder)

        results = await collect(consumer.stream())

        assert len(results) == 1
        assert not results[0].ok
        assert isinstance(results[0].error, ConnectError)
        assert results[0].error.context["reconnect_attempts"] == 3
        assert consumer.connect_attempts == 3
        assert builder.build_consumer.call_count == 3
        assert consumer.state == ConnectionState.EXHAUSTED

    @pytest.mark.asyncio
    async def test_zero_reconnects_single_attempt(self, make_config):
        handles = [make_consumer_handle(start_error=KafkaConnectionError("down"))]
        consumer = KafkaConsumer(
            make_config(reconnect_count=0), builder=make_builder(consumer_handles=handles)
        )

        results = await collect(consumer.stream("events"))

        assert len(results) == 1
        assert isinstance(results[0].error, ConnectError)
        assert consumer.connect_attempts == 1

    @pytest.mark.asyncio
    async def test_fails_twice_then_succeeds(self, make_config):
        handles = [
            make_consumer_handle(start_error=KafkaConnectionError("down")),
            make_consumer_handle(start_error=KafkaConnectionError("down")),
            make_consumer_handle([make_record(value=b"ok")]),
        ]
        consumer = KafkaConsumer(
            make_config(reconnect_count=2), builder=make_builder(consumer_handles=handles)
        )

        results = await collect(consumer.stream("events"), limit=1)

        assert results[0].ok
        assert results[0].message.payload == b"ok"
        assert consumer.connect_attempts == 3
        assert consumer.state == ConnectionState.CONNECTED

    @pytest.mark.asyncio
    async def test_fatal_errors_reconnect_until_exhausted(self, make_config):
        first = make_consumer_handle([ConsumerStoppedError()])
        second = make_consumer_handle([ConsumerStoppedError()])
        consumer = KafkaConsumer(
            make_config(reconnect_count=1), builder=make_builder(consumer_handles=[first, second])
        )

        results = await collect(consumer.stream("events"))

        assert len(results) == 1
        assert isinstance(results[0].error, FatalTransportError)
        assert isinstance(results[0].error.cause, ConsumerStoppedError)
        assert consumer.connect_attempts == 2
        first.stop.assert_awaited_once()
        second.stop.assert_awaited_once()
        assert not consumer.is_connected

    @pytest.mark.asyncio
    async def test_fatal_error_then_fresh_handle_delivers(self, make_config):
        first = make_consumer_handle([ConsumerStoppedError()])
        second = make_consumer_handle([make_record(offset=7, value=b"after")])
        consumer = KafkaConsumer(
            make_config(reconnect_count=1), builder=make_builder(consumer_handles=[first, second])
        )

        results = await collect(consumer.stream("events"), limit=1)

        assert results[0].message.payload == b"after"
        assert consumer.connect_attempts == 2

    @pytest.mark.asyncio
    async def test_sleep_between_reconnects(self, make_config):
        handles = [make_consumer_handle(start_error=KafkaConnectionError("down")) for _ in range(3)]
        consumer = KafkaConsumer(
            make_config(reconnect_count=2, reconnect_sleep_ms=250),
            builder=make_builder(consumer_handles=handles),
            sleep_between_reconnects=True,
        )

        with patch("kafka_relay.common.connection.asyncio.sleep", new_callable=AsyncMock) as sleep:
            await collect(consumer.stream("events"))

        assert sleep.await_count == 2
        sleep.assert_awaited_with(0.25)

    @pytest.mark.asyncio
    async def test_each_stream_gets_fresh_budget(self, make_config):
        handles = [make_consumer_handle(start_error=KafkaConnectionError("down")) for _ in range(2)]
        consumer = KafkaConsumer(
            make_config(reconnect_count=0), builder=make_builder(consumer_handles=handles)
        )

        await collect(consumer.stream("events"))
        await collect(consumer.stream("events"))

        assert consumer.connect_attempts == 2


class TestStreamSubscription:
    @pytest.mark.asyncio
    async def test_stream_on_other_topic_resubscribes(self, make_config):
        first = make_consumer_handle([make_record(topic="a", value=b"from-a")])
        second = make_consumer_handle([make_record(topic="b", value=b"from-b")])
        builder = make_builder(consumer_handles=[first, second])
        consumer = KafkaConsumer(make_config(reconnect_count=0), builder=builder)

        await consumer.connect("a")
        results = await collect(consumer.stream("b"), limit=1)

        assert results[0].message.payload == b"from-b"
        assert [c.args[0] for c in builder.build_consumer.call_args_list] == [["a"], ["b"]]
        first.stop.assert_awaited_once()
        assert consumer.topics == ["b"]

    @pytest.mark.asyncio
    async def test_stream_on_same_topic_reuses_connection(self, make_config):
        handle = make_consumer_handle([make_record(value=b"v")])
        builder = make_builder(consumer_handles=[handle])
        consumer = KafkaConsumer(make_config(), builder=builder)

        await consumer.connect("events")
        results = await collect(consumer.stream("events"), limit=1)

        assert results[0].ok
        assert builder.build_consumer.call_count == 1
        handle.stop.assert_not_awaited()


class TestStreamNonFatalErrors:
    @pytest.mark.asyncio
    async def test_codec_errors_do_not_consume_budget(self, make_config):
        handle = make_consumer_handle(
            [
                make_record(offset=0, value=b"{not json"),
                make_record(offset=1, value=b'{"a": 1}'),
                ConsumerStoppedError(),
            ]
        )
        consumer = KafkaConsumer(
            make_config(reconnect_count=0),
            decoder=JsonCodec(),
            builder=make_builder(consumer_handles=[handle]),
        )

        results = await collect(consumer.stream("events"))

        assert len(results) == 3
        assert isinstance(results[0].error, CodecError)
        assert results[0].error.context["offset"] == 0
        assert results[1].message.payload == {"a": 1}
        assert isinstance(results[2].error, FatalTransportError)
        assert consumer.connect_attempts == 1

    @pytest.mark.asyncio
    async def test_transient_error_keeps_connection(self, make_config):
        handle = make_consumer_handle([KafkaConnectionError("blip"), make_record(value=b"v")])
        consumer = KafkaConsumer(
            make_config(reconnect_count=0), builder=make_builder(consumer_handles=[handle])
        )

        results = await collect(consumer.stream("events"), limit=2)

        assert isinstance(results[0].error, TransientTransportError)
        assert results[1].ok
        assert consumer.connect_attempts == 1
        handle.stop.assert_not_awaited()


class TestPartitionEOF:
    @pytest.mark.asyncio
    async def test_eof_reported_after_last_record(self, make_config):
        handle = make_consumer_handle([make_record(partition=1, offset=4)], highwater=5)
        consumer = KafkaConsumer(
            make_config(partition_eof=True), builder=make_builder(consumer_handles=[handle])
        )

        results = await collect(consumer.stream("events"), limit=2)

        assert results[0].ok
        error = results[1].error
        assert isinstance(error, PartitionEOFError)
        assert (error.topic, error.partition, error.offset) == ("events", 1, 5)
        assert consumer.connect_attempts == 1

    @pytest.mark.asyncio
    async def test_no_eof_when_more_records_available(self, make_config):
        handle = make_consumer_handle(
            [make_record(offset=0), make_record(offset=1)], highwater=10
        )
        consumer = KafkaConsumer(
            make_config(partition_eof=True), builder=make_builder(consumer_handles=[handle])
        )

        results = await collect(consumer.stream("events"), limit=2)

        assert all(result.ok for result in results)

    @pytest.mark.asyncio
    async def test_eof_disabled_by_default(self, make_config):
        handle = make_consumer_handle([make_record(offset=0), make_record(offset=1)], highwater=1)
        consumer = KafkaConsumer(make_config(), builder=make_builder(consumer_handles=[handle]))

        results = await collect(consumer.stream("events"), limit=2)

        assert all(result.ok for result in results)
        handle.highwater.assert_not_called()
