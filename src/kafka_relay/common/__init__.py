"""
Shared Kafka adapter infrastructure.

Components:
    builder     - KafkaConfig -> aiokafka client options and handles
    codecs      - Decoder/Encoder protocols and stock codecs
    types       - Message envelope, KafkaMessage protocol, ConsumeResult
    connection  - Retry-bounded connection state machine
    consumer    - KafkaConsumer stream adapter
    producer    - KafkaProducer send adapter
    metrics     - Prometheus metrics
"""

from kafka_relay.common.builder import ClientOptions, KafkaClientBuilder, build_client_options
from kafka_relay.common.codecs import (
    BytesCodec,
    Decoder,
    Encoder,
    JsonCodec,
    PydanticCodec,
    StringCodec,
)
from kafka_relay.common.connection import ConnectionState, ManagedConnection, ReconnectBudget
from kafka_relay.common.consumer import KafkaConsumer
from kafka_relay.common.producer import KafkaProducer
from kafka_relay.common.types import ConsumeResult, KafkaMessage, Message

__all__ = [
    "ClientOptions",
    "KafkaClientBuilder",
    "build_client_options",
    "Decoder",
    "Encoder",
    "BytesCodec",
    "StringCodec",
    "JsonCodec",
    "PydanticCodec",
    "ConnectionState",
    "ManagedConnection",
    "ReconnectBudget",
    "KafkaConsumer",
    "KafkaProducer",
    "ConsumeResult",
    "KafkaMessage",
    "Message",
]
