"""
Kafka Relay: resilient consumer/producer adapters over aiokafka.

Wraps "receive a stream of messages" and "send one message" in a bounded
reconnect policy and a pluggable byte-codec layer, so ingestion and egestion
pipelines survive transient broker failures without their own retry logic.

Subpackages:
    common   - Builder, codecs, envelope types, connection state machine, adapters

Dependencies:
    - core.*: Reusable components (errors, logging, utils)
    - aiokafka: Kafka client
    - pydantic: Model codec
"""

from kafka_relay.common import (
    ConsumeResult,
    KafkaConsumer,
    KafkaProducer,
    Message,
)
from kafka_relay.config import AutoOffsetReset, KafkaConfig, KafkaLogLevel, load_config

__version__ = "0.1.0"
__all__ = [
    "AutoOffsetReset",
    "ConsumeResult",
    "KafkaConfig",
    "KafkaConsumer",
    "KafkaLogLevel",
    "KafkaProducer",
    "Message",
    "load_config",
]
