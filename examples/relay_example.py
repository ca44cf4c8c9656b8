"""
Relay JSON messages from one topic to another.

Usage:
    python examples/relay_example.py --config config/config.yaml --to events.copy
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from core.logging import setup_logging
from kafka_relay import KafkaConsumer, KafkaProducer, load_config
from kafka_relay.common import JsonCodec

logger = logging.getLogger(__name__)


async def relay(config_path: Path | None, output_topic: str) -> int:
    config = load_config(config_path)
    codec = JsonCodec()

    async with (
        KafkaConsumer(config, decoder=codec, sleep_between_reconnects=True) as consumer,
        KafkaProducer(config, encoder=codec, topic=output_topic, sleep_between_reconnects=True) as producer,
    ):
        async for result in consumer.stream():
            if not result.ok:
                if result.error.is_fatal:
                    logger.error("Consumer gave up: %s", result.error)
                    return 1
                logger.warning("Skipping message: %s", result.error)
                continue

            await producer.send(result.message)

    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Relay messages between Kafka topics")
    parser.add_argument("--config", type=Path, help="Path to config.yaml")
    parser.add_argument("--to", dest="output_topic", required=True, help="Destination topic")
    args = parser.parse_args()

    load_dotenv()
    setup_logging(name="relay_example", service="relay_example")

    return asyncio.run(relay(args.config, args.output_topic))


if __name__ == "__main__":
    sys.exit(main())
