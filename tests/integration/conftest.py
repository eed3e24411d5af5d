"""
Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""
from __future__ import annotations

from confluent_kafka import Consumer, TopicPartition
from kafkaharness.cluster import ClusterOrchestrator
from kafkaharness.messages import TopicMessage
from kafkaharness.topology import ClusterTopology
from kafkaharness.utils import Expiration

import pytest
import uuid

TEST_TOPIC = "test-topic-A"


def new_random_name(prefix: str) -> str:
    return f"{prefix}{uuid.uuid4().hex[:8]}"


def read_messages(
    bootstrap_servers: str,
    topic: str,
    partition: int,
    count: int,
    timeout: float = 30.0,
) -> list[TopicMessage]:
    """Read `count` messages from the start of a partition, along with its high watermark."""
    consumer = Consumer(
        {
            "bootstrap.servers": bootstrap_servers,
            "group.id": new_random_name("kafkaharness-"),
            "auto.offset.reset": "earliest",
            "enable.auto.commit": False,
        }
    )
    try:
        consumer.assign([TopicPartition(topic, partition, 0)])
        expiration = Expiration.from_timeout(timeout)
        messages = []
        while len(messages) < count:
            expiration.raise_timeout_if_expired("Read {} of {} messages from {}", len(messages), count, topic)
            message = consumer.poll(timeout=1.0)
            if message is None or message.error() is not None:
                continue
            messages.append(message)
        _, high_watermark = consumer.get_watermark_offsets(TopicPartition(topic, partition), timeout=10.0)
        return [TopicMessage(m.offset(), m.key(), m.value(), high_watermark) for m in messages]
    finally:
        consumer.close()


@pytest.fixture(name="singleton_bootstrap_servers")
def fixture_singleton_bootstrap_servers(kafka_singleton: ClusterTopology, orchestrator: ClusterOrchestrator) -> str:
    return ",".join(str(address) for address in orchestrator.broker_addresses(kafka_singleton.size).values())
