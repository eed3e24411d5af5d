"""
kafkaharness - test messages

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from __future__ import annotations

from kafkaharness.typing import PartitionId, TopicName
from typing import Final, NamedTuple, Protocol

import logging

LOG = logging.getLogger(__name__)

MESSAGE_KEY: Final = b"\x01"
DEFAULT_PUBLISH_TIMEOUT_S: Final = 10.0


class TopicMessage(NamedTuple):
    offset: int
    key: bytes
    value: bytes
    # High watermark of the partition at the time the message was read
    tail: int


class Publisher(Protocol):
    def publish1(
        self,
        topic: TopicName,
        partition: PartitionId,
        key: bytes,
        value: bytes,
        require_quorum: bool,
        timeout: float,
    ) -> object:
        ...


def encode_offset(offset: int) -> bytes:
    """Single byte value of a message, the offset truncated to its lowest byte."""
    return bytes([offset & 0xFF])


def generate_messages(start: int, end: int, high_watermark: int) -> list[TopicMessage]:
    """Messages expected at offsets [start, end) of a partition filled by `publish_sequence`."""
    return [TopicMessage(offset, MESSAGE_KEY, encode_offset(offset), high_watermark) for offset in range(start, end)]


def publish_sequence(
    client: Publisher,
    topic: TopicName,
    partition: PartitionId,
    start: int,
    end: int,
    *,
    require_quorum: bool = False,
    timeout: float = DEFAULT_PUBLISH_TIMEOUT_S,
) -> None:
    """Publish one message per offset in [start, end), one after the other.

    The first failed publish is raised, the remaining messages are not sent.
    """
    LOG.info("Publishing messages %s..%s to %s/%s", start, end, topic, partition)
    for offset in range(start, end):
        client.publish1(topic, partition, MESSAGE_KEY, encode_offset(offset), require_quorum, timeout)
