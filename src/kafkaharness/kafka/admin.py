"""
Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from __future__ import annotations

from collections.abc import Container, Iterable, Iterator
from concurrent.futures import Future
from confluent_kafka.admin import AdminClient, ClusterMetadata, NewTopic
from confluent_kafka.error import KafkaException
from kafkaharness.kafka.common import _KafkaConfigMixin, raise_from_kafkaexception, single_futmap_result
from kafkaharness.typing import BrokerAddress, PartitionId, TopicName
from kafkaharness.utils import Expiration

import time

TOPIC_CREATION_TIMEOUT_S = 20
NO_LEADER = -1

Leaders = dict[tuple[TopicName, PartitionId], BrokerAddress]


class KafkaAdminClient(_KafkaConfigMixin, AdminClient):
    def new_topic(
        self,
        name: str,
        *,
        num_partitions: int = 1,
        replication_factor: int = 1,
        config: dict[str, str] | None = None,
        request_timeout: float = TOPIC_CREATION_TIMEOUT_S,
    ) -> NewTopic:
        new_topic = NewTopic(
            topic=name,
            num_partitions=num_partitions,
            replication_factor=replication_factor,
            config=config if config is not None else {},
        )
        self.log.info("Creating new topic %s with replication factor %s", name, replication_factor)
        futmap: dict[str, Future] = self.create_topics([new_topic], request_timeout=request_timeout)
        try:
            single_futmap_result(futmap)
            return new_topic
        except KafkaException as exc:
            raise_from_kafkaexception(exc)

    def partition_leaders(self, topics: Container[str] | None = None, timeout: float = 5.0) -> Leaders:
        """Client facing address of the leader of every partition.

        Partitions without a leader, eg. during an election, are left out.
        """
        try:
            metadata: ClusterMetadata = self.list_topics(timeout=timeout)
        except KafkaException as exc:
            raise_from_kafkaexception(exc)

        leaders: Leaders = {}
        for topic, topic_metadata in metadata.topics.items():
            if topics is not None and topic not in topics:
                continue
            for partition_id, partition_metadata in topic_metadata.partitions.items():
                broker = metadata.brokers.get(partition_metadata.leader)
                if partition_metadata.leader == NO_LEADER or broker is None:
                    continue
                leaders[(TopicName(topic), PartitionId(partition_id))] = BrokerAddress(broker.host, broker.port)
        return leaders

    def wait_for_leader(self, topic: str, partition: int, timeout: float = 30.0) -> BrokerAddress:
        expiration = Expiration.from_timeout(timeout)
        key = (TopicName(topic), PartitionId(partition))
        while True:
            leader = self.partition_leaders([topic]).get(key)
            if leader is not None:
                return leader
            expiration.raise_timeout_if_expired("No leader elected for {}/{}", topic, partition)
            time.sleep(0.5)


class LeadershipWatcher:
    """Stream of partition leadership snapshots.

    The current leadership is yielded right away, later snapshots only once
    the leadership changed. Cluster metadata is polled every `interval`
    seconds.
    """

    def __init__(self, admin: KafkaAdminClient, topics: Iterable[str] | None = None, interval: float = 0.5) -> None:
        self.admin = admin
        self.topics = frozenset(topics) if topics is not None else None
        self.interval = interval

    def __iter__(self) -> Iterator[Leaders]:
        previous: Leaders | None = None
        while True:
            leaders = self.admin.partition_leaders(self.topics)
            if leaders != previous:
                previous = leaders
                yield leaders
            time.sleep(self.interval)
