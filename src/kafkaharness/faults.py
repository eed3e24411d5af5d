"""
kafkaharness - fault injection

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from kafkaharness.errors import UnknownLeader
from kafkaharness.instances import InstanceManager
from kafkaharness.topology import ClusterTopology
from kafkaharness.typing import BrokerAddress, BrokerOrdinal, PartitionId, TopicName

import logging

LOG = logging.getLogger(__name__)

LeadershipSnapshot = Mapping[tuple[TopicName, PartitionId], BrokerAddress]


def resolve_leader(
    snapshot: LeadershipSnapshot,
    addresses: Mapping[BrokerOrdinal, BrokerAddress],
    topic: TopicName,
    partition: PartitionId,
) -> BrokerOrdinal:
    try:
        leader = snapshot[(topic, partition)]
    except KeyError:
        raise UnknownLeader(f"No leader known for {topic}/{partition}") from None

    for ordinal, address in addresses.items():
        if address == leader:
            return ordinal
    raise UnknownLeader(f"Leader {leader} of {topic}/{partition} is not a broker of this cluster")


def kill_leader(
    instance_manager: InstanceManager,
    topology: ClusterTopology,
    leaders: Iterable[LeadershipSnapshot],
    addresses: Mapping[BrokerOrdinal, BrokerAddress],
    topic: TopicName,
    partition: PartitionId,
) -> BrokerOrdinal:
    """Stop the broker currently leading `topic`/`partition`.

    Only the first snapshot of `leaders` is looked at. The leader address is
    resolved to a broker through `addresses`, and to its instance through
    `topology`. Nothing is stopped if the leader can not be resolved.
    """
    snapshot = next(iter(leaders), None)
    if snapshot is None:
        raise UnknownLeader(f"No leadership information available for {topic}/{partition}")

    ordinal = resolve_leader(snapshot, addresses, topic, partition)
    handle = topology.broker(ordinal)
    LOG.info("Killing broker %s (%s), leader of %s/%s", ordinal, handle[:12], topic, partition)
    instance_manager.stop(handle)
    return ordinal
