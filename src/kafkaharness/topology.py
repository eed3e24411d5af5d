"""
kafkaharness - cluster topology

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from kafkaharness.config import DEFAULT_BROKER_BASE_PORT, DEFAULT_BROKER_PORT_STEP
from kafkaharness.errors import InvalidBrokerOrdinal, InvalidTopology
from kafkaharness.typing import BrokerAddress, BrokerOrdinal, InstanceHandle
from types import MappingProxyType


def broker_port(
    ordinal: BrokerOrdinal | int,
    base_port: int = DEFAULT_BROKER_BASE_PORT,
    port_step: int = DEFAULT_BROKER_PORT_STEP,
) -> int:
    return base_port + port_step * (int(ordinal) - 1)


def broker_address_table(
    host: str,
    size: int,
    base_port: int = DEFAULT_BROKER_BASE_PORT,
    port_step: int = DEFAULT_BROKER_PORT_STEP,
) -> Mapping[BrokerOrdinal, BrokerAddress]:
    """Client facing address of every broker of a cluster with `size` brokers."""
    return MappingProxyType(
        {ordinal: BrokerAddress(host, broker_port(ordinal, base_port, port_step)) for ordinal in BrokerOrdinal.all(size)}
    )


@dataclass(frozen=True)
class ClusterTopology:
    """The running instances of a ready cluster, keyed by broker ordinal.

    Built once the last broker is ready and never changed afterwards. The
    instances are owned by the orchestrator which built it.
    """

    coordinator: InstanceHandle
    brokers: Mapping[BrokerOrdinal, InstanceHandle]

    def __post_init__(self) -> None:
        brokers = dict(sorted(self.brokers.items()))
        if not brokers:
            raise InvalidTopology("A cluster needs at least one broker")
        expected = BrokerOrdinal.all(len(brokers))
        if list(brokers) != expected:
            raise InvalidTopology(f"Broker ordinals must be 1..{len(brokers)}, got: {[int(o) for o in brokers]}")
        handles = list(brokers.values())
        if len(set(handles)) != len(handles):
            raise InvalidTopology(f"Broker instances must be distinct, got: {handles}")
        if self.coordinator in handles:
            raise InvalidTopology(f"Coordinator {self.coordinator} is also registered as a broker")
        object.__setattr__(self, "brokers", MappingProxyType(brokers))

    @property
    def size(self) -> int:
        return len(self.brokers)

    def ordinal(self, value: int) -> BrokerOrdinal:
        return BrokerOrdinal(value, self.size)

    def broker(self, ordinal: BrokerOrdinal | int) -> InstanceHandle:
        if not isinstance(ordinal, BrokerOrdinal):
            ordinal = self.ordinal(ordinal)
        elif ordinal not in self.brokers:
            raise InvalidBrokerOrdinal(f"Broker ordinal must be within [1, {self.size}], got: {ordinal}")
        return self.brokers[ordinal]

    def ordinals(self) -> list[BrokerOrdinal]:
        return list(self.brokers)

    def handles(self) -> list[InstanceHandle]:
        """All instances, coordinator first."""
        return [self.coordinator, *self.brokers.values()]
