"""
Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""
from __future__ import annotations

from kafkaharness.errors import InvalidBrokerOrdinal, InvalidTopology
from kafkaharness.topology import broker_address_table, broker_port, ClusterTopology
from kafkaharness.typing import BrokerAddress, BrokerOrdinal, InstanceHandle

import pytest


def topology(size: int) -> ClusterTopology:
    return ClusterTopology(
        InstanceHandle("zk"),
        {ordinal: InstanceHandle(f"broker-{ordinal}") for ordinal in BrokerOrdinal.all(size)},
    )


@pytest.mark.parametrize("value", [0, 4, -1, True, "2"])
def test_ordinal_out_of_range(value: object) -> None:
    with pytest.raises(InvalidBrokerOrdinal):
        BrokerOrdinal(value, 3)  # type: ignore[arg-type]


def test_ordinal_is_a_value() -> None:
    assert BrokerOrdinal(2, 3) == BrokerOrdinal(2, 5)
    assert hash(BrokerOrdinal(2, 3)) == hash(BrokerOrdinal(2, 5))
    assert BrokerOrdinal(1, 3) < BrokerOrdinal(3, 3)
    assert int(BrokerOrdinal(3, 3)) == 3
    assert BrokerOrdinal.all(3) == [BrokerOrdinal(1, 3), BrokerOrdinal(2, 3), BrokerOrdinal(3, 3)]


def test_topology_broker_lookup() -> None:
    cluster = topology(3)

    assert cluster.size == 3
    assert cluster.broker(2) == "broker-2"
    assert cluster.broker(BrokerOrdinal(3, 3)) == "broker-3"
    assert cluster.handles() == ["zk", "broker-1", "broker-2", "broker-3"]


def test_topology_lookup_outside_cluster() -> None:
    cluster = topology(1)

    with pytest.raises(InvalidBrokerOrdinal):
        cluster.broker(2)
    with pytest.raises(InvalidBrokerOrdinal):
        cluster.broker(BrokerOrdinal(2, 3))


def test_topology_is_read_only() -> None:
    cluster = topology(2)

    with pytest.raises(TypeError):
        cluster.brokers[BrokerOrdinal(3, 3)] = InstanceHandle("broker-3")  # type: ignore[index]


def test_topology_orders_brokers() -> None:
    cluster = ClusterTopology(
        InstanceHandle("zk"),
        {BrokerOrdinal(2, 2): InstanceHandle("b"), BrokerOrdinal(1, 2): InstanceHandle("a")},
    )

    assert cluster.ordinals() == BrokerOrdinal.all(2)


def test_topology_rejects_gaps() -> None:
    with pytest.raises(InvalidTopology):
        ClusterTopology(
            InstanceHandle("zk"),
            {BrokerOrdinal(1, 3): InstanceHandle("a"), BrokerOrdinal(3, 3): InstanceHandle("c")},
        )


def test_topology_rejects_duplicate_instances() -> None:
    with pytest.raises(InvalidTopology):
        ClusterTopology(
            InstanceHandle("zk"),
            {BrokerOrdinal(1, 2): InstanceHandle("a"), BrokerOrdinal(2, 2): InstanceHandle("a")},
        )
    with pytest.raises(InvalidTopology):
        ClusterTopology(InstanceHandle("zk"), {BrokerOrdinal(1, 1): InstanceHandle("zk")})


def test_topology_needs_a_broker() -> None:
    with pytest.raises(InvalidTopology):
        ClusterTopology(InstanceHandle("zk"), {})


def test_broker_address_table() -> None:
    addresses = broker_address_table("192.168.1.10", 3)

    assert addresses == {
        BrokerOrdinal(1, 3): BrokerAddress("192.168.1.10", 9092),
        BrokerOrdinal(2, 3): BrokerAddress("192.168.1.10", 9192),
        BrokerOrdinal(3, 3): BrokerAddress("192.168.1.10", 9292),
    }


def test_broker_port_custom_layout() -> None:
    assert broker_port(3, base_port=19092, port_step=10) == 19112


def test_broker_address_str() -> None:
    assert str(BrokerAddress("127.0.0.1", 9092)) == "127.0.0.1:9092"
