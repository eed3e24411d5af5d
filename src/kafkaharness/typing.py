"""
kafkaharness - typing

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from kafkaharness.errors import InvalidBrokerOrdinal
from typing import NewType

import functools

# Container id as returned by the runtime, either the short or the long form
InstanceHandle = NewType("InstanceHandle", str)
TopicName = NewType("TopicName", str)
PartitionId = NewType("PartitionId", int)


class StrEnum(str, Enum):
    def __str__(self) -> str:
        return str(self.value)


@unique
class KafkaRelease(StrEnum):
    V_0_8_2_0 = "0.8.2.0"
    V_0_9_0_1 = "0.9.0.1"
    V_0_10_0_0 = "0.10.0.0"
    V_0_10_1_0 = "0.10.1.0"
    V_0_10_2_0 = "0.10.2.0"

    @classmethod
    def latest(cls) -> KafkaRelease:
        return cls.V_0_10_2_0


@dataclass(frozen=True)
class BrokerAddress:
    host: str
    port: int

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


@functools.total_ordering
class BrokerOrdinal:
    """Logical position of a broker in a cluster of `size` brokers, 1-based.

    The ordinal is also the broker id the broker registers with in Zookeeper.
    """

    __slots__ = ("_value",)

    def __init__(self, value: int, size: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidBrokerOrdinal(f"Broker ordinal must be an integer, got: {value!r}")
        if not 1 <= value <= size:
            raise InvalidBrokerOrdinal(f"Broker ordinal must be within [1, {size}], got: {value}")
        self._value = value

    @classmethod
    def all(cls, size: int) -> list[BrokerOrdinal]:
        return [cls(value, size) for value in range(1, size + 1)]

    @property
    def value(self) -> int:
        return self._value

    def __int__(self) -> int:
        return self._value

    def __index__(self) -> int:
        return self._value

    def __eq__(self, other: object) -> bool:
        if isinstance(other, BrokerOrdinal):
            return self._value == other._value
        return NotImplemented

    def __lt__(self, other: object) -> bool:
        if isinstance(other, BrokerOrdinal):
            return self._value < other._value
        return NotImplemented

    def __hash__(self) -> int:
        return hash((BrokerOrdinal, self._value))

    def __repr__(self) -> str:
        return f"BrokerOrdinal({self._value})"

    def __str__(self) -> str:
        return str(self._value)
