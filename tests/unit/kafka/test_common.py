"""
Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""
from __future__ import annotations

from aiokafka.errors import (
    IllegalStateError,
    KafkaTimeoutError,
    KafkaUnavailableError,
    NotLeaderForPartitionError,
    UnknownTopicOrPartitionError,
)
from concurrent.futures import Future
from confluent_kafka.error import KafkaError, KafkaException
from kafkaharness.kafka.common import raise_from_kafkaexception, single_futmap_result, translate_from_kafkaerror

import pytest


@pytest.mark.parametrize(
    "code,expected",
    [
        (KafkaError._UNKNOWN_TOPIC, UnknownTopicOrPartitionError),
        (KafkaError._UNKNOWN_PARTITION, UnknownTopicOrPartitionError),
        (KafkaError._TIMED_OUT, KafkaTimeoutError),
        (KafkaError._MSG_TIMED_OUT, KafkaTimeoutError),
        (KafkaError._STATE, IllegalStateError),
        (KafkaError._ALL_BROKERS_DOWN, KafkaUnavailableError),
        (KafkaError.NOT_LEADER_FOR_PARTITION, NotLeaderForPartitionError),
    ],
)
def test_translate_from_kafkaerror(code: int, expected: type[Exception]) -> None:
    assert isinstance(translate_from_kafkaerror(KafkaError(code)), expected)


def test_raise_from_kafkaexception() -> None:
    exc = KafkaException(KafkaError(KafkaError._UNKNOWN_TOPIC))

    with pytest.raises(UnknownTopicOrPartitionError) as exc_info:
        raise_from_kafkaexception(exc)

    assert exc_info.value.__cause__ is exc


def test_single_futmap_result() -> None:
    future: Future[str] = Future()
    future.set_result("created")

    assert single_futmap_result({"topic": future}) == "created"

    with pytest.raises(ValueError):
        single_futmap_result({"a": future, "b": future})
