"""
Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from __future__ import annotations

from aiokafka.errors import KafkaTimeoutError
from collections.abc import Iterable
from concurrent.futures import Future
from confluent_kafka import Message, Producer
from confluent_kafka.error import KafkaError, KafkaException
from functools import partial
from kafkaharness.kafka.common import _KafkaConfigMixin, raise_from_kafkaexception, translate_from_kafkaerror
from kafkaharness.typing import PartitionId, TopicName
from typing import cast, TypedDict
from typing_extensions import Unpack

import concurrent.futures
import logging

LOG = logging.getLogger(__name__)

DISCARD_TIMEOUT_S = 1.0
DEFAULT_CLOSE_TIMEOUT_S = 5.0


def _on_delivery_callback(future: Future, error: KafkaError | None, msg: Message | None) -> None:
    if error is not None:
        LOG.info("Kafka producer delivery error: %s", error)
        future.set_exception(translate_from_kafkaerror(error))
    else:
        future.set_result(msg)


class ProducerSendParams(TypedDict, total=False):
    value: str | bytes | None
    key: str | bytes | None
    partition: int


class KafkaProducer(_KafkaConfigMixin, Producer):
    def send(self, topic: str, **params: Unpack[ProducerSendParams]) -> Future[Message]:
        """A convenience wrapper around `Producer.produce`, to be able to access the message via a Future."""
        result: Future[Message] = Future()

        params = cast(ProducerSendParams, {key: value for key, value in params.items() if value is not None})

        try:
            self.produce(
                topic,
                on_delivery=partial(_on_delivery_callback, result),
                **params,
            )
        except KafkaException as exc:
            raise_from_kafkaexception(exc)

        return result


class KafkaPublisher:
    """Publishes single messages, waiting for each to be acknowledged.

    Two producers are kept, one acknowledged by the leader only and one
    acknowledged by all in sync replicas.
    """

    def __init__(self, bootstrap_servers: Iterable[str] | str, *, verify_connection: bool = True) -> None:
        self.bootstrap_servers = bootstrap_servers
        self.verify_connection = verify_connection
        self._producers: dict[bool, KafkaProducer] = {}

    def _producer(self, require_quorum: bool) -> KafkaProducer:
        if require_quorum not in self._producers:
            self._producers[require_quorum] = KafkaProducer(
                self.bootstrap_servers,
                verify_connection=self.verify_connection,
                acks="all" if require_quorum else 1,
                retries=0,
            )
        return self._producers[require_quorum]

    def publish1(
        self,
        topic: TopicName,
        partition: PartitionId,
        key: bytes,
        value: bytes,
        require_quorum: bool,
        timeout: float,
    ) -> Message:
        producer = self._producer(require_quorum)
        future = producer.send(topic, key=key, value=value, partition=partition)
        producer.flush(timeout)
        try:
            return future.result(timeout=0)
        except concurrent.futures.TimeoutError:
            # A message reported as failed must not be delivered by a later flush
            self._discard_pending(producer)
            raise KafkaTimeoutError(f"Message to {topic}/{partition} not acknowledged within {timeout} seconds") from None

    def _discard_pending(self, producer: KafkaProducer) -> None:
        producer.purge()
        # Serves the delivery reports of the purged messages
        remaining = producer.flush(DISCARD_TIMEOUT_S)
        if remaining:
            LOG.warning("%s in flight messages could not be discarded", remaining)

    def close(self, timeout: float = DEFAULT_CLOSE_TIMEOUT_S) -> None:
        """Wait up to `timeout` seconds for queued messages, discard the undelivered ones."""
        for producer in self._producers.values():
            remaining = producer.flush(timeout)
            if remaining:
                LOG.warning("Discarding %s undelivered messages on close", remaining)
                self._discard_pending(producer)
        self._producers.clear()

    def __enter__(self) -> KafkaPublisher:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
