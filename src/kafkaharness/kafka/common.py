"""
Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from __future__ import annotations

from aiokafka.errors import (
    AuthenticationFailedError,
    for_code,
    IllegalStateError,
    KafkaTimeoutError,
    KafkaUnavailableError,
    NoBrokersAvailable,
    UnknownTopicOrPartitionError,
)
from collections.abc import Callable, Iterable
from concurrent.futures import Future
from confluent_kafka.error import KafkaError, KafkaException
from typing import Any, NoReturn, TypedDict, TypeVar
from typing_extensions import Unpack

import logging

T = TypeVar("T")


def single_futmap_result(futmap: dict[Any, Future[T]]) -> T:
    """Extract the result of a future wrapped in a dict.

    Bulk operations of `confluent_kafka` return a dictionary of futures, the
    harness only ever operates on a single resource at a time.
    """
    (future,) = futmap.values()
    return future.result()


def translate_from_kafkaerror(error: KafkaError) -> Exception:
    """Translate a `KafkaError` from `confluent_kafka` to an `aiokafka` exception.

    Errors internal to `confluent_kafka` have negative codes without an
    `aiokafka` counterpart and are mapped by hand.
    """
    code = error.code()
    if code in (
        KafkaError._NOENT,
        KafkaError._UNKNOWN_PARTITION,
        KafkaError._UNKNOWN_TOPIC,
    ):
        return UnknownTopicOrPartitionError()
    if code in (KafkaError._TIMED_OUT, KafkaError._MSG_TIMED_OUT):
        return KafkaTimeoutError()
    if code == KafkaError._STATE:
        return IllegalStateError()
    if code in (KafkaError._RESOLVE, KafkaError._ALL_BROKERS_DOWN, KafkaError._TRANSPORT):
        return KafkaUnavailableError()

    return for_code(code)()


def raise_from_kafkaexception(exc: KafkaException) -> NoReturn:
    raise translate_from_kafkaerror(exc.args[0]) from exc


class KafkaClientParams(TypedDict, total=False):
    acks: int | str | None
    retries: int | None


class _KafkaConfigMixin:
    """Configuration and connection verification for `confluent_kafka` clients."""

    def __init__(
        self,
        bootstrap_servers: Iterable[str] | str,
        verify_connection: bool = True,
        **params: Unpack[KafkaClientParams],
    ) -> None:
        self._errors: set[KafkaError] = set()
        self.log = logging.getLogger(f"{self.__module__}.{self.__class__.__qualname__}")

        super().__init__(self._get_config_from_params(bootstrap_servers, **params))  # type: ignore[call-arg]
        self._activate_callbacks()
        if verify_connection:
            self._verify_connection()

    def _get_config_from_params(self, bootstrap_servers: Iterable[str] | str, **params: Unpack[KafkaClientParams]) -> dict:
        if not isinstance(bootstrap_servers, str):
            bootstrap_servers = ",".join(bootstrap_servers)

        config: dict[str, int | str | Callable | None] = {
            "bootstrap.servers": bootstrap_servers,
            "acks": params.get("acks"),
            "retries": params.get("retries"),
            "error_cb": self._error_callback,
        }
        return {key: value for key, value in config.items() if value is not None}

    def _error_callback(self, error: KafkaError) -> None:
        self._errors.add(error)

    def _activate_callbacks(self) -> None:
        # `poll` triggers the registered callbacks
        self.poll(timeout=0.0)  # type: ignore[attr-defined]

    def _verify_connection(self) -> None:
        """Call `list_topics` a few times to make sure the cluster is reachable.

        Creating a client does not contact the cluster, connection problems
        would otherwise only show up as log lines from a background thread.
        """
        for _ in range(3):
            try:
                self.list_topics(timeout=1)  # type: ignore[attr-defined]
            except KafkaException as exc:
                self._activate_callbacks()
                self.log.info("Could not establish connection due to errors: %s", self._errors)
                if any(error.code() == KafkaError._AUTHENTICATION for error in self._errors):
                    raise AuthenticationFailedError() from exc
                continue
            else:
                break
        else:
            raise NoBrokersAvailable()
