"""
kafkaharness - readiness gate

Instances are considered ready once a well known line shows up in their log.

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from kafkaharness.errors import InstanceExited, ReadinessTimeout
from kafkaharness.typing import BrokerOrdinal, KafkaRelease
from types import MappingProxyType

import inspect
import logging
import threading

LOG = logging.getLogger(__name__)

LinePredicate = Callable[[str], bool]

# Logged by Zookeeper once the client port listener is bound
COORDINATOR_PATTERN = "binding to port"


@dataclass(frozen=True)
class ReadinessPattern:
    # Logged by the first broker once it was elected controller
    leader_pattern: str
    # Logged by every broker once it has started, formatted with `broker_id`
    follower_pattern_template: str

    def follower_pattern(self, ordinal: BrokerOrdinal) -> str:
        return self.follower_pattern_template.format(broker_id=int(ordinal))


_PATTERN_0_8_TO_0_10 = ReadinessPattern(
    leader_pattern="New leader is ",
    follower_pattern_template="[Kafka Server {broker_id}], started",
)

READINESS_PATTERNS: Mapping[KafkaRelease, ReadinessPattern] = MappingProxyType(
    {
        KafkaRelease.V_0_8_2_0: _PATTERN_0_8_TO_0_10,
        KafkaRelease.V_0_9_0_1: _PATTERN_0_8_TO_0_10,
        KafkaRelease.V_0_10_0_0: _PATTERN_0_8_TO_0_10,
        KafkaRelease.V_0_10_1_0: _PATTERN_0_8_TO_0_10,
        KafkaRelease.V_0_10_2_0: _PATTERN_0_8_TO_0_10,
    }
)


def readiness_pattern(release: KafkaRelease) -> ReadinessPattern:
    return READINESS_PATTERNS[release]


def contains(fragment: str) -> LinePredicate:
    def predicate(line: str) -> bool:
        return fragment in line

    return predicate


def _first_match(lines: Iterable[str], predicate: LinePredicate, description: str) -> str:
    for line in lines:
        if predicate(line):
            LOG.debug("%s ready: %s", description, line)
            return line
        LOG.debug("%s: %s", description, line)
    raise InstanceExited(f"Log of {description} ended before it became ready")


def await_pattern(
    lines: Iterable[str],
    predicate: LinePredicate,
    *,
    timeout: float | None = None,
    description: str = "instance",
) -> str:
    """Consume `lines` until one satisfies `predicate`, return that line.

    Lines are discarded as they are read. Without a `timeout` this blocks for
    as long as `lines` does. With a `timeout` the lines are read by a worker
    thread, once the deadline passes `lines` is closed and `ReadinessTimeout`
    is raised.

    Raises `InstanceExited` if `lines` ends without a match.
    """
    if timeout is None:
        return _first_match(lines, predicate, description)

    outcome: dict[str, object] = {}
    done = threading.Event()

    def consume() -> None:
        try:
            outcome["line"] = _first_match(lines, predicate, description)
        except BaseException as e:  # pylint: disable=broad-except
            outcome["error"] = e
        finally:
            done.set()

    # Daemon thread, a source which ignores `close` must not block interpreter exit
    worker = threading.Thread(target=consume, name=f"readiness-{description}", daemon=True)
    worker.start()

    if not done.wait(timeout):
        close = getattr(lines, "close", None)
        # A running generator can not be closed from another thread
        if close is not None and not inspect.isgenerator(lines):
            close()
        raise ReadinessTimeout(f"{description} did not become ready within {timeout} seconds")

    if "error" in outcome:
        raise outcome["error"]  # type: ignore[misc]
    return outcome["line"]  # type: ignore[return-value]
