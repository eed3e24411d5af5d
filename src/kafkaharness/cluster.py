"""
kafkaharness - cluster orchestration

Starts Zookeeper and the Kafka brokers one after the other, each gated on a
readiness line in its log, and stops them in reverse order when the cluster
scope exits.

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from contextlib import AbstractContextManager, contextmanager, ExitStack
from enum import Enum, unique
from kafkaharness.config import HarnessConfig
from kafkaharness.instances import InstanceManager, InstanceSpec, PortBinding
from kafkaharness.readiness import await_pattern, contains, COORDINATOR_PATTERN, readiness_pattern
from kafkaharness.topology import broker_address_table, broker_port, ClusterTopology
from kafkaharness.typing import BrokerAddress, BrokerOrdinal, InstanceHandle, KafkaRelease

import logging
import time

LOG = logging.getLogger(__name__)


@unique
class ClusterState(Enum):
    IDLE = "idle"
    ACQUIRE_COORDINATOR = "acquire_coordinator"
    COORDINATOR_READY = "coordinator_ready"
    ACQUIRE_BROKER = "acquire_broker"
    BROKER_READY = "broker_ready"
    CLUSTER_READY = "cluster_ready"
    RELEASING = "releasing"


class ClusterOrchestrator:
    def __init__(
        self,
        instance_manager: InstanceManager,
        config: HarnessConfig,
        *,
        release: KafkaRelease | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.instance_manager = instance_manager
        self.config = config
        self.release = release or config.release
        self._sleep = sleep
        self.state = ClusterState.IDLE
        self.current_broker: BrokerOrdinal | None = None

    def _transition(self, state: ClusterState, broker: BrokerOrdinal | None = None) -> None:
        self.state = state
        self.current_broker = broker
        if broker is None:
            LOG.info("Cluster %s", state.value)
        else:
            LOG.info("Cluster %s(%s)", state.value, broker)

    def broker_port(self, ordinal: BrokerOrdinal) -> int:
        return broker_port(ordinal, self.config.broker_base_port, self.config.broker_port_step)

    def broker_addresses(self, size: int) -> Mapping[BrokerOrdinal, BrokerAddress]:
        return broker_address_table(
            self.config.advertised_host,
            size,
            self.config.broker_base_port,
            self.config.broker_port_step,
        )

    def coordinator_spec(self) -> InstanceSpec:
        return InstanceSpec(
            image=self.config.zookeeper_image,
            port_binding=PortBinding.same(self.config.zookeeper_port),
        )

    def broker_spec(self, ordinal: BrokerOrdinal) -> InstanceSpec:
        port = self.broker_port(ordinal)
        host = self.config.advertised_host
        return InstanceSpec(
            image=self.config.broker_image(self.release),
            port_binding=PortBinding.same(port),
            env={
                "KAFKA_PORT": str(port),
                "KAFKA_BROKER_ID": str(int(ordinal)),
                "KAFKA_ADVERTISED_HOST_NAME": host,
                "KAFKA_ADVERTISED_PORT": str(port),
                "KAFKA_ZOOKEEPER_CONNECT": f"{host}:{self.config.zookeeper_port}",
            },
        )

    def _release(self, handle: InstanceHandle, description: str) -> None:
        # Never raises, a teardown failure must not hide the outcome of the test
        LOG.info("Releasing %s (%s)", description, handle[:12])
        try:
            self.instance_manager.stop(handle)
        except Exception:  # pylint: disable=broad-except
            LOG.exception("Failed to release %s (%s)", description, handle[:12])

    def _acquire(self, stack: ExitStack, spec: InstanceSpec, description: str) -> InstanceHandle:
        handle = self.instance_manager.start(spec)
        stack.callback(self._release, handle, description)
        return handle

    def _await_ready(self, handle: InstanceHandle, pattern: str, description: str) -> None:
        with self.instance_manager.stream_logs(handle) as lines:
            await_pattern(
                lines,
                contains(pattern),
                timeout=self.config.readiness_timeout_s,
                description=description,
            )

    def _prepare(self) -> None:
        # Nothing is acquired yet, failures here have nothing to unwind
        self.instance_manager.ensure_available()
        self.instance_manager.install_image_when_needed(self.config.zookeeper_image)
        self.instance_manager.install_image_when_needed(self.config.broker_image(self.release))

    @contextmanager
    def cluster(self, size: int) -> Iterator[ClusterTopology]:
        """Run Zookeeper and `size` brokers for the duration of the scope.

        Brokers are started strictly one after the other, the controller
        election is only reliable if Zookeeper and every earlier broker have
        settled. All started instances are stopped in reverse order when the
        scope exits, including when starting one of them failed.
        """
        if size < 1:
            raise ValueError(f"A cluster needs at least one broker, got: {size}")
        if self.state is not ClusterState.IDLE:
            raise RuntimeError(f"Orchestrator is already running a cluster, state: {self.state.value}")

        self._prepare()
        pattern = readiness_pattern(self.release)
        is_cluster = size > 1

        try:
            with ExitStack() as stack:
                try:
                    self._transition(ClusterState.ACQUIRE_COORDINATOR)
                    coordinator = self._acquire(stack, self.coordinator_spec(), "zookeeper")
                    self._await_ready(coordinator, COORDINATOR_PATTERN, "zookeeper")
                    self._transition(ClusterState.COORDINATOR_READY)

                    brokers: dict[BrokerOrdinal, InstanceHandle] = {}
                    for ordinal in BrokerOrdinal.all(size):
                        description = f"broker {ordinal}"
                        self._transition(ClusterState.ACQUIRE_BROKER, ordinal)
                        brokers[ordinal] = self._acquire(stack, self.broker_spec(ordinal), description)
                        if int(ordinal) == 1:
                            self._await_ready(brokers[ordinal], pattern.leader_pattern, description)
                        else:
                            self._await_ready(brokers[ordinal], pattern.follower_pattern(ordinal), description)
                        self._transition(ClusterState.BROKER_READY, ordinal)
                        if is_cluster:
                            self._sleep(self.config.settle_delay_s)

                    topology = ClusterTopology(coordinator, brokers)
                    self._transition(ClusterState.CLUSTER_READY)

                    yield topology
                finally:
                    self._transition(ClusterState.RELEASING)
        finally:
            self._transition(ClusterState.IDLE)

    def singleton(self) -> AbstractContextManager[ClusterTopology]:
        return self.cluster(1)
