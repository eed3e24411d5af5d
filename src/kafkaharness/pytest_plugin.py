"""
kafkaharness - pytest plugin

Enable with `pytest_plugins = "kafkaharness.pytest_plugin"` in a conftest.py.

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from __future__ import annotations

from _pytest.fixtures import SubRequest
from collections.abc import Iterator, Mapping
from kafkaharness.cluster import ClusterOrchestrator
from kafkaharness.config import HarnessConfig
from kafkaharness.errors import RuntimeUnavailable
from kafkaharness.instances import DockerInstanceManager
from kafkaharness.topology import ClusterTopology
from kafkaharness.typing import BrokerAddress, BrokerOrdinal, KafkaRelease

import pytest

KAFKA_RELEASE_OPT = "--kafka-release"
READINESS_TIMEOUT_OPT = "--readiness-timeout"
SETTLE_DELAY_OPT = "--settle-delay"
CLUSTER_SIZE = 3


def pytest_addoption(parser, pluginmanager) -> None:  # pylint: disable=unused-argument
    group = parser.getgroup("kafkaharness", "Ephemeral Kafka clusters")
    group.addoption(
        KAFKA_RELEASE_OPT,
        choices=[release.value for release in KafkaRelease],
        help="Kafka release the clusters are started with.",
    )
    group.addoption(
        READINESS_TIMEOUT_OPT,
        type=float,
        help="Seconds to wait for a container to log its readiness line, 0 waits forever.",
    )
    group.addoption(
        SETTLE_DELAY_OPT,
        type=float,
        help="Seconds to wait after each broker of a multi broker cluster became ready.",
    )


@pytest.fixture(scope="session", name="harness_config")
def fixture_harness_config(request: SubRequest) -> HarnessConfig:
    overrides: dict[str, object] = {}
    release = request.config.getoption("kafka_release")
    if release is not None:
        overrides["release"] = KafkaRelease(release)
    readiness_timeout = request.config.getoption("readiness_timeout")
    if readiness_timeout is not None:
        overrides["readiness_timeout_s"] = readiness_timeout or None
    settle_delay = request.config.getoption("settle_delay")
    if settle_delay is not None:
        overrides["settle_delay_s"] = settle_delay
    return HarnessConfig().set_config_defaults(overrides)


@pytest.fixture(scope="session", name="kafka_release")
def fixture_kafka_release(harness_config: HarnessConfig) -> KafkaRelease:
    return harness_config.release


@pytest.fixture(scope="session", name="instance_manager")
def fixture_instance_manager(harness_config: HarnessConfig) -> DockerInstanceManager:
    instance_manager = DockerInstanceManager(base_url=harness_config.docker_base_url)
    try:
        instance_manager.ensure_available()
    except RuntimeUnavailable as e:
        pytest.skip(str(e))
    return instance_manager


@pytest.fixture(name="orchestrator")
def fixture_orchestrator(instance_manager: DockerInstanceManager, harness_config: HarnessConfig) -> ClusterOrchestrator:
    return ClusterOrchestrator(instance_manager, harness_config)


@pytest.fixture(name="kafka_singleton")
def fixture_kafka_singleton(orchestrator: ClusterOrchestrator) -> Iterator[ClusterTopology]:
    with orchestrator.singleton() as topology:
        yield topology


@pytest.fixture(name="kafka_cluster")
def fixture_kafka_cluster(orchestrator: ClusterOrchestrator) -> Iterator[ClusterTopology]:
    with orchestrator.cluster(CLUSTER_SIZE) as topology:
        yield topology


@pytest.fixture(name="broker_addresses")
def fixture_broker_addresses(orchestrator: ClusterOrchestrator) -> Mapping[BrokerOrdinal, BrokerAddress]:
    return orchestrator.broker_addresses(CLUSTER_SIZE)
