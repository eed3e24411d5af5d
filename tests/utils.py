"""
Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from kafkaharness.config import HarnessConfig
from kafkaharness.errors import RuntimeUnavailable, StartFailure, StopFailure
from kafkaharness.instances import InstanceSpec, LogStream
from kafkaharness.typing import InstanceHandle

ZOOKEEPER_LOG = [
    "Reading configuration from: /opt/zookeeper/conf/zoo.cfg",
    "binding to port 0.0.0.0/0.0.0.0:2181",
]


def broker_log(broker_id: str) -> list[str]:
    lines = [f"[Kafka Server {broker_id}], starting"]
    if broker_id == "1":
        lines.append("[Controller 1]: New leader is 1")
    lines.append(f"[Kafka Server {broker_id}], started")
    return lines


def default_log(spec: InstanceSpec) -> list[str]:
    if "KAFKA_BROKER_ID" in spec.env:
        return broker_log(spec.env["KAFKA_BROKER_ID"])
    return ZOOKEEPER_LOG


def make_config(**overrides: object) -> HarnessConfig:
    values: dict[str, object] = {"advertised_host": "10.0.0.5", "settle_delay_s": 0.0, "readiness_timeout_s": 5.0}
    values.update(overrides)
    return HarnessConfig(**values)


@dataclass
class FakeInstanceManager:
    """In memory `InstanceManager` recording every call."""

    available: bool = True
    fail_start: Callable[[InstanceSpec], bool] = lambda spec: False
    fail_stop: set[InstanceHandle] = field(default_factory=set)
    log_for: Callable[[InstanceSpec], list[str]] = default_log
    calls: list[tuple[str, str]] = field(default_factory=list)
    specs: dict[InstanceHandle, InstanceSpec] = field(default_factory=dict)
    running: list[InstanceHandle] = field(default_factory=list)
    stopped: list[InstanceHandle] = field(default_factory=list)
    installed_images: list[str] = field(default_factory=list)

    def ensure_available(self) -> str:
        self.calls.append(("ensure_available", ""))
        if not self.available:
            raise RuntimeUnavailable("Docker is not available")
        return "24.0.0"

    def install_image_when_needed(self, image: str) -> None:
        self.calls.append(("install_image_when_needed", image))
        self.installed_images.append(image)

    def start(self, spec: InstanceSpec) -> InstanceHandle:
        self.calls.append(("start", spec.image))
        if self.fail_start(spec):
            raise StartFailure(f"Could not start {spec.image}")
        handle = InstanceHandle(f"container-{len(self.specs) + 1}")
        self.specs[handle] = spec
        self.running.append(handle)
        return handle

    def stop(self, handle: InstanceHandle) -> None:
        self.calls.append(("stop", handle))
        if handle in self.fail_stop:
            raise StopFailure(f"Could not remove {handle}")
        if handle in self.running:
            self.running.remove(handle)
        elif handle in self.stopped:
            self.stopped.remove(handle)

    def list_running(self) -> list[InstanceHandle]:
        return list(self.running)

    def list_available(self) -> list[InstanceHandle]:
        return list(self.stopped)

    def stream_logs(self, handle: InstanceHandle) -> LogStream:
        return LogStream([f"{line}\n" for line in self.log_for(self.specs[handle])])

    @property
    def started(self) -> list[InstanceHandle]:
        return list(self.specs)

    @property
    def stops(self) -> list[str]:
        return [handle for call, handle in self.calls if call == "stop"]

    @property
    def starts(self) -> list[str]:
        return [image for call, image in self.calls if call == "start"]
