"""
kafkaharness - container instances

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from kafkaharness.errors import ImageInstallFailure, RuntimeUnavailable, StartFailure, StopFailure
from kafkaharness.typing import InstanceHandle
from types import MappingProxyType
from typing import Protocol

import codecs
import docker
import docker.errors
import logging
import requests.exceptions

LOG = logging.getLogger(__name__)

# Statuses of containers which exist but are not running anymore
STOPPED_STATUSES = ["created", "exited", "dead"]


@dataclass(frozen=True)
class PortBinding:
    host_port: int
    container_port: int
    protocol: str = "tcp"

    @classmethod
    def same(cls, port: int) -> PortBinding:
        return cls(port, port)

    def to_docker(self) -> dict[str, int]:
        return {f"{self.container_port}/{self.protocol}": self.host_port}

    def __str__(self) -> str:
        return f"{self.host_port}:{self.container_port}/{self.protocol}"


@dataclass(frozen=True)
class InstanceSpec:
    image: str
    port_binding: PortBinding
    env: Mapping[str, str] = field(default_factory=dict)
    restart_policy: str = "no"
    name: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "env", MappingProxyType(dict(self.env)))


class LogStream:
    """Lazy sequence of log lines from a running instance.

    Iterating blocks until the next line is available. The sequence ends when
    the instance stops, or after `close` is called, which may happen from
    another thread.
    """

    def __init__(self, chunks: Iterable[bytes | str], close: Callable[[], None] | None = None) -> None:
        self._chunks = chunks
        self._close = close
        self.closed = False

    def __iter__(self) -> Iterator[str]:
        pending = ""
        # Multi byte characters may be split between chunks
        decoder = codecs.getincrementaldecoder("utf8")(errors="replace")
        for chunk in self._chunks:
            if self.closed:
                return
            if isinstance(chunk, bytes):
                chunk = decoder.decode(chunk)
            pending += chunk
            *lines, pending = pending.split("\n")
            for line in lines:
                yield line.rstrip("\r")
        pending += decoder.decode(b"", final=True)
        if pending and not self.closed:
            yield pending.rstrip("\r")

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self._close is not None:
            self._close()

    def __enter__(self) -> LogStream:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class InstanceManager(Protocol):
    def ensure_available(self) -> str:
        ...

    def install_image_when_needed(self, image: str) -> None:
        ...

    def start(self, spec: InstanceSpec) -> InstanceHandle:
        ...

    def stop(self, handle: InstanceHandle) -> None:
        ...

    def list_running(self) -> list[InstanceHandle]:
        ...

    def list_available(self) -> list[InstanceHandle]:
        ...

    def stream_logs(self, handle: InstanceHandle) -> LogStream:
        ...


def handle_matches(handle: InstanceHandle, candidate: str) -> bool:
    """Container ids are compared by prefix, the runtime reports both short and long ids."""
    return candidate.startswith(handle) or handle.startswith(candidate)


class DockerInstanceManager:
    """`InstanceManager` over the Docker Engine API.

    Containers use the host port bindings given in their `InstanceSpec`, so
    only one cluster can run per Docker host at a time.
    """

    def __init__(self, base_url: str | None = None, client: docker.DockerClient | None = None) -> None:
        self._base_url = base_url
        self._client = client

    @property
    def client(self) -> docker.DockerClient:
        if self._client is None:
            try:
                if self._base_url is None:
                    self._client = docker.from_env()
                else:
                    self._client = docker.DockerClient(base_url=self._base_url)
            except docker.errors.DockerException as e:
                raise RuntimeUnavailable(f"Docker is not available: {e}") from e
        return self._client

    def ensure_available(self) -> str:
        try:
            version = self.client.version()["Version"]
        except (docker.errors.DockerException, requests.exceptions.ConnectionError) as e:
            raise RuntimeUnavailable(f"Docker is not available: {e}") from e
        LOG.debug("Docker version %s", version)
        return version

    def install_image_when_needed(self, image: str) -> None:
        try:
            self.client.images.get(image)
            return
        except docker.errors.ImageNotFound:
            pass
        except docker.errors.APIError as e:
            raise ImageInstallFailure(f"Could not inspect image {image}: {e}") from e

        repository, _, tag = image.rpartition(":")
        if not repository:
            repository, tag = image, "latest"
        LOG.info("Pulling image %s", image)
        try:
            self.client.images.pull(repository, tag=tag)
        except docker.errors.APIError as e:
            raise ImageInstallFailure(f"Could not pull image {image}: {e}") from e
        LOG.info("Image %s installed", image)

    def start(self, spec: InstanceSpec) -> InstanceHandle:
        LOG.debug("Starting %s env=%s ports=%s", spec.image, dict(spec.env), spec.port_binding)
        try:
            container = self.client.containers.run(
                spec.image,
                detach=True,
                name=spec.name,
                environment=dict(spec.env),
                ports=spec.port_binding.to_docker(),
                restart_policy={"Name": spec.restart_policy},
            )
        except docker.errors.DockerException as e:
            raise StartFailure(f"Could not start {spec.image}: {e}") from e
        handle = InstanceHandle(container.id)
        LOG.info("Started %s as %s", spec.image, handle[:12])
        return handle

    def stop(self, handle: InstanceHandle) -> None:
        """Kill and remove the container, a no-op if it does not exist anymore."""
        if any(handle_matches(handle, running) for running in self.list_running()):
            self._kill(handle)
            self._remove(handle)
        elif any(handle_matches(handle, available) for available in self.list_available()):
            self._remove(handle)
        else:
            LOG.debug("Instance %s already removed", handle[:12])

    def _kill(self, handle: InstanceHandle) -> None:
        try:
            self.client.containers.get(handle).kill()
        except docker.errors.NotFound:
            return
        except docker.errors.APIError as e:
            # 409: the container stopped since it was listed
            if e.status_code != 409:
                raise StopFailure(f"Could not kill {handle[:12]}: {e}") from e
        LOG.info("Killed %s", handle[:12])

    def _remove(self, handle: InstanceHandle) -> None:
        try:
            self.client.containers.get(handle).remove(v=True, force=True)
        except docker.errors.NotFound:
            pass
        except docker.errors.APIError as e:
            raise StopFailure(f"Could not remove {handle[:12]}: {e}") from e
        LOG.info("Removed %s", handle[:12])

    def list_running(self) -> list[InstanceHandle]:
        return [InstanceHandle(container.id) for container in self.client.containers.list()]

    def list_available(self) -> list[InstanceHandle]:
        containers = self.client.containers.list(all=True, filters={"status": STOPPED_STATUSES})
        return [InstanceHandle(container.id) for container in containers]

    def stream_logs(self, handle: InstanceHandle) -> LogStream:
        try:
            stream = self.client.containers.get(handle).logs(stream=True, follow=True)
        except docker.errors.DockerException as e:
            raise StartFailure(f"Could not follow the log of {handle[:12]}: {e}") from e
        return LogStream(stream, close=stream.close)
