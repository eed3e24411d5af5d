"""
kafkaharness - utils

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""
from __future__ import annotations

from dataclasses import dataclass

import functools
import logging
import socket
import time

LOG = logging.getLogger(__name__)


@functools.lru_cache(maxsize=1)
def local_host_address() -> str:
    """Address of this host as seen by the containers.

    Brokers run in the host network namespace of the container runtime, they
    advertise this address to clients and use it to reach Zookeeper.
    """
    address = socket.gethostbyname(socket.gethostname())
    LOG.debug("Local host address resolved to %s", address)
    return address


class Timeout(Exception):
    pass


@dataclass(frozen=True)
class Expiration:
    start_time: float
    deadline: float

    @classmethod
    def from_timeout(cls, timeout: float) -> Expiration:
        start_time = time.monotonic()
        deadline = start_time + timeout
        return cls(start_time, deadline)

    def is_expired(self) -> bool:
        return time.monotonic() > self.deadline

    def raise_timeout_if_expired(self, msg_format: str, *args: object, **kwargs: object) -> None:
        """Raise `Timeout` if this object is expired.

        Note:
            This method is supposed to be used in a loop, e.g.:

                expiration = Expiration.from_timeout(timeout=60)
                while not leader_elected(metadata):
                    expiration.raise_timeout_if_expired("no leader for {}", topic)
                    metadata = fetch_metadata()

            Formatting happens only once the deadline is expired, so this uses
            a similar interface to `logging.<level>()`.
        """
        if self.is_expired():
            raise Timeout(msg_format.format(*args, **kwargs))
