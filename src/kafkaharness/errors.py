"""
kafkaharness - errors

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from __future__ import annotations

from kafkaharness.utils import Timeout


class HarnessError(Exception):
    pass


class RuntimeUnavailable(HarnessError):
    pass


class ImageInstallFailure(HarnessError):
    pass


class StartFailure(HarnessError):
    pass


class InstanceExited(StartFailure):
    """The instance log ended before the expected readiness line was seen."""


class ReadinessTimeout(HarnessError, Timeout):
    pass


class StopFailure(HarnessError):
    pass


class InvalidBrokerOrdinal(HarnessError, ValueError):
    pass


class InvalidTopology(HarnessError, ValueError):
    pass


class UnknownLeader(HarnessError):
    pass
