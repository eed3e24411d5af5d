"""
Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""
from kafkaharness.utils import Expiration, Timeout
from unittest.mock import patch

import pytest


def test_expiration_not_expired_before_deadline() -> None:
    with patch("kafkaharness.utils.time.monotonic", return_value=100.0):
        expiration = Expiration.from_timeout(5.0)
        assert expiration.deadline == 105.0
        assert not expiration.is_expired()
        expiration.raise_timeout_if_expired("unused {}", 1)


def test_expiration_raises_formatted_timeout_after_deadline() -> None:
    expiration = Expiration(start_time=0.0, deadline=10.0)
    with patch("kafkaharness.utils.time.monotonic", return_value=10.5):
        assert expiration.is_expired()
        with pytest.raises(Timeout, match="No leader elected for topic/0"):
            expiration.raise_timeout_if_expired("No leader elected for {}/{}", "topic", 0)
