"""
kafkaharness - ephemeral Kafka clusters for client integration tests

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

__version__ = "0.1.0"
