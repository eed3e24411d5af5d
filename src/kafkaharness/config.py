"""
kafkaharness - configuration

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from __future__ import annotations

from kafkaharness.typing import KafkaRelease
from kafkaharness.utils import local_host_address
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

import logging

ZOOKEEPER_IMAGE = "jplock/zookeeper:3.4.8"
KAFKA_IMAGE_REPOSITORY = "wurstmeister/kafka"
DEFAULT_ZOOKEEPER_PORT = 2181
DEFAULT_BROKER_BASE_PORT = 9092
DEFAULT_BROKER_PORT_STEP = 100

LOG = logging.getLogger(__name__)


class HarnessConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="kafkaharness_", env_ignore_empty=True)

    advertised_host: str = Field(default_factory=local_host_address)
    release: KafkaRelease = KafkaRelease.latest()
    zookeeper_image: str = ZOOKEEPER_IMAGE
    kafka_image_repository: str = KAFKA_IMAGE_REPOSITORY
    zookeeper_port: int = DEFAULT_ZOOKEEPER_PORT
    broker_base_port: int = DEFAULT_BROKER_BASE_PORT
    broker_port_step: int = DEFAULT_BROKER_PORT_STEP
    # Pause after each broker of a multi broker cluster becomes ready, lets the
    # controller election settle before the next broker joins
    settle_delay_s: float = 2.0
    readiness_timeout_s: float | None = 120.0
    docker_base_url: str | None = None
    log_handler: str | None = "stdout"
    log_level: str = "INFO"
    log_format: str = "%(asctime)s\t%(name)-30s\t%(levelname)-8s\t%(message)s"

    @field_validator("settle_delay_s")
    @classmethod
    def validate_settle_delay(cls, value: float) -> float:
        if value < 0:
            raise ValueError("settle_delay_s must not be negative")
        return value

    @field_validator("readiness_timeout_s")
    @classmethod
    def validate_readiness_timeout(cls, value: float | None) -> float | None:
        if value is not None and value <= 0:
            raise ValueError("readiness_timeout_s must be positive, unset it to wait forever")
        return value

    @field_validator("broker_port_step")
    @classmethod
    def validate_broker_port_step(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("broker_port_step must be positive")
        return value

    def broker_image(self, release: KafkaRelease | None = None) -> str:
        return f"{self.kafka_image_repository}:{release or self.release}"

    def set_config_defaults(self, new_config: dict[str, object] | None = None) -> HarnessConfig:
        """Copy of this config with `new_config` applied and validated."""
        values = self.model_dump()
        if new_config:
            values.update(new_config)
        return HarnessConfig(**values)


def log_config(config: HarnessConfig) -> None:
    LOG.debug("Config %r", config.model_dump())
