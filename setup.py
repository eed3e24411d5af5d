"""
kafkaharness - setup
Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from setuptools import find_packages, setup

setup(
    name="kafkaharness",
    version="0.1.0",
    description="Ephemeral multi broker Kafka clusters in Docker for client integration tests",
    license="Apache-2.0",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "aiokafka>=0.10.0",
        "confluent-kafka>=2.4.0",
        "docker>=7.0.0",
        "pydantic>=2.0",
        "pydantic-settings>=2.0",
        "requests>=2.31",
        "typing-extensions>=4.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "kafkaharness=kafkaharness.__main__:main",
        ],
    },
)
