"""
kafkaharness - command line tool

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from __future__ import annotations

from kafkaharness.cluster import ClusterOrchestrator
from kafkaharness.config import HarnessConfig, log_config
from kafkaharness.errors import HarnessError
from kafkaharness.instances import DockerInstanceManager
from kafkaharness.kafka.admin import KafkaAdminClient
from kafkaharness.logging_setup import configure_logging
from kafkaharness.typing import KafkaRelease

import argparse
import sys
import time


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="kafkaharness", description="Ephemeral Kafka clusters in Docker")
    subparsers = parser.add_subparsers(help="Command", dest="command", required=True)

    parser_up = subparsers.add_parser("up", help="Start a cluster and keep it running until interrupted")
    parser_up.add_argument("--brokers", type=int, default=1, help="Number of Kafka brokers")
    parser_up.add_argument(
        "--release",
        choices=[release.value for release in KafkaRelease],
        help="Kafka release, defaults to the configured one",
    )
    parser_up.add_argument(
        "--topic",
        action="append",
        default=[],
        help="Topic to create once the cluster is ready, may be given multiple times",
    )
    parser_up.add_argument("--partitions", type=int, default=1, help="Partitions of the created topics")

    subparsers.add_parser("releases", help="List the supported Kafka releases")

    return parser.parse_args(argv)


def run_cluster(args: argparse.Namespace, config: HarnessConfig) -> None:
    orchestrator = ClusterOrchestrator(
        DockerInstanceManager(base_url=config.docker_base_url),
        config,
        release=KafkaRelease(args.release) if args.release else None,
    )
    addresses = orchestrator.broker_addresses(args.brokers)
    bootstrap_servers = [str(address) for address in addresses.values()]

    with orchestrator.cluster(args.brokers):
        if args.topic:
            admin = KafkaAdminClient(bootstrap_servers)
            for topic in args.topic:
                admin.new_topic(topic, num_partitions=args.partitions, replication_factor=args.brokers)

        print(f"Zookeeper: {config.advertised_host}:{config.zookeeper_port}")
        for ordinal, address in addresses.items():
            print(f"Broker {ordinal}: {address}")
        print(f"Bootstrap servers: {','.join(bootstrap_servers)}", flush=True)

        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            print("Stopping the cluster", file=sys.stderr)


def dispatch(args: argparse.Namespace) -> None:
    if args.command == "releases":
        for release in KafkaRelease:
            print(release.value)
    elif args.command == "up":
        config = HarnessConfig()
        configure_logging(config=config)
        log_config(config)
        run_cluster(args, config)
    else:
        raise NotImplementedError(f"Unknown command: {args.command!r}")


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    try:
        dispatch(args)
    except HarnessError as e:
        print(f"{e.__class__.__name__}: {e}", file=sys.stderr)
        raise SystemExit(1) from e
    except KeyboardInterrupt as e:
        # Interrupted during setup, the started containers were already stopped
        raise SystemExit(2) from e


if __name__ == "__main__":
    main()
