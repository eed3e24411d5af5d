"""
Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from kafkaharness.config import HarnessConfig

import logging
import sys


def configure_logging(*, config: HarnessConfig) -> None:
    root_handler: logging.Handler | None = None

    log_handler = config.log_handler
    match log_handler:
        case "stdout" | None:
            root_handler = logging.StreamHandler(stream=sys.stdout)
        case "systemd":
            from systemd import journal

            root_handler = journal.JournalHandler(SYSLOG_IDENTIFIER="kafkaharness")
        case _:
            logging.basicConfig(level=config.log_level.upper(), format=config.log_format)
            logging.getLogger().setLevel(config.log_level.upper())
            logging.warning("Log handler %s not recognized, root handler not set.", log_handler)

    if root_handler is not None:
        root_handler.setFormatter(logging.Formatter(config.log_format))
        root_handler.setLevel(config.log_level.upper())
        root_handler.set_name(name="kafkaharness")
        logging.root.addHandler(root_handler)

    logging.root.setLevel(config.log_level.upper())
    # The Docker SDK logs every API request at DEBUG
    logging.getLogger("urllib3.connectionpool").setLevel(logging.WARNING)
