"""
Process logging for the sync service and CLI.

Everything under the `catalog_sync` logger goes to stderr with a
timestamp. Run-log entries shown over the API are mirrored here by the
coordinator. Transport libraries are held at WARNING unless verbose.
"""

import logging
import sys

PACKAGE_LOGGER = "catalog_sync"

# Chatty per-request/per-channel loggers
NOISY_LOGGERS = ("paramiko", "urllib3", "werkzeug")


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """
    Attach the stderr handler to the package logger.

    Args:
        verbose: DEBUG for the package, and let transport libraries through
        quiet: Only warnings and errors
    """
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s %(levelname)-8s %(name)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
    ))

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level)
    package_logger.handlers.clear()
    package_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else logging.WARNING)
