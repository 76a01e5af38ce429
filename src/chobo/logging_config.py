"""Logging setup for the command line."""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def setup_logging(level: str = "WARNING") -> None:
    """Send chobo's log records to stderr at ``level``.

    Only the ``chobo`` logger is configured. Repeated calls replace the
    handler instead of stacking.
    """
    logger = logging.getLogger("chobo")
    logger.setLevel(level.upper())

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
