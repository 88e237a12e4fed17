"""Logging setup for the service."""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging once.

    Args:
        level: Log level name, e.g. "INFO" or "DEBUG".
    """
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level.upper())
        return

    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)

    # discord.py is chatty at INFO about gateway heartbeats
    logging.getLogger("discord.gateway").setLevel(logging.WARNING)
