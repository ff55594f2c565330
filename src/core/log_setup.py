"""Logging setup shared by the batch scripts and the API."""

import logging

from core.config import LOG_LEVEL

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once per process."""
    logging.basicConfig(level=level or LOG_LEVEL, format=LOG_FORMAT)
