"""Logging setup shared by the API, the Celery worker and the CLI."""

import logging

from encore.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Chatty third-party loggers
_QUIET_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine")


def setup_logging(level: int | None = None) -> None:
    """Configure the root logger once. Debug level follows settings.debug."""
    if level is None:
        level = logging.DEBUG if get_settings().debug else logging.INFO

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    else:
        root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
