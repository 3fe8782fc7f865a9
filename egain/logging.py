"""Logging configuration for the eGain exporter."""

import logging
import sys

_configured = False

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s - %(message)s"


def configure(level: int | str = logging.INFO) -> None:
    """Configure logging for the application.

    Safe to call multiple times - only configures once.
    """
    global _configured
    if _configured:
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger("egain")
    root.setLevel(level)
    root.addHandler(handler)

    # Route uvicorn through the same handler and format
    uv_log = logging.getLogger("uvicorn")
    uv_log.handlers.clear()
    uv_log.addHandler(handler)
    uv_log.setLevel(level)

    # Prometheus scrapes every few seconds, keep them out of the log
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the 'egain' namespace.

    Args:
        name: Logger name (will be prefixed with 'egain.')

    Returns:
        Configured logger instance.
    """
    return logging.getLogger(f"egain.{name}")
