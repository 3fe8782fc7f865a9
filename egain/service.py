"""Exporter entrypoint.

Polls the configured eGain sensors and serves their readings on /metrics,
with a /healthz liveness probe, from a single uvicorn process. SIGINT and
SIGTERM stop the server, which stops the poller and waits for in-flight
fetches.

Usage: python -m egain --sensors 'ABC123=kitchen,DEF456=bathroom'
"""

import argparse
import sys
from collections.abc import Sequence

import uvicorn
from pydantic import ValidationError
from starlette.applications import Starlette

from egain.lib.config import Settings, get_settings
from egain.lib.exceptions import ConfigurationError
from egain.lib.ratelimit import RateLimiter
from egain.logging import configure, get_logger
from egain.metrics import MetricsPublisher
from egain.sensors.fetcher import ReadingFetcher, new_client
from egain.sensors.polling import SensorPollingService
from egain.server import create_app

logger = get_logger("service")

EXIT_CONFIG_ERROR = 2


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command line flags. Unset flags fall back to the environment."""
    parser = argparse.ArgumentParser(
        prog="egain",
        description="Export eGain indoor sensor readings as Prometheus metrics",
    )
    parser.add_argument(
        "--sensors",
        help="comma-separated list of id=location sensors (env: SENSORS)",
    )
    parser.add_argument("--host", help="address to listen on (env: HOST)")
    parser.add_argument("--port", type=int, help="port to listen on (env: PORT)")
    parser.add_argument("--log-level", help="logging level (env: LOG_LEVEL)")
    return parser.parse_args(argv)


def load_settings(args: argparse.Namespace) -> Settings:
    """Load settings from the environment, overridden by explicit flags."""
    overrides = {
        key: value
        for key, value in vars(args).items()
        if value is not None
    }
    if not overrides:
        return get_settings()
    return Settings(**overrides)


def build_app(settings: Settings) -> Starlette:
    """Wire the poller and the web application from settings.

    Raises:
        ConfigurationError: If no sensor is configured.
    """
    sensors = settings.registry
    fetcher_cfg = settings.fetcher
    limiter = RateLimiter(fetcher_cfg.rate_interval_sec, fetcher_cfg.rate_burst)
    publisher = MetricsPublisher()
    service = SensorPollingService(
        sensors,
        ReadingFetcher(fetcher_cfg, limiter, new_client(fetcher_cfg)),
        publisher,
        interval_sec=settings.polling.interval_sec,
    )
    return create_app(service, publisher)


def main(argv: Sequence[str] | None = None) -> None:
    """Start the exporter."""
    args = parse_args(argv)
    try:
        settings = load_settings(args)
    except ValidationError as e:
        configure()
        logger.error("%s", e)
        sys.exit(EXIT_CONFIG_ERROR)

    configure(settings.log_level.upper())

    try:
        app = build_app(settings)
    except ConfigurationError as e:
        logger.error("%s", e)
        sys.exit(EXIT_CONFIG_ERROR)

    server_cfg = settings.server
    logger.info("Starting server on %s:%d", server_cfg.host, server_cfg.port)
    uvicorn.run(
        app,
        host=server_cfg.host,
        port=server_cfg.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
